"""
Dependency engine facade.

Wires storage, validation, queries, status resolution and cascade delete for
one database session, and is the surface the API layer talks to. After each
write it publishes EdgeSetChanged so registered listeners (the status
resolver first) can recompute.
"""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from taskgraph.config import Settings, get_settings
from taskgraph.models import Dependency, TaskStatus
from taskgraph.services.cascade import CascadeController, CascadeResult
from taskgraph.services.events import EdgeSetChanged, GraphEventDispatcher, TaskStatusChanged
from taskgraph.services.graph import ChainEntry, CycleCheck
from taskgraph.services.query import DependencyQueryService
from taskgraph.services.status import BlockingState, StatusResolver
from taskgraph.services.storage import EdgeStore
from taskgraph.services.task_repository import SqlTaskRepository, TaskRepository
from taskgraph.services.validator import DependencyInput, DependencyValidator


class DependencyEngine:
    def __init__(
        self,
        session: AsyncSession,
        tasks: TaskRepository | None = None,
        settings: Settings | None = None,
    ):
        settings = settings or get_settings()
        self.tasks = tasks or SqlTaskRepository(session)
        self.store = EdgeStore(session)
        self.max_dependencies = settings.max_dependencies_per_task

        self.events = GraphEventDispatcher()
        self.validator = DependencyValidator(self.store, self.tasks, self.max_dependencies)
        self.queries = DependencyQueryService(self.store)
        self.resolver = StatusResolver(self.queries, self.tasks)
        self.cascade = CascadeController(self.store)

        self.resolver.register(self.events)

    # -- writes ---------------------------------------------------------------

    async def create_dependency(self, dep_in: DependencyInput) -> Dependency:
        dependency = await self.validator.create_dependency(dep_in)
        await self.events.publish(
            EdgeSetChanged(
                dependent_task_ids=frozenset({dependency.dependent_task_id}),
                blocking_task_ids=frozenset({dependency.blocking_task_id}),
            )
        )
        return dependency

    async def delete_dependency(self, dependency_id: uuid.UUID) -> None:
        dependency = await self.validator.delete_dependency(dependency_id)
        await self.events.publish(
            EdgeSetChanged(
                dependent_task_ids=frozenset({dependency.dependent_task_id}),
                blocking_task_ids=frozenset({dependency.blocking_task_id}),
            )
        )

    async def delete_dependencies_for_task(self, task_id: uuid.UUID) -> CascadeResult:
        """Deletion hook for the task repository: call inside the task's delete transaction."""
        result = await self.cascade.delete_dependencies_for_task(task_id)
        neighbours = result.dependent_task_ids | result.blocking_task_ids
        if neighbours:
            await self.events.publish(
                EdgeSetChanged(
                    dependent_task_ids=frozenset(result.dependent_task_ids),
                    blocking_task_ids=frozenset(result.blocking_task_ids),
                )
            )
        return result

    async def notify_task_status_changed(self, task_id: uuid.UUID, status: TaskStatus | None = None) -> None:
        await self.events.publish(TaskStatusChanged(task_id=task_id, status=status))

    # -- reads ----------------------------------------------------------------

    async def get_dependencies_for_task(self, task_id: uuid.UUID) -> list[Dependency]:
        return await self.queries.get_dependencies_for_task(task_id)

    async def get_tasks_blocked_by(self, task_id: uuid.UUID) -> list[Dependency]:
        return await self.queries.get_tasks_blocked_by(task_id)

    async def get_all_dependencies(self) -> list[Dependency]:
        return await self.queries.get_all_dependencies()

    async def get_dependency_count(self, task_id: uuid.UUID) -> int:
        return await self.queries.get_dependency_count(task_id)

    async def get_dependency(self, dependency_id: uuid.UUID) -> Dependency | None:
        return await self.queries.get_dependency(dependency_id)

    async def would_create_cycle(self, dependent_task_id: uuid.UUID, blocking_task_id: uuid.UUID) -> CycleCheck:
        return await self.queries.would_create_cycle(dependent_task_id, blocking_task_id)

    async def get_upstream(self, task_id: uuid.UUID) -> list[ChainEntry]:
        return await self.queries.get_upstream(task_id)

    async def get_downstream(self, task_id: uuid.UUID) -> list[ChainEntry]:
        return await self.queries.get_downstream(task_id)

    async def get_blocking_state(self, task_id: uuid.UUID) -> BlockingState:
        return await self.resolver.resolve(task_id)
