"""
Dependency query service: read-side projections over the edge store.

Nothing is cached; every call reads the current edge set.
"""

import uuid

from taskgraph.models import Dependency
from taskgraph.services.graph import ChainEntry, CycleCheck, detect_cycle, get_downstream, get_upstream
from taskgraph.services.storage import EdgeStore


class DependencyQueryService:
    def __init__(self, store: EdgeStore):
        self.store = store

    async def get_dependencies_for_task(self, task_id: uuid.UUID) -> list[Dependency]:
        """Edges where task_id is the dependent: what blocks this task."""
        return await self.store.list_by_dependent(task_id)

    async def get_tasks_blocked_by(self, task_id: uuid.UUID) -> list[Dependency]:
        """Edges where task_id is the blocker: what this task blocks."""
        return await self.store.list_by_blocker(task_id)

    async def get_dependency_count(self, task_id: uuid.UUID) -> int:
        return await self.store.count_by_dependent(task_id)

    async def get_all_dependencies(self) -> list[Dependency]:
        return await self.store.list_all()

    async def get_incident_dependencies(self, task_id: uuid.UUID) -> list[Dependency]:
        """Edges with task_id at either end."""
        return await self.store.list_where(
            (Dependency.dependent_task_id == task_id) | (Dependency.blocking_task_id == task_id)
        )

    async def get_dependency(self, dependency_id: uuid.UUID) -> Dependency | None:
        return await self.store.get(dependency_id)

    async def get_dependency_between(
        self,
        dependent_task_id: uuid.UUID,
        blocking_task_id: uuid.UUID,
    ) -> Dependency | None:
        return await self.store.find(dependent_task_id, blocking_task_id)

    async def dependency_exists(self, dependent_task_id: uuid.UUID, blocking_task_id: uuid.UUID) -> bool:
        return await self.get_dependency_between(dependent_task_id, blocking_task_id) is not None

    async def would_create_cycle(self, dependent_task_id: uuid.UUID, blocking_task_id: uuid.UUID) -> CycleCheck:
        return detect_cycle(dependent_task_id, blocking_task_id, await self.store.list_all())

    async def get_upstream(self, task_id: uuid.UUID) -> list[ChainEntry]:
        return get_upstream(task_id, await self.store.list_all())

    async def get_downstream(self, task_id: uuid.UUID) -> list[ChainEntry]:
        return get_downstream(task_id, await self.store.list_all())
