"""
Status resolver: derives a task's blocking state from its blockers.

A task is blocked iff at least one of its blockers is not completed. This is
classification only (soft block). Whether a blocked task may still be
started is decided by the task layer.

Recomputation is message driven. ``register`` subscribes the resolver to a
GraphEventDispatcher. It answers EdgeSetChanged and TaskStatusChanged by
publishing BlockingStateChanged for every affected task.
"""

import uuid
from dataclasses import dataclass, field
from typing import Iterable

from taskgraph.logging_config import get_logger
from taskgraph.models import TaskStatus
from taskgraph.services.events import (
    BlockingStateChanged,
    EdgeSetChanged,
    EventType,
    GraphEventDispatcher,
    TaskStatusChanged,
)
from taskgraph.services.query import DependencyQueryService
from taskgraph.services.task_repository import TaskRepository

logger = get_logger(__name__)


@dataclass
class BlockingState:
    task_id: uuid.UUID
    is_blocked: bool
    blocking_tasks: list[uuid.UUID] = field(default_factory=list)  # Open blockers
    blocked_by_ids: list[uuid.UUID] = field(default_factory=list)  # All blockers
    blocks_ids: list[uuid.UUID] = field(default_factory=list)

    @property
    def dependency_count(self) -> int:
        return len(self.blocked_by_ids)

    @property
    def dependency_status(self) -> str | None:
        """blocked > blocking > ready > None."""
        if self.is_blocked:
            return "blocked"
        if self.blocks_ids:
            return "blocking"
        if self.blocked_by_ids:
            return "ready"
        return None


class StatusResolver:
    def __init__(self, queries: DependencyQueryService, tasks: TaskRepository):
        self.queries = queries
        self.tasks = tasks
        self._dispatcher: GraphEventDispatcher | None = None

    async def resolve(self, task_id: uuid.UUID) -> BlockingState:
        blockers = [d.blocking_task_id for d in await self.queries.get_dependencies_for_task(task_id)]
        blocks = [d.dependent_task_id for d in await self.queries.get_tasks_blocked_by(task_id)]

        open_blockers = []
        for blocker_id in blockers:
            status = await self.tasks.get_task_status(blocker_id)
            if status is None:
                logger.warning(f"Blocker {blocker_id} of {task_id} is unknown to the task repository")
                continue
            if status != TaskStatus.COMPLETED:
                open_blockers.append(blocker_id)

        return BlockingState(
            task_id=task_id,
            is_blocked=bool(open_blockers),
            blocking_tasks=open_blockers,
            blocked_by_ids=blockers,
            blocks_ids=blocks,
        )

    async def resolve_many(self, task_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, BlockingState]:
        return {task_id: await self.resolve(task_id) for task_id in dict.fromkeys(task_ids)}

    def register(self, dispatcher: GraphEventDispatcher) -> None:
        """Subscribe to edge and status changes on an engine's dispatcher."""
        self._dispatcher = dispatcher
        dispatcher.subscribe(EventType.EDGE_SET_CHANGED, self._on_edge_set_changed)
        dispatcher.subscribe(EventType.TASK_STATUS_CHANGED, self._on_task_status_changed)

    async def _on_edge_set_changed(self, event: EdgeSetChanged) -> None:
        # Blocking endpoints are included for their dependency_status
        await self._recompute(list(event.dependent_task_ids) + list(event.blocking_task_ids))

    async def _on_task_status_changed(self, event: TaskStatusChanged) -> None:
        dependents = [d.dependent_task_id for d in await self.queries.get_tasks_blocked_by(event.task_id)]
        logger.debug(f"Status of {event.task_id} changed; recomputing {len(dependents)} dependent(s)")
        await self._recompute(dependents)

    async def _recompute(self, task_ids: Iterable[uuid.UUID]) -> None:
        for state in (await self.resolve_many(task_ids)).values():
            if self._dispatcher is not None:
                await self._dispatcher.publish(BlockingStateChanged(state=state))
