"""
Cascade controller: removes every edge touching a task that is being deleted.

Must run inside the transaction that deletes the task. Any failure, or any
edge left behind after the batch, raises StorageUnavailableError so the
task deletion rolls back with it.
"""

import uuid
from dataclasses import dataclass, field

from taskgraph.exceptions import StorageUnavailableError
from taskgraph.logging_config import get_logger
from taskgraph.models import Dependency
from taskgraph.services.storage import EdgeStore

logger = get_logger(__name__)


@dataclass
class CascadeResult:
    deleted_count: int
    dependent_task_ids: set[uuid.UUID] = field(default_factory=set)
    blocking_task_ids: set[uuid.UUID] = field(default_factory=set)


class CascadeController:
    def __init__(self, store: EdgeStore):
        self.store = store

    async def delete_dependencies_for_task(self, task_id: uuid.UUID) -> CascadeResult:
        touching = (Dependency.dependent_task_id == task_id) | (Dependency.blocking_task_id == task_id)

        edges = await self.store.list_where(touching)
        result = CascadeResult(
            deleted_count=0,
            # Former neighbours whose blocking state may change
            dependent_task_ids={e.dependent_task_id for e in edges if e.blocking_task_id == task_id},
            blocking_task_ids={e.blocking_task_id for e in edges if e.dependent_task_id == task_id},
        )

        result.deleted_count = await self.store.delete_where(touching)

        remaining = await self.store.list_where(touching)
        if remaining:
            logger.error(f"Cascade for task {task_id} left {len(remaining)} edge(s) behind")
            raise StorageUnavailableError(
                "delete_dependencies_for_task",
                reason=f"{len(remaining)} edge(s) still reference task {task_id}",
            )

        logger.info(f"Cascade removed {result.deleted_count} dependencies for task {task_id}")
        return result
