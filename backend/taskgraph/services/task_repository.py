"""
Task repository seam.

The engine never writes tasks. It asks the repository two questions through
the TaskRepository protocol; SqlTaskRepository answers them from the local
tasks table.
"""

import uuid
from typing import Iterable, Protocol

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from taskgraph.models import Task, TaskStatus
from taskgraph.database import storage_errors


class TaskRepository(Protocol):
    """
    What the engine needs from a task store.

    A repository may also provide ``get_titles(task_ids) -> {id: title}``;
    when it does, cycle chains and upstream/downstream views show titles
    instead of raw ids.
    """

    async def task_exists(self, task_id: uuid.UUID) -> bool: ...

    async def get_task_status(self, task_id: uuid.UUID) -> TaskStatus | None: ...


async def lookup_titles(tasks: TaskRepository, task_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, str]:
    get_titles = getattr(tasks, "get_titles", None)
    if get_titles is None:
        return {}
    return await get_titles(task_ids)


class SqlTaskRepository:
    """TaskRepository backed by the tasks table in the same session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def task_exists(self, task_id: uuid.UUID) -> bool:
        with storage_errors("task_exists"):
            return await self.session.get(Task, task_id) is not None

    async def get_task_status(self, task_id: uuid.UUID) -> TaskStatus | None:
        with storage_errors("get_task_status"):
            task = await self.session.get(Task, task_id)
        return task.status if task else None

    async def get_titles(self, task_ids: Iterable[uuid.UUID]) -> dict[uuid.UUID, str]:
        """Map task ids to titles, for readable chains."""
        ids = list(set(task_ids))
        if not ids:
            return {}
        with storage_errors("get_titles"):
            result = await self.session.execute(select(Task.id, Task.title).where(Task.id.in_(ids)))
            return {row[0]: row[1] for row in result.all()}
