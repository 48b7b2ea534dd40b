"""
Task routes for the Taskgraph API.

The task store is the reference task repository: it owns task rows and
status, calls the cascade hook on delete and applies the soft-block policy
when a task is started.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from taskgraph.database import commit, get_session, storage_errors
from taskgraph.deps import get_engine
from taskgraph.exceptions import TaskBlockedError, TaskNotFoundError
from taskgraph.logging_config import get_logger
from taskgraph.models import Dependency, Task, TaskStatus
from taskgraph.models.dependency import utcnow
from taskgraph.schemas import (
    BlockingStateRead,
    ChainEntryRead,
    DependencyCountRead,
    DependencyRead,
    TaskCreate,
    TaskRead,
    TaskUpdate,
)
from taskgraph.services.engine import DependencyEngine
from taskgraph.services.graph import ChainEntry
from taskgraph.services.task_repository import lookup_titles

logger = get_logger(__name__)

router = APIRouter()


async def _get_task_or_404(session: AsyncSession, task_id: uuid.UUID) -> Task:
    with storage_errors("get_task"):
        task = await session.get(Task, task_id)
    if not task:
        raise TaskNotFoundError(str(task_id))
    return task


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    session: AsyncSession = Depends(get_session),
) -> Task:
    task = Task(**task_in.model_dump())
    with storage_errors("create_task"):
        session.add(task)
        await session.flush()
        await session.refresh(task)
    await commit(session)

    logger.info(f"Created task: id={task.id} title='{task.title}' status={task.status.value}")
    return task


@router.get("/", response_model=list[TaskRead])
async def list_tasks(
    task_status: TaskStatus | None = None,
    session: AsyncSession = Depends(get_session),
) -> list[Task]:
    """List tasks, optionally filtered by status."""
    query = select(Task)
    if task_status:
        query = query.where(Task.status == task_status)

    with storage_errors("list_tasks"):
        result = await session.execute(query.order_by(Task.created_at))
        tasks = list(result.scalars().all())

    logger.debug(f"Listed {len(tasks)} tasks")
    return tasks


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
) -> Task:
    """Get a task by ID."""
    return await _get_task_or_404(session, task_id)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    session: AsyncSession = Depends(get_session),
    engine: DependencyEngine = Depends(get_engine),
) -> Task:
    """
    Update a task.

    Starting a blocked task (status -> in-progress) is refused with
    TASK_BLOCKED unless force=true. A status change notifies the engine so
    the tasks it blocks are recomputed.
    """
    task = await _get_task_or_404(session, task_id)

    update_data = task_in.model_dump(exclude_unset=True, exclude={"force"})
    logger.info(f"Updating task {task_id}: {update_data}")

    new_status = update_data.get("status")
    status_changed = new_status is not None and new_status != task.status

    if status_changed and new_status == TaskStatus.IN_PROGRESS:
        state = await engine.get_blocking_state(task_id)
        if state.is_blocked:
            if not task_in.force:
                logger.warning(f"Start of blocked task {task_id} refused: {state.blocking_tasks}")
                raise TaskBlockedError(str(task_id), state.blocking_tasks)
            logger.warning(f"Blocked task {task_id} started with override")

    for field, value in update_data.items():
        setattr(task, field, value)
    task.updated_at = utcnow()

    with storage_errors("update_task"):
        await session.flush()
        await session.refresh(task)

    if status_changed:
        await engine.notify_task_status_changed(task_id, task.status)

    await commit(session)
    return task


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    engine: DependencyEngine = Depends(get_engine),
) -> None:
    """
    Delete a task.

    Every dependency touching the task is removed in the same transaction;
    if that cascade fails the task is kept.
    """
    task = await _get_task_or_404(session, task_id)

    logger.info(f"Deleting task {task_id}: '{task.title}'")

    result = await engine.delete_dependencies_for_task(task_id)
    logger.debug(f"Task {task_id} cascade removed {result.deleted_count} dependencies")

    with storage_errors("delete_task"):
        await session.delete(task)
        await session.flush()
    await commit(session)


# =============================================================================
# Dependency views for a single task
# =============================================================================

@router.get("/{task_id}/blockers", response_model=list[DependencyRead])
async def list_blockers(
    task_id: uuid.UUID,
    engine: DependencyEngine = Depends(get_engine),
) -> list[Dependency]:
    """What blocks this task."""
    return await engine.get_dependencies_for_task(task_id)


@router.get("/{task_id}/dependents", response_model=list[DependencyRead])
async def list_dependents(
    task_id: uuid.UUID,
    engine: DependencyEngine = Depends(get_engine),
) -> list[Dependency]:
    """What this task blocks."""
    return await engine.get_tasks_blocked_by(task_id)


@router.get("/{task_id}/dependency-count", response_model=DependencyCountRead)
async def dependency_count(
    task_id: uuid.UUID,
    engine: DependencyEngine = Depends(get_engine),
) -> DependencyCountRead:
    return DependencyCountRead(
        task_id=task_id,
        count=await engine.get_dependency_count(task_id),
        limit=engine.max_dependencies,
    )


@router.get("/{task_id}/blocking-state", response_model=BlockingStateRead)
async def blocking_state(
    task_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    engine: DependencyEngine = Depends(get_engine),
) -> BlockingStateRead:
    await _get_task_or_404(session, task_id)
    state = await engine.get_blocking_state(task_id)
    return BlockingStateRead.model_validate(state)


async def _chain_view(engine: DependencyEngine, entries: list[ChainEntry]) -> list[ChainEntryRead]:
    titles = await lookup_titles(engine.tasks, [entry.task_id for entry in entries])
    return [
        ChainEntryRead(
            task_id=entry.task_id,
            dependency_id=entry.dependency_id,
            depth=entry.depth,
            title=titles.get(entry.task_id),
        )
        for entry in entries
    ]


@router.get("/{task_id}/upstream", response_model=list[ChainEntryRead])
async def upstream(
    task_id: uuid.UUID,
    engine: DependencyEngine = Depends(get_engine),
) -> list[ChainEntryRead]:
    """Every task that transitively blocks this one, nearest first."""
    return await _chain_view(engine, await engine.get_upstream(task_id))


@router.get("/{task_id}/downstream", response_model=list[ChainEntryRead])
async def downstream(
    task_id: uuid.UUID,
    engine: DependencyEngine = Depends(get_engine),
) -> list[ChainEntryRead]:
    """Every task this one transitively blocks, nearest first."""
    return await _chain_view(engine, await engine.get_downstream(task_id))
