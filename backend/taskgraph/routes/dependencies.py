"""
Dependency routes for the Taskgraph API.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskgraph.database import commit, get_session
from taskgraph.deps import get_engine
from taskgraph.exceptions import CircularDependencyError, DependencyNotFoundError
from taskgraph.logging_config import get_logger
from taskgraph.models import Dependency
from taskgraph.schemas import CycleCheckRead, DependencyCreate, DependencyRead
from taskgraph.services.engine import DependencyEngine
from taskgraph.services.graph import format_cycle_path
from taskgraph.services.task_repository import lookup_titles
from taskgraph.services.validator import DependencyInput

logger = get_logger(__name__)

router = APIRouter()


async def _readable_chain(engine: DependencyEngine, path: list[uuid.UUID]) -> str:
    titles = await lookup_titles(engine.tasks, path)
    return format_cycle_path(path, titles)


@router.post("/", response_model=DependencyRead, status_code=status.HTTP_201_CREATED)
async def create_dependency(
    dep_in: DependencyCreate,
    session: AsyncSession = Depends(get_session),
    engine: DependencyEngine = Depends(get_engine),
) -> Dependency:
    """
    Create a new dependency: dependent_task_id cannot start until
    blocking_task_id is completed.

    Rejects unknown tasks, self references, duplicates, a full blocker list
    and anything that would close a cycle (the error carries the cycle path).
    """
    logger.info(f"Creating dependency: {dep_in.dependent_task_id} depends on {dep_in.blocking_task_id}")

    try:
        dependency = await engine.create_dependency(
            DependencyInput(
                dependent_task_id=dep_in.dependent_task_id,
                blocking_task_id=dep_in.blocking_task_id,
                created_by=dep_in.created_by,
            )
        )
    except CircularDependencyError as exc:
        path = [uuid.UUID(task_id) for task_id in exc.path]
        raise CircularDependencyError(path, chain=await _readable_chain(engine, path)) from exc

    await commit(session)
    return dependency


@router.get("/", response_model=list[DependencyRead])
async def list_dependencies(
    task_id: uuid.UUID | None = None,
    engine: DependencyEngine = Depends(get_engine),
) -> list[Dependency]:
    """
    List dependencies.

    Optionally filter by task_id: edges where the task is dependent OR blocker.
    """
    if task_id:
        dependencies = await engine.queries.get_incident_dependencies(task_id)
    else:
        dependencies = await engine.get_all_dependencies()

    logger.debug(f"Listed {len(dependencies)} dependencies")
    return dependencies


@router.get("/cycle-check", response_model=CycleCheckRead)
async def check_cycle(
    dependent_task_id: uuid.UUID,
    blocking_task_id: uuid.UUID,
    engine: DependencyEngine = Depends(get_engine),
) -> CycleCheckRead:
    """Pre-flight check used by the dependency selector before submitting."""
    check = await engine.would_create_cycle(dependent_task_id, blocking_task_id)
    if not check.would_cycle:
        return CycleCheckRead(would_cycle=False)
    return CycleCheckRead(
        would_cycle=True,
        path=check.path,
        chain=await _readable_chain(engine, check.path),
    )


@router.get("/{dependency_id}", response_model=DependencyRead)
async def get_dependency(
    dependency_id: uuid.UUID,
    engine: DependencyEngine = Depends(get_engine),
) -> Dependency:
    dependency = await engine.get_dependency(dependency_id)
    if dependency is None:
        raise DependencyNotFoundError(str(dependency_id))
    return dependency


@router.delete("/{dependency_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_dependency(
    dependency_id: uuid.UUID,
    session: AsyncSession = Depends(get_session),
    engine: DependencyEngine = Depends(get_engine),
) -> None:
    """
    Delete a dependency.

    The dependent task may become unblocked; listeners are notified.
    """
    await engine.delete_dependency(dependency_id)
    await commit(session)
