"""
Dependency validator.

Runs the pre-commit checks in a fixed order and stops at the first failure:

1. both tasks exist            -> TASK_NOT_FOUND
2. no self reference           -> SELF_REFERENCE
3. no identical edge           -> DUPLICATE
4. in-degree stays <= limit    -> LIMIT_EXCEEDED
5. no cycle                    -> CIRCULAR (with path)

Nothing is written until every check passes, so a rejected request leaves
storage untouched. Status recomputation is the caller's job.
"""

import uuid
from dataclasses import dataclass

from taskgraph.exceptions import (
    CircularDependencyError,
    DependencyNotFoundError,
    DuplicateDependencyError,
    LimitExceededError,
    SelfReferenceError,
    TaskNotFoundError,
)
from taskgraph.logging_config import get_logger
from taskgraph.models import Dependency
from taskgraph.services.graph import detect_cycle
from taskgraph.services.storage import EdgeStore
from taskgraph.services.task_repository import TaskRepository

logger = get_logger(__name__)


@dataclass(frozen=True)
class DependencyInput:
    dependent_task_id: uuid.UUID
    blocking_task_id: uuid.UUID
    created_by: str | None = None


class DependencyValidator:
    def __init__(self, store: EdgeStore, tasks: TaskRepository, max_dependencies: int = 10):
        self.store = store
        self.tasks = tasks
        self.max_dependencies = max_dependencies

    async def validate(self, dependent_task_id: uuid.UUID, blocking_task_id: uuid.UUID) -> None:
        """Raise the first violated rule for the proposed edge."""
        for task_id in (dependent_task_id, blocking_task_id):
            if not await self.tasks.task_exists(task_id):
                logger.warning(f"Dependency rejected, unknown task: {task_id}")
                raise TaskNotFoundError(str(task_id))

        if dependent_task_id == blocking_task_id:
            logger.warning(f"Self-dependency rejected: {dependent_task_id}")
            raise SelfReferenceError(str(dependent_task_id))

        if await self.store.find(dependent_task_id, blocking_task_id) is not None:
            logger.warning(f"Duplicate dependency rejected: {dependent_task_id} -> {blocking_task_id}")
            raise DuplicateDependencyError(str(dependent_task_id), str(blocking_task_id))

        current = await self.store.count_by_dependent(dependent_task_id)
        if current >= self.max_dependencies:
            logger.warning(
                f"Dependency limit reached for {dependent_task_id}: "
                f"{current}/{self.max_dependencies}"
            )
            raise LimitExceededError(str(dependent_task_id), self.max_dependencies)

        logger.debug(f"Running cycle detection for {dependent_task_id} -> {blocking_task_id}")
        check = detect_cycle(dependent_task_id, blocking_task_id, await self.store.list_all())
        if check.would_cycle:
            logger.warning(
                f"Cycle detected: {dependent_task_id} -> {blocking_task_id} "
                f"would close {check.path}"
            )
            raise CircularDependencyError(check.path)

    async def create_dependency(self, dep_in: DependencyInput) -> Dependency:
        await self.validate(dep_in.dependent_task_id, dep_in.blocking_task_id)

        dependency = await self.store.put(
            Dependency(
                dependent_task_id=dep_in.dependent_task_id,
                blocking_task_id=dep_in.blocking_task_id,
                created_by=dep_in.created_by,
            )
        )
        logger.info(
            f"Created dependency {dependency.id}: "
            f"{dependency.dependent_task_id} depends on {dependency.blocking_task_id}"
        )
        return dependency

    async def delete_dependency(self, dependency_id: uuid.UUID) -> Dependency:
        """Delete one edge by id. Returns the removed edge."""
        dependency = await self.store.get(dependency_id)
        if dependency is None:
            raise DependencyNotFoundError(str(dependency_id))

        edge = f"{dependency.dependent_task_id} -> {dependency.blocking_task_id}"
        await self.store.delete_by_id(dependency_id)
        logger.info(f"Deleted dependency {dependency_id}: {edge}")
        return dependency
