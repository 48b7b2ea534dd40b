"""
Graph storage adapter.

EdgeStore is the only component that reads or writes dependency rows.
Every call is atomic for its scope (one edge or one batch) within the
caller's session transaction, and every database failure surfaces as
StorageUnavailableError instead of being dropped.
"""

import uuid

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement
from sqlmodel import select

from taskgraph.database import storage_errors
from taskgraph.exceptions import DuplicateDependencyError, StorageUnavailableError
from taskgraph.logging_config import get_logger
from taskgraph.models import Dependency

logger = get_logger(__name__)


class EdgeStore:
    """Durable, indexed store of dependency edges."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def put(self, edge: Dependency) -> Dependency:
        try:
            self.session.add(edge)
            await self.session.flush()
        except IntegrityError as exc:
            # Unique constraint caught a duplicate that slipped past validation
            logger.warning(
                f"Constraint rejected edge {edge.dependent_task_id} -> {edge.blocking_task_id}"
            )
            raise DuplicateDependencyError(
                str(edge.dependent_task_id),
                str(edge.blocking_task_id),
            ) from exc
        except SQLAlchemyError as exc:
            logger.error(f"Storage failure during put: {exc}")
            raise StorageUnavailableError("put", reason=str(exc)) from exc

        with storage_errors("put"):
            await self.session.refresh(edge)
        return edge

    async def get(self, dependency_id: uuid.UUID) -> Dependency | None:
        with storage_errors("get"):
            return await self.session.get(Dependency, dependency_id)

    async def find(
        self,
        dependent_task_id: uuid.UUID,
        blocking_task_id: uuid.UUID,
    ) -> Dependency | None:
        query = select(Dependency).where(
            (Dependency.dependent_task_id == dependent_task_id)
            & (Dependency.blocking_task_id == blocking_task_id)
        )
        with storage_errors("find"):
            result = await self.session.execute(query)
            return result.scalars().first()

    async def delete_by_id(self, dependency_id: uuid.UUID) -> None:
        with storage_errors("delete_by_id"):
            edge = await self.session.get(Dependency, dependency_id)
            if edge is not None:
                await self.session.delete(edge)
                await self.session.flush()

    async def delete_where(self, predicate: ColumnElement[bool]) -> int:
        """
        Delete every edge matching an SQL predicate over the edge columns.

        Example:
            await store.delete_where(
                (Dependency.dependent_task_id == task_id)
                | (Dependency.blocking_task_id == task_id)
            )

        The batch is flushed as one unit; returns the number of deleted edges.
        """
        with storage_errors("delete_where"):
            result = await self.session.execute(select(Dependency).where(predicate))
            edges = list(result.scalars().all())
            for edge in edges:
                await self.session.delete(edge)
            await self.session.flush()
        return len(edges)

    async def list_all(self) -> list[Dependency]:
        return await self._list(select(Dependency), "list_all")

    async def list_by_dependent(self, task_id: uuid.UUID) -> list[Dependency]:
        query = select(Dependency).where(Dependency.dependent_task_id == task_id)
        return await self._list(query, "list_by_dependent")

    async def list_by_blocker(self, task_id: uuid.UUID) -> list[Dependency]:
        query = select(Dependency).where(Dependency.blocking_task_id == task_id)
        return await self._list(query, "list_by_blocker")

    async def list_where(self, predicate: ColumnElement[bool]) -> list[Dependency]:
        return await self._list(select(Dependency).where(predicate), "list_where")

    async def count_by_dependent(self, task_id: uuid.UUID) -> int:
        query = (
            select(func.count())
            .select_from(Dependency)
            .where(Dependency.dependent_task_id == task_id)
        )
        with storage_errors("count_by_dependent"):
            result = await self.session.execute(query)
            return result.scalar_one()

    async def _list(self, query, operation: str) -> list[Dependency]:
        with storage_errors(operation):
            result = await self.session.execute(query.order_by(Dependency.created_at))
            return list(result.scalars().all())
