"""
Graph storage adapter tests: primitives and failure propagation.
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from taskgraph.exceptions import DuplicateDependencyError, ErrorCode, StorageUnavailableError
from taskgraph.models import Dependency
from taskgraph.services.cascade import CascadeController
from taskgraph.services.storage import EdgeStore
from taskgraph.services.task_repository import SqlTaskRepository, lookup_titles


def new_edge(dependent, blocking):
    return Dependency(dependent_task_id=dependent, blocking_task_id=blocking)


class TestEdgeStore:

    @pytest.mark.asyncio
    async def test_put_and_list_by_direction(self, test_session):
        store = EdgeStore(test_session)
        a, b, c = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()

        ab = await store.put(new_edge(a, b))
        cb = await store.put(new_edge(c, b))

        assert {d.id for d in await store.list_all()} == {ab.id, cb.id}
        assert [d.id for d in await store.list_by_dependent(a)] == [ab.id]
        assert {d.id for d in await store.list_by_blocker(b)} == {ab.id, cb.id}
        assert await store.list_by_blocker(a) == []
        assert await store.count_by_dependent(a) == 1
        assert (await store.find(c, b)).id == cb.id
        assert await store.find(b, c) is None

    @pytest.mark.asyncio
    async def test_delete_by_id(self, test_session):
        store = EdgeStore(test_session)
        edge = await store.put(new_edge(uuid.uuid4(), uuid.uuid4()))

        await store.delete_by_id(edge.id)

        assert await store.get(edge.id) is None
        assert await store.list_all() == []

    @pytest.mark.asyncio
    async def test_delete_where_counts_matches(self, test_session):
        store = EdgeStore(test_session)
        t, x, y = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        await store.put(new_edge(t, x))
        await store.put(new_edge(y, t))
        keep = await store.put(new_edge(x, y))

        deleted = await store.delete_where(
            (Dependency.dependent_task_id == t) | (Dependency.blocking_task_id == t)
        )

        assert deleted == 2
        assert [d.id for d in await store.list_all()] == [keep.id]

    @pytest.mark.asyncio
    async def test_unique_pair_enforced_by_database(self, test_session):
        """A second identical edge that skipped validation still fails as DUPLICATE."""
        store = EdgeStore(test_session)
        a, b = uuid.uuid4(), uuid.uuid4()
        await store.put(new_edge(a, b))

        with pytest.raises(DuplicateDependencyError) as exc_info:
            await store.put(new_edge(a, b))

        assert exc_info.value.code == ErrorCode.DUPLICATE.value
        assert exc_info.value.status_code == 409


class TestStorageFailures:

    @pytest.fixture
    def broken_session(self):
        session = AsyncMock()
        session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("disk I/O error"))
        session.get.side_effect = OperationalError("SELECT 1", {}, Exception("disk I/O error"))
        return session

    @pytest.mark.asyncio
    async def test_list_failure_is_storage_unavailable(self, broken_session):
        store = EdgeStore(broken_session)

        with pytest.raises(StorageUnavailableError) as exc_info:
            await store.list_all()

        assert exc_info.value.code == ErrorCode.STORAGE_UNAVAILABLE.value
        assert exc_info.value.status_code == 503
        assert isinstance(exc_info.value.__cause__, OperationalError)

    @pytest.mark.asyncio
    async def test_get_failure_is_storage_unavailable(self, broken_session):
        with pytest.raises(StorageUnavailableError):
            await EdgeStore(broken_session).get(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_put_failure_is_storage_unavailable(self):
        session = AsyncMock()
        session.add = lambda obj: None
        session.flush.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))

        with pytest.raises(StorageUnavailableError):
            await EdgeStore(session).put(new_edge(uuid.uuid4(), uuid.uuid4()))

    @pytest.mark.asyncio
    async def test_incomplete_cascade_is_fatal(self, test_session, monkeypatch):
        store = EdgeStore(test_session)
        t = uuid.uuid4()
        await store.put(new_edge(t, uuid.uuid4()))

        async def drops_nothing(predicate):
            return 0

        monkeypatch.setattr(store, "delete_where", drops_nothing)

        with pytest.raises(StorageUnavailableError):
            await CascadeController(store).delete_dependencies_for_task(t)


class StatusOnlyRepository:
    """A task repository that knows statuses but not titles."""

    async def task_exists(self, task_id):
        return True

    async def get_task_status(self, task_id):
        return None


class TestTitleLookup:

    @pytest.mark.asyncio
    async def test_sql_repository_supplies_titles(self, test_session, make_tasks):
        t = await make_tasks("Design", "Build")

        titles = await lookup_titles(SqlTaskRepository(test_session), [t["Design"].id, t["Build"].id])

        assert titles == {t["Design"].id: "Design", t["Build"].id: "Build"}

    @pytest.mark.asyncio
    async def test_repository_without_titles(self):
        assert await lookup_titles(StatusOnlyRepository(), [uuid.uuid4()]) == {}
