"""
Pytest configuration and fixtures for Taskgraph tests.
"""

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

import taskgraph.models  # noqa: F401  (registers tables)
from taskgraph.config import Settings
from taskgraph.database import get_session, get_session_context
from taskgraph.main import app
from taskgraph.models import Task, TaskStatus
from taskgraph.services import DependencyEngine


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a test database engine on a throwaway SQLite file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'taskgraph_test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_session(test_engine):
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def graph(test_session):
    """A dependency engine bound to the test session, default limit of 10."""
    return DependencyEngine(test_session, settings=Settings(max_dependencies_per_task=10))


@pytest_asyncio.fixture(scope="function")
async def make_tasks(test_session):
    """Factory: ``await make_tasks("A", "B", status=...)`` returns {title: Task}."""

    async def _make(*titles, status=TaskStatus.PENDING):
        tasks = {title: Task(title=title, status=status) for title in titles}
        test_session.add_all(tasks.values())
        await test_session.flush()
        return tasks

    return _make


@pytest_asyncio.fixture(scope="function")
async def client(test_engine):
    """Create an async test client with test database."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async def override_get_session():
        async with get_session_context(async_session_maker) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
