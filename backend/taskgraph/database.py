from contextlib import asynccontextmanager, contextmanager
from typing import AsyncGenerator, Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from taskgraph.config import get_settings
from taskgraph.exceptions import StorageUnavailableError
from taskgraph.logging_config import get_logger

logger = get_logger(__name__)

settings = get_settings()


def build_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine, with pool tuning for server databases."""
    if database_url.startswith("sqlite"):
        # SQLite gets its own pool class; pool sizing arguments are rejected
        return create_async_engine(database_url, echo=echo, future=True)
    return create_async_engine(
        database_url,
        echo=echo,
        future=True,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=1800,  # Recycle connections after 30 min
        pool_pre_ping=True,  # Verify connection health before use
    )


engine = build_engine(settings.database_url, echo=settings.debug)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Re-raise database failures as StorageUnavailableError."""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(f"Storage failure during {operation}: {exc}")
        raise StorageUnavailableError(operation, reason=str(exc)) from exc


async def init_db() -> None:
    """Initialize database tables."""
    # Registers the tables on SQLModel.metadata
    import taskgraph.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def commit(session: AsyncSession) -> None:
    """Make the session's writes durable."""
    with storage_errors("commit"):
        await session.commit()


@asynccontextmanager
async def get_session_context(
    session_maker: async_sessionmaker | None = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    One session is one transaction: commit on success, roll back on any error.

    Used directly by scripts; get_session wraps it for FastAPI.
    """
    async with (session_maker or async_session_maker)() as session:
        try:
            yield session
            await commit(session)
        except Exception:
            await session.rollback()
            raise


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with get_session_context() as session:
        yield session
