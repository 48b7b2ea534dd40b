from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskgraph.config import get_settings
from taskgraph.database import get_session
from taskgraph.services.engine import DependencyEngine


async def get_engine(session: AsyncSession = Depends(get_session)) -> DependencyEngine:
    """One engine per request, bound to the request's transaction."""
    return DependencyEngine(session, settings=get_settings())
