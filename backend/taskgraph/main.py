"""
Taskgraph - task dependency graph engine with soft blocking and cascade delete.
"""

from fastapi import FastAPI
from contextlib import asynccontextmanager

from taskgraph import __version__
from taskgraph.database import init_db
from taskgraph.routes import tasks, dependencies
from taskgraph.exceptions import register_exception_handlers
from taskgraph.logging_config import setup_logging, get_logger

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting Taskgraph API...")
    await init_db()
    logger.info("Database initialized")
    yield
    logger.info("Shutting down Taskgraph API...")


app = FastAPI(
    title="Taskgraph",
    description="Finish-to-start task dependencies with cycle detection and soft blocking",
    version=__version__,
    lifespan=lifespan,
)

register_exception_handlers(app)

app.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
app.include_router(dependencies.router, prefix="/dependencies", tags=["Dependencies"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
