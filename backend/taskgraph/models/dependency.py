import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Dependency(SQLModel, table=True):
    """
    Dependency model representing a directed edge in the task graph.

    dependent_task_id -> blocking_task_id means:
    "The dependent task cannot start until the blocking task is completed"

    Example: If Task B depends on Task A:
    - dependent_task_id = B.id (the blocked)
    - blocking_task_id = A.id (the blocker)

    Edges are immutable: they are created and deleted, never updated.
    Endpoints are plain indexed columns because task rows belong to the
    task repository; dangling edges are removed by the cascade controller.
    """

    __tablename__ = "task_dependencies"
    __table_args__ = (
        UniqueConstraint(
            "dependent_task_id",
            "blocking_task_id",
            name="uq_task_dependency_edge",
        ),
        CheckConstraint(
            "dependent_task_id != blocking_task_id",
            name="ck_task_dependency_no_self",
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    dependent_task_id: uuid.UUID = Field(index=True, nullable=False)
    blocking_task_id: uuid.UUID = Field(index=True, nullable=False)
    created_by: str | None = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow)
