import uuid
from datetime import datetime
from enum import Enum

from sqlmodel import Field, SQLModel

from taskgraph.models.dependency import utcnow


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Task(SQLModel, table=True):
    """
    Task model owned by the task repository.

    The dependency engine only reads two things from it: whether a task
    exists and what its status is.
    """

    __tablename__ = "tasks"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(index=True)
    description: str | None = Field(default=None)
    status: TaskStatus = Field(default=TaskStatus.PENDING, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
