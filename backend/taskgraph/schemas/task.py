import uuid
from datetime import datetime
from pydantic import BaseModel, Field, field_validator

from taskgraph.models.task import TaskStatus


class TaskCreate(BaseModel):
    """Schema for creating a new task."""
    title: str = Field(min_length=1)
    description: str | None = None
    status: TaskStatus = TaskStatus.PENDING


class TaskUpdate(BaseModel):
    """
    Schema for updating a task.

    force: start the task even if it is blocked (soft-block override).
    """
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    status: TaskStatus | None = None
    force: bool = False

    @field_validator("title", "status")
    @classmethod
    def _not_null(cls, v):
        # Omit the field to leave it unchanged
        if v is None:
            raise ValueError("must not be null")
        return v


class TaskRead(BaseModel):
    """Schema for reading a task."""
    id: uuid.UUID
    title: str
    description: str | None
    status: TaskStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
