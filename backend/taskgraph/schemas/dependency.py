import uuid
from datetime import datetime
from pydantic import BaseModel


class DependencyCreate(BaseModel):
    """Schema for creating a new dependency."""
    dependent_task_id: uuid.UUID  # The blocked task
    blocking_task_id: uuid.UUID   # The blocker task
    created_by: str | None = None


class DependencyRead(BaseModel):
    """Schema for reading a dependency."""
    id: uuid.UUID
    dependent_task_id: uuid.UUID
    blocking_task_id: uuid.UUID
    created_by: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class CycleCheckRead(BaseModel):
    """Pre-flight answer for a proposed dependency."""
    would_cycle: bool
    path: list[uuid.UUID] | None = None
    chain: str | None = None  # e.g. "Design → Build → Test → Design"


class DependencyCountRead(BaseModel):
    task_id: uuid.UUID
    count: int
    limit: int


class ChainEntryRead(BaseModel):
    """One task in a transitive upstream/downstream view."""
    task_id: uuid.UUID
    dependency_id: uuid.UUID
    depth: int
    title: str | None = None

    model_config = {"from_attributes": True}


class BlockingStateRead(BaseModel):
    task_id: uuid.UUID
    is_blocked: bool
    blocking_tasks: list[uuid.UUID]
    blocked_by_ids: list[uuid.UUID]
    blocks_ids: list[uuid.UUID]
    dependency_status: str | None
    dependency_count: int

    model_config = {"from_attributes": True}
