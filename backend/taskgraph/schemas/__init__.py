from taskgraph.schemas.task import TaskCreate, TaskUpdate, TaskRead
from taskgraph.schemas.dependency import (
    BlockingStateRead,
    ChainEntryRead,
    CycleCheckRead,
    DependencyCountRead,
    DependencyCreate,
    DependencyRead,
)

__all__ = [
    "TaskCreate",
    "TaskUpdate",
    "TaskRead",
    "DependencyCreate",
    "DependencyRead",
    "CycleCheckRead",
    "DependencyCountRead",
    "ChainEntryRead",
    "BlockingStateRead",
]
