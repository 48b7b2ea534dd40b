from taskgraph.services.engine import DependencyEngine
from taskgraph.services.events import (
    BlockingStateChanged,
    EdgeSetChanged,
    EventType,
    GraphEventDispatcher,
    TaskStatusChanged,
)
from taskgraph.services.graph import ChainEntry, CycleCheck, detect_cycle, find_cycle, format_cycle_path
from taskgraph.services.status import BlockingState
from taskgraph.services.validator import DependencyInput

__all__ = [
    "DependencyEngine",
    "DependencyInput",
    "BlockingState",
    "ChainEntry",
    "CycleCheck",
    "detect_cycle",
    "find_cycle",
    "format_cycle_path",
    "GraphEventDispatcher",
    "EventType",
    "EdgeSetChanged",
    "TaskStatusChanged",
    "BlockingStateChanged",
]
