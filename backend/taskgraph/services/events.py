"""
Instance-scoped event dispatcher for the dependency engine.

Each DependencyEngine owns one GraphEventDispatcher. Components register
explicitly (the StatusResolver subscribes in ``register``); nothing listens
on a global bus.

Usage:
    dispatcher = GraphEventDispatcher()
    dispatcher.subscribe(EventType.BLOCKING_STATE_CHANGED, on_state)
    await dispatcher.publish(TaskStatusChanged(task_id=..., status=...))
"""

import inspect
import itertools
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from taskgraph.logging_config import get_logger

logger = get_logger(__name__)


class EventType(str, Enum):
    EDGE_SET_CHANGED = "edge_set_changed"
    TASK_STATUS_CHANGED = "task_status_changed"
    BLOCKING_STATE_CHANGED = "blocking_state_changed"


@dataclass(frozen=True)
class EdgeSetChanged:
    """One or more edges were created or deleted."""
    dependent_task_ids: frozenset[uuid.UUID]
    blocking_task_ids: frozenset[uuid.UUID] = field(default_factory=frozenset)
    event_type: EventType = EventType.EDGE_SET_CHANGED


@dataclass(frozen=True)
class TaskStatusChanged:
    task_id: uuid.UUID
    status: Any = None
    event_type: EventType = EventType.TASK_STATUS_CHANGED


@dataclass(frozen=True)
class BlockingStateChanged:
    state: Any  # BlockingState
    event_type: EventType = EventType.BLOCKING_STATE_CHANGED


GraphEvent = Union[EdgeSetChanged, TaskStatusChanged, BlockingStateChanged]
EventHandler = Callable[[GraphEvent], Union[None, Awaitable[None]]]


@dataclass
class Subscription:
    handler: EventHandler
    event_type: Optional[EventType]  # None = wildcard
    subscription_id: str


class GraphEventDispatcher:
    """
    Dispatches graph events to subscribers in subscription order.

    Handlers may be plain functions or coroutines. A failing handler
    propagates to the publisher: recomputation errors are not hidden.
    """

    def __init__(self):
        self._subscriptions: list[Subscription] = []
        self._counter = itertools.count(1)

    def subscribe(self, event_type: EventType, handler: EventHandler) -> str:
        """Subscribe to one event type. Returns the subscription id."""
        subscription_id = f"sub_{next(self._counter)}"
        self._subscriptions.append(Subscription(handler, event_type, subscription_id))
        return subscription_id

    def subscribe_all(self, handler: EventHandler) -> str:
        """Subscribe to every event (e.g. a UI refresh bridge)."""
        subscription_id = f"sub_{next(self._counter)}"
        self._subscriptions.append(Subscription(handler, None, subscription_id))
        return subscription_id

    def unsubscribe(self, subscription_id: str) -> bool:
        before = len(self._subscriptions)
        self._subscriptions = [s for s in self._subscriptions if s.subscription_id != subscription_id]
        return len(self._subscriptions) < before

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)

    async def publish(self, event: GraphEvent) -> None:
        # Snapshot: handlers may subscribe while we dispatch
        targets = [
            s for s in self._subscriptions
            if s.event_type is None or s.event_type == event.event_type
        ]
        logger.debug(f"Publishing {event.event_type.value} to {len(targets)} handler(s)")
        for subscription in targets:
            result = subscription.handler(event)
            if inspect.isawaitable(result):
                await result
