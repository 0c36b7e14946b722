"""
Graph Mutation Events

Every structural change made by the graph store is published as a
``GraphEvent``. Reducers subscribe to the event types they care about
(condition sync, timing inference, start-node promotion) and react by
calling back into the store, which may publish further events.

Dispatch is synchronous and FIFO: events published while a reducer is
running are queued and handled after the current event, so one user
action is fully reconciled before ``publish`` returns.
"""

from collections import defaultdict, deque
from dataclasses import dataclass, field
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple, Type

import structlog

from ..config import SourceHandle

logger = structlog.get_logger(__name__)


# =============================================================================
# EVENTS
# =============================================================================


@dataclass(frozen=True)
class GraphEvent:
    """Base class for graph mutation events."""


@dataclass(frozen=True)
class NodeAdded(GraphEvent):
    node_id: str


@dataclass(frozen=True)
class NodeUpdated(GraphEvent):
    """A shallow merge into one node.

    ``changes`` holds the new values, ``previous`` the values they replaced.
    """

    node_id: str
    changes: Dict[str, Any] = field(default_factory=dict)
    previous: Dict[str, Any] = field(default_factory=dict)

    def changed(self, key: str) -> bool:
        return key in self.changes


@dataclass(frozen=True)
class NodeRemoved(GraphEvent):
    node_id: str


@dataclass(frozen=True)
class EdgeAdded(GraphEvent):
    edge_id: str
    source: str
    target: str
    source_handle: Optional[SourceHandle] = None


@dataclass(frozen=True)
class EdgeUpdated(GraphEvent):
    """An edge reinterpreted in place; its id and endpoints are kept."""

    edge_id: str
    source: str
    target: str
    old_handle: Optional[SourceHandle] = None
    new_handle: Optional[SourceHandle] = None


@dataclass(frozen=True)
class EdgeRemoved(GraphEvent):
    edge_id: str
    source: str
    target: str
    source_handle: Optional[SourceHandle] = None


@dataclass(frozen=True)
class GraphLoaded(GraphEvent):
    node_count: int
    edge_count: int


Reducer = Callable[[GraphEvent], None]


# =============================================================================
# DISPATCHER
# =============================================================================


class GraphEventDispatcher:
    """
    Synchronous in-process event dispatcher.

    Reducers are called in subscription order. The dispatcher keeps a
    bounded history of handled events for auditing and tests.
    """

    def __init__(self, max_history: int = 1000):
        self._reducers: Dict[Type[GraphEvent], List[Reducer]] = defaultdict(list)
        self._queue: Deque[GraphEvent] = deque()
        self._dispatching = False
        self._history: Deque[GraphEvent] = deque(maxlen=max_history)

    def subscribe(self, event_type: Type[GraphEvent], reducer: Reducer) -> None:
        """Register a reducer for one event type."""
        self._reducers[event_type].append(reducer)

    def subscribe_many(
        self,
        event_types: Tuple[Type[GraphEvent], ...],
        reducer: Reducer,
    ) -> None:
        for event_type in event_types:
            self.subscribe(event_type, reducer)

    def unsubscribe(self, event_type: Type[GraphEvent], reducer: Reducer) -> bool:
        reducers = self._reducers.get(event_type, [])
        if reducer in reducers:
            reducers.remove(reducer)
            return True
        return False

    @property
    def is_dispatching(self) -> bool:
        return self._dispatching

    @property
    def history(self) -> List[GraphEvent]:
        return list(self._history)

    def clear_history(self) -> None:
        self._history.clear()

    def publish(self, event: GraphEvent) -> None:
        """Queue an event and drain the queue unless already draining."""
        self._queue.append(event)
        if self._dispatching:
            return

        self._dispatching = True
        try:
            while self._queue:
                current = self._queue.popleft()
                self._history.append(current)
                logger.debug("graph_event", event_type=type(current).__name__, payload=current)
                for reducer in list(self._reducers.get(type(current), [])):
                    reducer(current)
        finally:
            self._dispatching = False
            self._queue.clear()


__all__ = [
    "GraphEvent",
    "NodeAdded",
    "NodeUpdated",
    "NodeRemoved",
    "EdgeAdded",
    "EdgeUpdated",
    "EdgeRemoved",
    "GraphLoaded",
    "Reducer",
    "GraphEventDispatcher",
]
