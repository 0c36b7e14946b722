"""
Flow Graph Store.

Holds the canonical node and edge sets of one editing session and exposes
the atomic mutations the editor is allowed to perform. Every mutation is
published on the store's ``GraphEventDispatcher``; the default reducers
(condition sync, timing inference, manual-timing flag, start-node
promotion) are installed on construction.
"""

from contextlib import contextmanager
from dataclasses import fields
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Union

import structlog

from ..config import EditorSettings, SourceHandle, get_settings
from ..exceptions import EdgeNotFoundError, NodeNotFoundError
from ..models import FlowEdge, MessageNode, Position, Timing, edge_id_for
from .events import (
    EdgeAdded,
    EdgeRemoved,
    EdgeUpdated,
    GraphEvent,
    GraphEventDispatcher,
    GraphLoaded,
    NodeAdded,
    NodeRemoved,
    NodeUpdated,
)

logger = structlog.get_logger(__name__)

HandleLike = Union[SourceHandle, str, None]
Listener = Callable[["FlowGraphStore"], None]

_NODE_FIELDS = {f.name for f in fields(MessageNode)} - {"id"}

# Handle names the canvas uses for the plain output
_PLAIN_HANDLE_NAMES = {"", "source", "default"}


def normalize_handle(handle: HandleLike) -> Optional[SourceHandle]:
    """Coerce a handle name to ``SourceHandle`` (``None`` for plain)."""
    if handle is None or isinstance(handle, SourceHandle):
        return handle
    if handle in _PLAIN_HANDLE_NAMES:
        return None
    return SourceHandle(handle)


class FlowGraphStore:
    """
    Canonical graph state for one editor session.

    Nodes and edges keep insertion order; "first node" always means the
    earliest inserted node still present.
    """

    def __init__(
        self,
        settings: Optional[EditorSettings] = None,
        dispatcher: Optional[GraphEventDispatcher] = None,
        install_reducers: bool = True,
    ):
        self.settings = settings or get_settings()
        self.dispatcher = dispatcher or GraphEventDispatcher()

        self._nodes: Dict[str, MessageNode] = {}
        self._edges: Dict[str, FlowEdge] = {}

        self._listeners: List[Listener] = []
        self._depth = 0

        if install_reducers:
            from .reducers import install_default_reducers

            install_default_reducers(self)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def nodes(self) -> List[MessageNode]:
        return list(self._nodes.values())

    @property
    def edges(self) -> List[FlowEdge]:
        return list(self._edges.values())

    @property
    def node_ids(self) -> List[str]:
        return list(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[MessageNode]:
        return iter(self.nodes)

    def get_node(self, node_id: str) -> MessageNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def get_edge(self, edge_id: str) -> FlowEdge:
        edge = self._edges.get(edge_id)
        if edge is None:
            raise EdgeNotFoundError(edge_id)
        return edge

    def has_edge(self, edge_id: str) -> bool:
        return edge_id in self._edges

    def outgoing_edges(self, node_id: str) -> List[FlowEdge]:
        return [e for e in self._edges.values() if e.source == node_id]

    def incoming_edges(self, node_id: str) -> List[FlowEdge]:
        return [e for e in self._edges.values() if e.target == node_id]

    def has_outgoing_edge(self, node_id: str) -> bool:
        return any(e.source == node_id for e in self._edges.values())

    def has_incoming_edge(self, node_id: str) -> bool:
        return any(e.target == node_id for e in self._edges.values())

    def find_edge(self, source: str, handle: HandleLike = None) -> Optional[FlowEdge]:
        """The unique edge leaving ``source`` through ``handle``, if any."""
        handle = normalize_handle(handle)
        for edge in self._edges.values():
            if edge.source == source and edge.source_handle == handle:
                return edge
        return None

    @property
    def start_node(self) -> Optional[MessageNode]:
        for node in self._nodes.values():
            if node.is_start_node:
                return node
        return None

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        """Call ``listener(store)`` after each completed top-level mutation."""
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @contextmanager
    def _operation(self) -> Iterator[None]:
        self._depth += 1
        try:
            yield
        finally:
            self._depth -= 1
        if self._depth == 0:
            for listener in list(self._listeners):
                listener(self)

    def batch(self):
        """Group several mutations so listeners are notified once."""
        return self._operation()

    def _emit(self, events: Iterable[GraphEvent]) -> None:
        for event in events:
            self.dispatcher.publish(event)

    # -------------------------------------------------------------------------
    # Node mutations
    # -------------------------------------------------------------------------

    def add_node(self, node: MessageNode) -> MessageNode:
        """Insert a node. The first node of an empty graph becomes the start node."""
        if node.id in self._nodes:
            raise ValueError(f"Duplicate node id: {node.id}")

        with self._operation():
            if not self._nodes:
                node.is_start_node = True
            self._nodes[node.id] = node
            logger.debug("node_added", node_id=node.id, start=node.is_start_node)
            self._emit([NodeAdded(node_id=node.id)])
        return node

    def update_node_data(self, node_id: str, **changes: Any) -> MessageNode:
        """Shallow-merge ``changes`` into one node."""
        node = self.get_node(node_id)

        unknown = set(changes) - _NODE_FIELDS
        if unknown:
            raise ValueError(f"Unknown node fields: {', '.join(sorted(unknown))}")

        if "timing" in changes and isinstance(changes["timing"], dict):
            changes["timing"] = Timing(**changes["timing"])
        if "position" in changes and isinstance(changes["position"], dict):
            changes["position"] = Position(**changes["position"])
        for key in ("yes_destination", "no_destination"):
            if key in changes:
                changes[key] = changes[key] or None

        with self._operation():
            previous = {key: getattr(node, key) for key in changes}
            for key, value in changes.items():
                if isinstance(value, list):
                    value = list(value)
                setattr(node, key, value)
            self._emit([NodeUpdated(node_id=node_id, changes=dict(changes), previous=previous)])
        return node

    def delete_node(self, node_id: str) -> MessageNode:
        """Remove a node and every edge that starts or ends at it."""
        node = self.get_node(node_id)

        with self._operation():
            del self._nodes[node_id]

            events: List[GraphEvent] = []
            for edge in [e for e in self._edges.values() if node_id in (e.source, e.target)]:
                events.extend(self._detach_edge(edge))
            events.append(NodeRemoved(node_id=node_id))

            logger.debug("node_deleted", node_id=node_id, edges_removed=len(events) - 1)
            self._emit(events)
        return node

    # -------------------------------------------------------------------------
    # Edge mutations
    # -------------------------------------------------------------------------

    def connect(self, source: str, source_handle: HandleLike, target: str) -> FlowEdge:
        """
        Connect ``source`` (through ``source_handle``) to ``target``.

        An existing edge from the same (source, handle) is replaced and its
        destination field cleared before the new edge is inserted.
        """
        handle = normalize_handle(source_handle)
        source_node = self.get_node(source)
        self.get_node(target)

        with self._operation():
            events: List[GraphEvent] = []

            existing = self.find_edge(source, handle)
            if existing is not None:
                logger.debug("edge_replaced", edge_id=existing.id)
                events.extend(self._detach_edge(existing))

            edge = FlowEdge(
                id=edge_id_for(source, target, handle),
                source=source,
                target=target,
                source_handle=handle,
            )
            self._edges[edge.id] = edge

            events.extend(self._assign_destination(source_node, handle, target))
            events.append(
                EdgeAdded(edge_id=edge.id, source=source, target=target, source_handle=handle)
            )

            logger.debug(
                "edge_connected",
                edge_id=edge.id,
                handle=handle.value if handle else None,
            )
            self._emit(events)
        return edge

    def disconnect_edge(self, edge_id: str) -> FlowEdge:
        """Remove an edge, clearing the destination field it backed."""
        edge = self.get_edge(edge_id)

        with self._operation():
            self._emit(self._detach_edge(edge))
        return edge

    def set_edge_handle(self, edge_id: str, source_handle: HandleLike) -> FlowEdge:
        """
        Reinterpret an edge in place under a different handle.

        The edge id and endpoints are kept. Destination fields follow the
        handle, and any other edge already using the new handle is removed.
        """
        edge = self.get_edge(edge_id)
        handle = normalize_handle(source_handle)
        if edge.source_handle == handle:
            return edge

        with self._operation():
            events: List[GraphEvent] = []

            clash = self.find_edge(edge.source, handle)
            if clash is not None:
                events.extend(self._detach_edge(clash))

            old_handle = edge.source_handle
            source_node = self._nodes.get(edge.source)
            if source_node is not None:
                events.extend(self._assign_destination(source_node, old_handle, None))
                events.extend(self._assign_destination(source_node, handle, edge.target))

            edge.source_handle = handle
            events.append(
                EdgeUpdated(
                    edge_id=edge.id,
                    source=edge.source,
                    target=edge.target,
                    old_handle=old_handle,
                    new_handle=handle,
                )
            )
            self._emit(events)
        return edge

    # -------------------------------------------------------------------------
    # Bulk load
    # -------------------------------------------------------------------------

    def load(self, nodes: Iterable[MessageNode], edges: Iterable[FlowEdge]) -> None:
        """
        Replace the whole graph.

        Persisted timing is kept as-is; only start-node normalisation runs.
        Edges pointing at unknown nodes, or duplicating an occupied
        (source, handle) pair, are dropped.
        """
        with self._operation():
            self._nodes = {}
            for node in nodes:
                if node.id in self._nodes:
                    raise ValueError(f"Duplicate node id: {node.id}")
                self._nodes[node.id] = node

            self._edges = {}
            occupied = set()
            for edge in edges:
                key = (edge.source, edge.source_handle)
                if edge.source not in self._nodes or edge.target not in self._nodes:
                    logger.warning("edge_dropped_dangling", edge_id=edge.id)
                    continue
                if key in occupied:
                    logger.warning("edge_dropped_duplicate_handle", edge_id=edge.id)
                    continue
                occupied.add(key)
                self._edges[edge.id] = edge

            logger.info("graph_loaded", nodes=len(self._nodes), edges=len(self._edges))
            self._emit([GraphLoaded(node_count=len(self._nodes), edge_count=len(self._edges))])

    def clear(self) -> None:
        self.load([], [])

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _detach_edge(self, edge: FlowEdge) -> List[GraphEvent]:
        """Drop an edge and clear the destination it backed."""
        self._edges.pop(edge.id, None)
        events: List[GraphEvent] = []

        source_node = self._nodes.get(edge.source)
        if source_node is not None and source_node.destination_for(edge.source_handle) == edge.target:
            events.extend(self._assign_destination(source_node, edge.source_handle, None))

        events.append(
            EdgeRemoved(
                edge_id=edge.id,
                source=edge.source,
                target=edge.target,
                source_handle=edge.source_handle,
            )
        )
        return events

    def _assign_destination(
        self,
        node: MessageNode,
        handle: Optional[SourceHandle],
        target: Optional[str],
    ) -> List[GraphEvent]:
        if handle == SourceHandle.YES:
            key = "yes_destination"
        elif handle == SourceHandle.NO:
            key = "no_destination"
        else:
            return []

        previous = getattr(node, key)
        setattr(node, key, target)
        return [NodeUpdated(node_id=node.id, changes={key: target}, previous={key: previous})]


__all__ = ["FlowGraphStore", "normalize_handle"]
