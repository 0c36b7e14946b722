"""
Conditional Branch Synchronization.

Keeps a block's ``has_condition`` flag, its ``yes``/``no`` destination
fields and its outgoing edges telling the same story:

- switching the condition on turns the plain outgoing edge into the
  ``yes`` edge;
- switching it off turns the ``yes`` edge back into the plain edge and
  drops the ``no`` edge;
- picking a destination from the sidebar creates, moves or removes the
  matching edge.
"""

from typing import TYPE_CHECKING, Optional

import structlog

from ..config import SourceHandle
from ..models import MessageNode
from .events import GraphEvent, NodeUpdated

if TYPE_CHECKING:
    from .store import FlowGraphStore

logger = structlog.get_logger(__name__)

_DESTINATION_FIELDS = {
    "yes_destination": SourceHandle.YES,
    "no_destination": SourceHandle.NO,
}


def enable_condition(store: "FlowGraphStore", node_id: str) -> None:
    """Reinterpret the plain outgoing edge of a node as its ``yes`` edge."""
    plain = store.find_edge(node_id, None)
    if plain is None:
        return

    logger.debug("condition_enabled", node_id=node_id, edge_id=plain.id)
    store.set_edge_handle(plain.id, SourceHandle.YES)


def disable_condition(store: "FlowGraphStore", node_id: str) -> None:
    """Reinterpret the ``yes`` edge as plain, drop the ``no`` edge and clear both destinations."""
    yes_edge = store.find_edge(node_id, SourceHandle.YES)
    if yes_edge is not None:
        logger.debug("condition_disabled", node_id=node_id, edge_id=yes_edge.id)
        store.set_edge_handle(yes_edge.id, None)

    no_edge = store.find_edge(node_id, SourceHandle.NO)
    if no_edge is not None:
        store.disconnect_edge(no_edge.id)

    node = store.get_node(node_id)
    if node.yes_destination is not None or node.no_destination is not None:
        store.update_node_data(node_id, yes_destination=None, no_destination=None)


def is_condition_complete(node: MessageNode) -> bool:
    """A branching block needs a question and both destinations."""
    if not node.has_condition:
        return True
    return bool(node.condition_question) and bool(node.yes_destination) and bool(node.no_destination)


class ConditionalBranchReducer:
    """Reacts to ``has_condition`` being set through ``update_node_data``."""

    def __init__(self, store: "FlowGraphStore"):
        self.store = store

    def __call__(self, event: GraphEvent) -> None:
        if not isinstance(event, NodeUpdated) or not event.changed("has_condition"):
            return
        if event.node_id not in self.store:
            return

        if event.changes["has_condition"]:
            enable_condition(self.store, event.node_id)
        else:
            disable_condition(self.store, event.node_id)


class DestinationSyncReducer:
    """
    Mirrors destination fields set directly on a node into edges.

    The comparison is made against the node's current state, so updates
    the store itself makes while connecting or disconnecting are no-ops.
    """

    def __init__(self, store: "FlowGraphStore"):
        self.store = store

    def __call__(self, event: GraphEvent) -> None:
        if not isinstance(event, NodeUpdated) or event.node_id not in self.store:
            return

        for key, handle in _DESTINATION_FIELDS.items():
            if event.changed(key):
                self._reconcile(event.node_id, key, handle)

    def _reconcile(self, node_id: str, key: str, handle: SourceHandle) -> None:
        node = self.store.get_node(node_id)
        desired: Optional[str] = getattr(node, key)
        edge = self.store.find_edge(node_id, handle)

        if desired is None:
            if edge is not None:
                self.store.disconnect_edge(edge.id)
            return

        if edge is not None and edge.target == desired:
            return

        if desired not in self.store:
            logger.warning("destination_unknown", node_id=node_id, field=key, target=desired)
            self.store.update_node_data(node_id, **{key: None})
            return

        self.store.connect(node_id, handle, desired)


__all__ = [
    "enable_condition",
    "disable_condition",
    "is_condition_complete",
    "ConditionalBranchReducer",
    "DestinationSyncReducer",
]
