"""
Start Node Promotion.

A non-empty flowchart has exactly one start node. After every node is
added or removed, after a bulk load and after a node's start flag is
edited, the marks are normalised:

- a single remaining node is always the start node;
- with no node marked, the first node is promoted;
- with several marked, a node explicitly promoted by the last edit keeps
  the mark, otherwise the first marked node does.
"""

from typing import TYPE_CHECKING, List, Optional

import structlog

from .events import GraphEvent, GraphLoaded, NodeAdded, NodeRemoved, NodeUpdated

if TYPE_CHECKING:
    from .store import FlowGraphStore

logger = structlog.get_logger(__name__)


def normalize_start_node(store: "FlowGraphStore", prefer: Optional[str] = None) -> Optional[str]:
    """
    Enforce the single-start-node rule on a store.

    Args:
        store: Store to normalise
        prefer: Node that keeps the mark if it is marked

    Returns:
        The id of the start node, or None for an empty graph
    """
    nodes = store.nodes
    if not nodes:
        return None

    marked: List[str] = [n.id for n in nodes if n.is_start_node]
    if prefer in marked:
        keep = prefer
    else:
        keep = marked[0] if marked else nodes[0].id

    if not marked:
        logger.info("start_node_promoted", node_id=keep)
        store.update_node_data(keep, is_start_node=True)

    for node_id in marked:
        if node_id != keep:
            logger.info("start_node_demoted", node_id=node_id, kept=keep)
            store.update_node_data(node_id, is_start_node=False)

    return keep


class StartNodeReducer:
    """Runs start-node normalisation after structural changes."""

    handles = (NodeAdded, NodeRemoved, GraphLoaded, NodeUpdated)

    def __init__(self, store: "FlowGraphStore"):
        self.store = store

    def __call__(self, event: GraphEvent) -> None:
        if isinstance(event, NodeUpdated):
            if not event.changed("is_start_node"):
                return
            prefer = event.node_id if event.changes["is_start_node"] else None
            normalize_start_node(self.store, prefer=prefer)
            return

        normalize_start_node(self.store)


__all__ = ["normalize_start_node", "StartNodeReducer"]
