"""
Creation Order Resolution.

Blocks must be created on the server so that a block's predecessor
already has a remote id when the block itself is created. The order is a
reverse topological walk seeded at terminal blocks: before a block is
emitted, every block with an edge into it is emitted first.

Cycles are not rejected. The visited guard makes the walk terminate, at
the cost of some predecessor being emitted after its successor.
"""

from typing import Dict, Iterable, List, Sequence, Set

from ..models import FlowEdge


def creation_order(node_ids: Sequence[str], edges: Iterable[FlowEdge]) -> List[str]:
    """
    Compute the order in which blocks should be created.

    Args:
        node_ids: Node ids in insertion order
        edges: Graph edges; edges touching unknown nodes are ignored

    Returns:
        Every node id exactly once, predecessors first
    """
    known = set(node_ids)
    predecessors: Dict[str, List[str]] = {node_id: [] for node_id in node_ids}
    has_outgoing: Set[str] = set()

    for edge in edges:
        if edge.source not in known or edge.target not in known:
            continue
        predecessors[edge.target].append(edge.source)
        has_outgoing.add(edge.source)

    terminals = [node_id for node_id in node_ids if node_id not in has_outgoing]

    visited: Set[str] = set()
    order: List[str] = []

    def visit(root: str) -> None:
        # Iterative form of: visit every unvisited predecessor, then emit.
        if root in visited:
            return
        visited.add(root)
        stack = [(root, iter(predecessors[root]))]

        while stack:
            node_id, pending = stack[-1]
            for source in pending:
                if source not in visited:
                    visited.add(source)
                    stack.append((source, iter(predecessors[source])))
                    break
            else:
                stack.pop()
                order.append(node_id)

    for node_id in terminals:
        visit(node_id)

    # isolated blocks and cycles unreachable from a terminal
    for node_id in node_ids:
        visit(node_id)

    return order


def creation_order_for(store) -> List[str]:
    """Creation order of a ``FlowGraphStore``."""
    return creation_order(store.node_ids, store.edges)


__all__ = ["creation_order", "creation_order_for"]
