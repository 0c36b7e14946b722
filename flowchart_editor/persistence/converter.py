"""
Import/Export Converter.

Translates between the editor graph and the backend's flat block
sequence. A remote block references its neighbours by remote id
(``previousMessageBlockId``, ``positiveBlockId``, ``negativeBlockId``);
on the canvas the same relationships are plain, ``yes`` and ``no`` edges.
"""

from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from ..config import CanvasConfig, EditorSettings, SourceHandle, get_settings
from ..models import (
    CreateMessageBlockRequest,
    FlowEdge,
    MessageBlock,
    MessageNode,
    Position,
    Timing,
    edge_id_for,
)

logger = structlog.get_logger(__name__)

IMPORTED_NODE_PREFIX = "node-"


# =============================================================================
# Import
# =============================================================================


def grid_position(index: int, canvas: CanvasConfig) -> Position:
    """Canvas position of the ``index``-th imported block."""
    column = index % canvas.columns
    row = index // canvas.columns
    return Position(
        x=canvas.origin_x + column * canvas.column_spacing,
        y=canvas.origin_y + row * canvas.row_spacing,
    )


def block_to_node(block: MessageBlock, index: int, settings: EditorSettings) -> MessageNode:
    """Build the canvas node of one remote block. Destinations are set by edges."""
    return MessageNode(
        id=f"{IMPORTED_NODE_PREFIX}{index + 1}",
        title=f"Mensagem {index + 1}",
        message_purpose=block.message_purpose,
        examples=list(block.message_examples),
        data_collection=list(block.data_collection_fields),
        has_condition=block.have_particular_condition,
        condition_question=block.condition or "",
        timing=Timing(
            interval=block.time_interval_between_messages,
            max_wait=block.maximum_wait_time,
        ),
        is_start_node=block.is_first_message,
        position=grid_position(index, settings.canvas),
    )


def blocks_to_graph(
    blocks: Sequence[MessageBlock],
    settings: Optional[EditorSettings] = None,
) -> Tuple[List[MessageNode], List[FlowEdge]]:
    """
    Convert a persisted block sequence into canvas nodes and edges.

    Args:
        blocks: Blocks in server sequence order
        settings: Editor settings (grid layout)

    Returns:
        Tuple of (nodes, edges) ready for ``FlowGraphStore.load``
    """
    settings = settings or get_settings()

    nodes: List[MessageNode] = []
    node_for_block: Dict[str, MessageNode] = {}
    for index, block in enumerate(blocks):
        node = block_to_node(block, index, settings)
        nodes.append(node)
        node_for_block[block.id] = node

    edges: List[FlowEdge] = []

    def resolve(block: MessageBlock, ref: str, kind: str) -> Optional[MessageNode]:
        target = node_for_block.get(ref)
        if target is None:
            logger.warning("import_reference_skipped", block_id=block.id, reference=ref, kind=kind)
        return target

    for block in blocks:
        node = node_for_block[block.id]

        for ref, handle in (
            (block.positive_block_id, SourceHandle.YES),
            (block.negative_block_id, SourceHandle.NO),
        ):
            if not ref:
                continue
            target = resolve(block, ref, handle.value)
            if target is None:
                continue
            edges.append(
                FlowEdge(
                    id=edge_id_for(node.id, target.id, handle),
                    source=node.id,
                    target=target.id,
                    source_handle=handle,
                )
            )
            if handle == SourceHandle.YES:
                node.yes_destination = target.id
            else:
                node.no_destination = target.id

        if not block.previous_message_block_id:
            continue
        previous = resolve(block, block.previous_message_block_id, "previous")
        # Gated on the predecessor, not on this block's haveParticularCondition.
        # A conditional predecessor is already linked through its yes/no edges.
        if previous is None or previous.has_condition:
            continue
        edges.append(FlowEdge(id=edge_id_for(previous.id, node.id), source=previous.id, target=node.id))

    logger.debug("blocks_converted", nodes=len(nodes), edges=len(edges))
    return nodes, edges


# =============================================================================
# Export
# =============================================================================


def resolve_previous_node(store, node_id: str) -> Optional[str]:
    """
    Node id whose remote block precedes ``node_id``.

    The source of the incoming plain edge wins, then that of an incoming
    ``yes`` edge, then ``no``. The start node has no previous block.
    """
    node = store.get_node(node_id)
    if node.is_start_node:
        return None

    incoming = store.incoming_edges(node_id)
    for handle in (None, SourceHandle.YES, SourceHandle.NO):
        for edge in incoming:
            if edge.source_handle == handle:
                return edge.source
    return None


def is_last_message(store, node: MessageNode) -> bool:
    """A block ends the conversation when it has no condition and no plain successor."""
    return not node.has_condition and store.find_edge(node.id, None) is None


def node_to_create_request(
    node: MessageNode,
    previous_block_id: Optional[str] = None,
    positive_block_id: Optional[str] = None,
    negative_block_id: Optional[str] = None,
    is_last: bool = False,
) -> CreateMessageBlockRequest:
    """Build the create request of one node. Reference ids must already be remote ids."""
    return CreateMessageBlockRequest(
        is_first_message=node.is_start_node,
        is_last_message=is_last,
        previous_message_block_id=previous_block_id,
        message_purpose=node.message_purpose,
        message_examples=list(node.examples),
        positive_block_id=positive_block_id,
        negative_block_id=negative_block_id,
        time_interval_between_messages=node.timing.interval,
        maximum_wait_time=node.timing.max_wait,
        have_particular_condition=node.has_condition,
        condition=node.condition_question if node.has_condition else None,
        data_collection_fields=list(node.data_collection),
    )


__all__ = [
    "IMPORTED_NODE_PREFIX",
    "grid_position",
    "block_to_node",
    "blocks_to_graph",
    "resolve_previous_node",
    "is_last_message",
    "node_to_create_request",
]
