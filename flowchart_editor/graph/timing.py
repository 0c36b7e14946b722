"""
Timing Inference.

A block's pacing follows its shape: the more fields it collects, the
longer the bot waits between messages; a block that leads somewhere
waits for an answer, a terminal block does not.
"""

from typing import TYPE_CHECKING, Optional

import structlog

from ..config import TimingConfig, get_settings
from ..models import MessageNode, Timing
from .events import EdgeAdded, EdgeRemoved, EdgeUpdated, GraphEvent, NodeUpdated

if TYPE_CHECKING:
    from .store import FlowGraphStore

logger = structlog.get_logger(__name__)


def infer_interval(field_count: int, config: TimingConfig) -> int:
    if field_count >= config.long_collection_threshold:
        return config.long_collection_interval
    if field_count >= 1:
        return config.short_collection_interval
    return config.base_interval


def infer_timing(
    node: MessageNode,
    has_outgoing_edge: bool,
    config: Optional[TimingConfig] = None,
) -> Timing:
    """
    Compute the timing a block should have.

    Manually edited timing is returned unchanged.
    """
    if node.manual_timing_edit:
        return Timing(interval=node.timing.interval, max_wait=node.timing.max_wait)

    config = config or get_settings().timing
    return _computed_timing(node, has_outgoing_edge, config)


def _computed_timing(node: MessageNode, has_outgoing_edge: bool, config: TimingConfig) -> Timing:
    return Timing(
        interval=infer_interval(len(node.data_collection), config),
        max_wait=config.connected_max_wait if has_outgoing_edge else config.idle_max_wait,
    )


def recompute_timing(store: "FlowGraphStore", node_id: str, force: bool = False) -> bool:
    """
    Re-run timing inference for one node of the store.

    A forced recompute ignores (and resets) the manual-edit flag. The node
    is only updated when the numbers change.

    Returns:
        True if the node's timing was changed
    """
    if node_id not in store:
        return False

    node = store.get_node(node_id)
    if node.manual_timing_edit and not force:
        return False

    computed = _computed_timing(node, store.has_outgoing_edge(node_id), store.settings.timing)
    if computed == node.timing:
        return False

    logger.debug(
        "timing_recomputed",
        node_id=node_id,
        interval=computed.interval,
        max_wait=computed.max_wait,
        forced=force,
    )
    store.update_node_data(node_id, timing=computed, manual_timing_edit=False)
    return True


class TimingReducer:
    """Recomputes timing of the endpoints of every edge change."""

    def __init__(self, store: "FlowGraphStore"):
        self.store = store

    def __call__(self, event: GraphEvent) -> None:
        if isinstance(event, (EdgeAdded, EdgeRemoved)):
            recompute_timing(self.store, event.source)
            if event.target != event.source:
                recompute_timing(self.store, event.target)
        elif isinstance(event, EdgeUpdated):
            recompute_timing(self.store, event.source)


class ManualTimingReducer:
    """Flags a node as manually timed when its timing is edited directly."""

    def __init__(self, store: "FlowGraphStore"):
        self.store = store

    def __call__(self, event: GraphEvent) -> None:
        if not isinstance(event, NodeUpdated):
            return
        if not event.changed("timing") or event.changed("manual_timing_edit"):
            return
        if event.node_id not in self.store:
            return

        node = self.store.get_node(event.node_id)
        if not node.manual_timing_edit:
            self.store.update_node_data(event.node_id, manual_timing_edit=True)


__all__ = [
    "infer_interval",
    "infer_timing",
    "recompute_timing",
    "TimingReducer",
    "ManualTimingReducer",
]
