"""
Graph Module.

Holds the flowchart graph, the reducers that keep it consistent, the
creation order used for persistence and the validator.
"""

from .conditions import disable_condition, enable_condition, is_condition_complete
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
from .ordering import creation_order, creation_order_for
from .start_node import normalize_start_node
from .store import FlowGraphStore, normalize_handle
from .timing import infer_timing, recompute_timing
from .validator import FlowValidator, is_node_complete

__all__ = [
    "FlowGraphStore",
    "normalize_handle",
    "GraphEvent",
    "GraphEventDispatcher",
    "NodeAdded",
    "NodeUpdated",
    "NodeRemoved",
    "EdgeAdded",
    "EdgeUpdated",
    "EdgeRemoved",
    "GraphLoaded",
    "infer_timing",
    "recompute_timing",
    "enable_condition",
    "disable_condition",
    "is_condition_complete",
    "normalize_start_node",
    "creation_order",
    "creation_order_for",
    "FlowValidator",
    "is_node_complete",
]
