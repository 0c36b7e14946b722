"""
Persistence Module.

Converts the editor graph to and from the remote block sequence and
drives the save and load calls.
"""

from .converter import blocks_to_graph, node_to_create_request, resolve_previous_node
from .saver import (
    DeferredReference,
    FlowchartLoader,
    FlowchartSaver,
    RemoteBlockAPI,
    SaveResult,
)

__all__ = [
    "blocks_to_graph",
    "node_to_create_request",
    "resolve_previous_node",
    "RemoteBlockAPI",
    "DeferredReference",
    "SaveResult",
    "FlowchartSaver",
    "FlowchartLoader",
]
