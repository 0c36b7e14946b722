"""
Messages Flowchart Editor.

Core of the conversation flow editor used to design sales bot scripts.
This package provides:

1. Graph Store:
   - Message blocks (nodes) and transitions (edges)
   - Yes/no branching kept in sync with block fields
   - Single start block, cascading deletes

2. Inference:
   - Message timing derived from data collection and connectivity
   - Validation badges (incomplete, disconnected, cycles)

3. Persistence:
   - Dependency-aware block creation order
   - Conversion to and from the flat remote block sequence
   - Async HTTP client for the messages flowchart API

4. Editor Session:
   - Selection, sidebar and delete-key handling for a UI host
"""

from .client import FlowchartClient
from .config import EditorSettings, NodeKind, SourceHandle, get_settings
from .exceptions import (
    APIConnectionError,
    AuthenticationError,
    EdgeNotFoundError,
    FlowchartAPIError,
    FlowchartEditorError,
    FlowchartLoadError,
    FlowchartSaveError,
    NodeNotFoundError,
    NotFoundError,
    ServerError,
    ValidationError,
)
from .graph import FlowGraphStore, FlowValidator, creation_order
from .logging import configure_logging
from .models import FlowEdge, MessageNode, Position, Timing
from .persistence import FlowchartLoader, FlowchartSaver, SaveResult, blocks_to_graph
from .session import EditorSession, EditorSnapshot

__version__ = "1.0.0"

__all__ = [
    # Graph
    "FlowGraphStore",
    "FlowValidator",
    "creation_order",
    "MessageNode",
    "FlowEdge",
    "Timing",
    "Position",
    "SourceHandle",
    "NodeKind",

    # Persistence
    "FlowchartSaver",
    "FlowchartLoader",
    "SaveResult",
    "blocks_to_graph",
    "FlowchartClient",

    # Session
    "EditorSession",
    "EditorSnapshot",

    # Config
    "EditorSettings",
    "get_settings",
    "configure_logging",

    # Exceptions
    "FlowchartEditorError",
    "NodeNotFoundError",
    "EdgeNotFoundError",
    "FlowchartAPIError",
    "AuthenticationError",
    "NotFoundError",
    "ValidationError",
    "ServerError",
    "APIConnectionError",
    "FlowchartSaveError",
    "FlowchartLoadError",
]
