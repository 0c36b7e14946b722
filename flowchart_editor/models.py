"""
Data Models for the Flowchart Editor.

Graph state is held in plain dataclasses; the remote block API speaks
camelCase JSON described by the pydantic models at the bottom.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .config import IssueSeverity, NodeKind, SourceHandle


# =============================================================================
# Graph Models
# =============================================================================


@dataclass
class Timing:
    """Message pacing of a block, in seconds."""

    interval: int = 10
    max_wait: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"interval": self.interval, "max_wait": self.max_wait}


@dataclass
class Position:
    """Canvas coordinates. Presentation only."""

    x: float = 0.0
    y: float = 0.0


@dataclass
class MessageNode:
    """A message block on the canvas."""

    id: str
    title: str = ""
    message_purpose: str = ""
    examples: List[str] = field(default_factory=list)
    data_collection: List[str] = field(default_factory=list)

    # Branching
    has_condition: bool = False
    condition_question: str = ""
    yes_destination: Optional[str] = None
    no_destination: Optional[str] = None

    timing: Timing = field(default_factory=Timing)
    is_start_node: bool = False
    manual_timing_edit: bool = False

    position: Position = field(default_factory=Position)

    @property
    def kind(self) -> NodeKind:
        if self.is_start_node:
            return NodeKind.START
        if self.has_condition:
            return NodeKind.CONDITIONAL
        return NodeKind.PLAIN

    def destination_for(self, handle: Optional[SourceHandle]) -> Optional[str]:
        """Destination field backing a conditional handle."""
        if handle == SourceHandle.YES:
            return self.yes_destination
        if handle == SourceHandle.NO:
            return self.no_destination
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "message_purpose": self.message_purpose,
            "examples": list(self.examples),
            "data_collection": list(self.data_collection),
            "has_condition": self.has_condition,
            "condition_question": self.condition_question,
            "yes_destination": self.yes_destination,
            "no_destination": self.no_destination,
            "timing": self.timing.to_dict(),
            "is_start_node": self.is_start_node,
            "manual_timing_edit": self.manual_timing_edit,
            "position": {"x": self.position.x, "y": self.position.y},
        }


@dataclass
class FlowEdge:
    """Transition from one block's output handle to another block."""

    id: str
    source: str
    target: str
    source_handle: Optional[SourceHandle] = None

    @property
    def is_conditional(self) -> bool:
        return self.source_handle is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "sourceHandle": self.source_handle.value if self.source_handle else None,
        }


def edge_id_for(source: str, target: str, handle: Optional[SourceHandle] = None) -> str:
    """Build the canonical edge id for a connection."""
    if handle is None:
        return f"{source}-{target}"
    return f"{source}-{target}-{handle.value}"


# =============================================================================
# Validation Models
# =============================================================================


@dataclass
class ValidationIssue:
    """A problem found in a flowchart. Issues never block editing."""

    severity: IssueSeverity
    code: str
    message: str
    node_id: Optional[str] = None
    edge_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "node_id": self.node_id,
            "edge_id": self.edge_id,
        }


@dataclass
class ValidationResult:
    """Result of flowchart validation."""

    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    checked_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == IssueSeverity.WARNING]

    def for_node(self, node_id: str) -> List[ValidationIssue]:
        return [i for i in self.issues if i.node_id == node_id]

    def codes(self) -> List[str]:
        return [i.code for i in self.issues]


# =============================================================================
# Remote API Models
# =============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateMessageBlockRequest(_CamelModel):
    """Request body to create (or partially edit) a message block."""

    is_first_message: bool = False
    is_last_message: bool = False
    previous_message_block_id: Optional[str] = None
    message_purpose: str = ""
    message_examples: List[str] = Field(default_factory=list)
    positive_block_id: Optional[str] = None
    negative_block_id: Optional[str] = None
    time_interval_between_messages: int = 10
    maximum_wait_time: int = 0
    have_particular_condition: bool = False
    condition: Optional[str] = None
    data_collection_fields: List[str] = Field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for the wire, omitting unset references."""
        return self.model_dump(by_alias=True, exclude_none=True)


class MessageBlock(_CamelModel):
    """A persisted message block as returned by the API."""

    id: str
    is_first_message: bool = False
    is_last_message: bool = False
    previous_message_block_id: Optional[str] = None
    message_purpose: str = ""
    message_examples: List[str] = Field(default_factory=list)
    positive_block_id: Optional[str] = None
    negative_block_id: Optional[str] = None
    time_interval_between_messages: int = 10
    maximum_wait_time: int = 0
    have_particular_condition: bool = False
    condition: Optional[str] = None
    data_collection_fields: List[str] = Field(default_factory=list)

    @field_validator("message_examples", "data_collection_fields", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        # older blocks carry explicit nulls
        return [] if value is None else value


class MessagesFlowchart(_CamelModel):
    """A flowchart with its ordered block sequence."""

    id: str
    name: str = ""
    message_block_sequence: List[MessageBlock] = Field(default_factory=list)


class FlowchartSummary(_CamelModel):
    """Flowchart entry in a listing."""

    id: str
    name: str = ""
    created_at: Optional[str] = None


class CreateMessagesFlowchartRequest(_CamelModel):
    """Request body to create a flowchart or replace its block sequence."""

    name: str = Field(..., min_length=1, max_length=255)
    message_block_sequence_ids: List[str] = Field(default_factory=list)


__all__ = [
    # Graph
    "Timing",
    "Position",
    "MessageNode",
    "FlowEdge",
    "edge_id_for",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # API
    "CreateMessageBlockRequest",
    "MessageBlock",
    "MessagesFlowchart",
    "FlowchartSummary",
    "CreateMessagesFlowchartRequest",
]
