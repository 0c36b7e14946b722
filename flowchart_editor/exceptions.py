"""Exceptions for the Flowchart Editor."""

from typing import List, Optional


class FlowchartEditorError(Exception):
    """Base exception for flowchart editor errors."""


# =============================================================================
# Graph errors
# =============================================================================


class NodeNotFoundError(FlowchartEditorError, KeyError):
    """Raised when a node id is not part of the graph."""

    def __init__(self, node_id: str):
        super().__init__(node_id)
        self.node_id = node_id

    def __str__(self):
        return f"Node not found: {self.node_id}"


class EdgeNotFoundError(FlowchartEditorError, KeyError):
    """Raised when an edge id is not part of the graph."""

    def __init__(self, edge_id: str):
        super().__init__(edge_id)
        self.edge_id = edge_id

    def __str__(self):
        return f"Edge not found: {self.edge_id}"


# =============================================================================
# Remote API errors
# =============================================================================


class FlowchartAPIError(FlowchartEditorError):
    """Raised when the remote block API returns an error."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code

    def __str__(self):
        parts = [self.message]
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        if self.error_code:
            parts.append(f"[{self.error_code}]")
        return " ".join(parts)


class AuthenticationError(FlowchartAPIError):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, status_code=401, error_code="AUTH_ERROR")


class NotFoundError(FlowchartAPIError):
    """Raised when a flowchart or block is not found."""

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, status_code=404, error_code="NOT_FOUND")


class ValidationError(FlowchartAPIError):
    """Raised when the API rejects a request body."""

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[List[dict]] = None,
    ):
        super().__init__(message, status_code=422, error_code="VALIDATION_ERROR")
        self.errors = errors or []


class ServerError(FlowchartAPIError):
    """Raised when the server encounters an error."""

    def __init__(self, message: str = "Server error", status_code: int = 500):
        super().__init__(message, status_code=status_code, error_code="SERVER_ERROR")


class APIConnectionError(FlowchartAPIError):
    """Raised when the API cannot be reached."""

    def __init__(self, message: str = "Connection failed"):
        super().__init__(message, error_code="CONNECTION_ERROR")


# =============================================================================
# Persistence errors
# =============================================================================


class FlowchartSaveError(FlowchartEditorError):
    """Raised when saving a flowchart aborts.

    Blocks created before the failure are left on the server; their ids are
    kept in ``created_block_ids``.
    """

    def __init__(
        self,
        message: str,
        created_block_ids: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.created_block_ids = created_block_ids or []


class FlowchartLoadError(FlowchartEditorError):
    """Raised when a flowchart cannot be loaded into the editor."""
