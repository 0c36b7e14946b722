"""
Flow Validator.

Reports incomplete blocks and structural problems of a flowchart. Issues
are presentational; nothing here blocks a mutation or a save.
"""

from typing import Dict, List, Optional, Set

import structlog

from ..config import EditorSettings, IssueSeverity, SourceHandle, get_settings
from ..models import MessageNode, ValidationIssue, ValidationResult
from .conditions import is_condition_complete

logger = structlog.get_logger(__name__)


def has_basic_content(node: MessageNode) -> bool:
    """A block needs a purpose and at least one example message."""
    return bool(node.message_purpose.strip()) and any(e.strip() for e in node.examples)


def is_node_complete(node: MessageNode, has_incoming: bool) -> bool:
    """Whether a block would render without an incomplete badge."""
    if not has_basic_content(node):
        return False
    if not is_condition_complete(node):
        return False
    return node.is_start_node or has_incoming


class FlowValidator:
    """
    Validates flowchart structure and block content.

    Checks:
    - Block content (purpose, examples, condition question and destinations)
    - Connectivity (disconnected blocks, dangling edges, orphan branches)
    - Start node uniqueness
    - Cycles (reported, never rejected)
    - Resource limits
    """

    def __init__(self, settings: Optional[EditorSettings] = None):
        self.settings = settings or get_settings()

    def validate(self, store) -> ValidationResult:
        """
        Validate the graph held by a ``FlowGraphStore``.

        Args:
            store: Store to validate

        Returns:
            ValidationResult with issues found
        """
        issues: List[ValidationIssue] = []

        issues.extend(self._validate_structure(store))

        for node in store.nodes:
            issues.extend(self.node_issues(store, node.id))

        issues.extend(self._validate_edges(store))
        issues.extend(self._detect_cycles(store))
        issues.extend(self._validate_limits(store))

        valid = all(i.severity != IssueSeverity.ERROR for i in issues)
        if not valid:
            logger.debug("flow_invalid", errors=sum(i.severity == IssueSeverity.ERROR for i in issues))

        return ValidationResult(valid=valid, issues=issues)

    def node_issues(self, store, node_id: str) -> List[ValidationIssue]:
        """Issues attached to a single block."""
        node = store.get_node(node_id)
        issues: List[ValidationIssue] = []

        if not has_basic_content(node):
            missing = []
            if not node.message_purpose.strip():
                missing.append("purpose")
            if not any(e.strip() for e in node.examples):
                missing.append("examples")
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    code="incomplete_content",
                    message=f"Block is missing: {', '.join(missing)}",
                    node_id=node.id,
                )
            )

        if not is_condition_complete(node):
            missing = []
            if not node.condition_question:
                missing.append("question")
            if not node.yes_destination:
                missing.append("yes destination")
            if not node.no_destination:
                missing.append("no destination")
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    code="incomplete_condition",
                    message=f"Condition is missing: {', '.join(missing)}",
                    node_id=node.id,
                )
            )

        if not node.is_start_node and not store.has_incoming_edge(node.id):
            issues.append(
                ValidationIssue(
                    severity=IssueSeverity.WARNING,
                    code="disconnected",
                    message="Block has no incoming connection",
                    node_id=node.id,
                )
            )

        return issues

    def _validate_structure(self, store) -> List[ValidationIssue]:
        """Start node checks."""
        if not len(store):
            return []

        starts = [n.id for n in store.nodes if n.is_start_node]
        if not starts:
            return [
                ValidationIssue(
                    severity=IssueSeverity.ERROR,
                    code="missing_start",
                    message="Flow has no start block",
                )
            ]

        return [
            ValidationIssue(
                severity=IssueSeverity.ERROR,
                code="multiple_start",
                message="Flow has more than one start block",
                node_id=node_id,
            )
            for node_id in starts[1:]
        ]

    def _validate_edges(self, store) -> List[ValidationIssue]:
        """Validate edges against their endpoints."""
        issues = []

        for edge in store.edges:
            if edge.source not in store or edge.target not in store:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.ERROR,
                        code="dangling_edge",
                        message=f"Edge endpoint not found: {edge.source} -> {edge.target}",
                        edge_id=edge.id,
                    )
                )
                continue

            source = store.get_node(edge.source)
            if edge.is_conditional and not source.has_condition:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.WARNING,
                        code="orphan_branch",
                        message=f"'{edge.source_handle.value}' edge on a block without condition",
                        node_id=edge.source,
                        edge_id=edge.id,
                    )
                )

            if edge.source_handle == SourceHandle.NO and store.find_edge(edge.source, SourceHandle.YES) is None:
                issues.append(
                    ValidationIssue(
                        severity=IssueSeverity.INFO,
                        code="no_only_branch",
                        message="Block branches on 'no' only",
                        node_id=edge.source,
                        edge_id=edge.id,
                    )
                )

        return issues

    def _detect_cycles(self, store) -> List[ValidationIssue]:
        """Report each block that closes a cycle."""
        graph: Dict[str, List[str]] = {node_id: [] for node_id in store.node_ids}
        for edge in store.edges:
            if edge.source in graph and edge.target in graph:
                graph[edge.source].append(edge.target)

        issues = []
        reported: Set[str] = set()
        visited: Set[str] = set()
        rec_stack: Set[str] = set()

        for root in graph:
            if root in visited:
                continue
            visited.add(root)
            rec_stack.add(root)
            stack = [(root, iter(graph[root]))]

            while stack:
                node_id, neighbors = stack[-1]
                for neighbor in neighbors:
                    if neighbor not in visited:
                        visited.add(neighbor)
                        rec_stack.add(neighbor)
                        stack.append((neighbor, iter(graph[neighbor])))
                        break
                    if neighbor in rec_stack and neighbor not in reported:
                        reported.add(neighbor)
                        issues.append(
                            ValidationIssue(
                                severity=IssueSeverity.WARNING,
                                code="cycle",
                                message="Conversation loops back to this block",
                                node_id=neighbor,
                            )
                        )
                else:
                    stack.pop()
                    rec_stack.discard(node_id)

        return issues

    def _validate_limits(self, store) -> List[ValidationIssue]:
        """Validate resource limits."""
        limit = self.settings.canvas.max_nodes_per_flow
        if len(store) <= limit:
            return []

        return [
            ValidationIssue(
                severity=IssueSeverity.ERROR,
                code="too_many_nodes",
                message=f"Flow exceeds maximum blocks ({len(store)} > {limit})",
            )
        ]

    def quick_validate(self, store) -> bool:
        """
        Quick validation for blocking errors.

        Returns True if the flow has exactly one start block and fits the
        block limit.
        """
        if not len(store):
            return True
        starts = sum(1 for n in store.nodes if n.is_start_node)
        return starts == 1 and len(store) <= self.settings.canvas.max_nodes_per_flow


__all__ = ["FlowValidator", "has_basic_content", "is_node_complete"]
