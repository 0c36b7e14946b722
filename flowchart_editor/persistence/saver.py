"""
Flowchart Save/Load Orchestration.

Saving replays the whole graph onto the server: every block is created
anew, one request at a time, in creation order, so that each request can
carry the remote ids of blocks created before it. References to blocks
that do not exist yet (forward conditional branches, cycles) are patched
once every block has an id.

Loading fetches a flowchart and replaces the store's graph with it.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import structlog

from ..config import EditorSettings, get_settings
from ..exceptions import FlowchartAPIError, FlowchartLoadError, FlowchartSaveError
from ..graph.ordering import creation_order_for
from ..models import CreateMessageBlockRequest, MessagesFlowchart
from .converter import (
    blocks_to_graph,
    is_last_message,
    node_to_create_request,
    resolve_previous_node,
)

logger = structlog.get_logger(__name__)


class RemoteBlockAPI(Protocol):
    """Remote operations the saver and loader need."""

    async def create_flowchart(self, company_id: str, name: str) -> str:
        ...

    async def get_flowchart(self, flowchart_id: str) -> MessagesFlowchart:
        ...

    async def set_flowchart_sequence(
        self, flowchart_id: str, name: str, ordered_ids: List[str]
    ) -> None:
        ...

    async def create_block(self, flowchart_id: str, request: CreateMessageBlockRequest) -> str:
        ...

    async def edit_block(self, block_id: str, changes: Dict[str, Any]) -> None:
        ...

    async def delete_block(self, block_id: str) -> None:
        ...


@dataclass
class DeferredReference:
    """A block reference that could not be resolved at creation time."""

    node_id: str
    block_id: str
    field: str  # wire name, e.g. "positiveBlockId"
    target_node_id: str


@dataclass
class SaveResult:
    """Outcome of a successful save."""

    flowchart_id: str
    name: str
    order: List[str] = field(default_factory=list)
    block_ids: Dict[str, str] = field(default_factory=dict)
    deferred: List[DeferredReference] = field(default_factory=list)
    created: bool = False

    @property
    def ordered_block_ids(self) -> List[str]:
        return [self.block_ids[node_id] for node_id in self.order if node_id in self.block_ids]


class FlowchartSaver:
    """
    Persists a graph through a ``RemoteBlockAPI``.

    There is no retry and no rollback: the first failing call aborts the
    save, and blocks created up to that point stay on the server.
    """

    def __init__(self, api: RemoteBlockAPI, settings: Optional[EditorSettings] = None):
        self.api = api
        self.settings = settings or get_settings()

    async def save(
        self,
        store,
        name: Optional[str] = None,
        flowchart_id: Optional[str] = None,
        company_id: Optional[str] = None,
    ) -> SaveResult:
        """
        Save the store's graph.

        With ``flowchart_id`` the existing flowchart is rewritten (edit
        mode); otherwise a new flowchart is created under ``company_id``.

        Args:
            store: Graph to persist
            name: Flowchart name, defaults to the configured default name
            flowchart_id: Existing flowchart to overwrite
            company_id: Owner of a new flowchart

        Returns:
            SaveResult with the remote ids and any patched references

        Raises:
            FlowchartSaveError: If any remote call fails
        """
        name = name or self.settings.default_flow_name
        created: List[str] = []

        if flowchart_id is None and not company_id:
            raise FlowchartSaveError("No company selected")

        try:
            if flowchart_id is not None:
                await self._clear_flowchart(flowchart_id)
                is_new = False
            else:
                flowchart_id = await self.api.create_flowchart(company_id, name)
                logger.info("flowchart_created", flowchart_id=flowchart_id, company_id=company_id)
                is_new = True

            result = SaveResult(flowchart_id=flowchart_id, name=name, created=is_new)
            await self._create_blocks(store, result, created)
            await self._patch_deferred(result)

            if not is_new:
                await self.api.set_flowchart_sequence(flowchart_id, name, result.ordered_block_ids)

        except FlowchartAPIError as e:
            logger.error(
                "flowchart_save_failed",
                flowchart_id=flowchart_id,
                error=str(e),
                orphaned_block_ids=created,
            )
            raise FlowchartSaveError(f"Failed to save flowchart: {e}", created_block_ids=created) from e

        logger.info(
            "flowchart_saved",
            flowchart_id=flowchart_id,
            blocks=len(result.block_ids),
            deferred=len(result.deferred),
        )
        return result

    async def _clear_flowchart(self, flowchart_id: str) -> None:
        current = await self.api.get_flowchart(flowchart_id)
        for block in current.message_block_sequence:
            await self.api.delete_block(block.id)
        logger.info(
            "flowchart_cleared",
            flowchart_id=flowchart_id,
            deleted=len(current.message_block_sequence),
        )

    async def _create_blocks(self, store, result: SaveResult, created: List[str]) -> None:
        result.order = creation_order_for(store)
        pending: List[DeferredReference] = []

        for node_id in result.order:
            node = store.get_node(node_id)
            references = {
                "previousMessageBlockId": resolve_previous_node(store, node_id),
                "positiveBlockId": node.yes_destination,
                "negativeBlockId": node.no_destination,
            }

            resolved: Dict[str, Optional[str]] = {}
            unresolved: Dict[str, str] = {}
            for wire_field, target in references.items():
                if target is None:
                    resolved[wire_field] = None
                elif target in result.block_ids:
                    resolved[wire_field] = result.block_ids[target]
                else:
                    resolved[wire_field] = None
                    unresolved[wire_field] = target

            request = node_to_create_request(
                node,
                previous_block_id=resolved["previousMessageBlockId"],
                positive_block_id=resolved["positiveBlockId"],
                negative_block_id=resolved["negativeBlockId"],
                is_last=is_last_message(store, node),
            )
            block_id = await self.api.create_block(result.flowchart_id, request)
            created.append(block_id)
            result.block_ids[node_id] = block_id
            logger.debug("block_created", node_id=node_id, block_id=block_id)

            for wire_field, target in unresolved.items():
                pending.append(DeferredReference(node_id, block_id, wire_field, target))

        for ref in pending:
            logger.warning(
                "block_reference_deferred",
                node_id=ref.node_id,
                field=ref.field,
                target_node_id=ref.target_node_id,
            )
        result.deferred = pending

    async def _patch_deferred(self, result: SaveResult) -> None:
        changes_by_block: Dict[str, Dict[str, Any]] = {}
        for ref in result.deferred:
            target_block_id = result.block_ids.get(ref.target_node_id)
            if target_block_id is None:
                continue
            changes_by_block.setdefault(ref.block_id, {})[ref.field] = target_block_id

        for block_id, changes in changes_by_block.items():
            await self.api.edit_block(block_id, changes)
            logger.debug("block_reference_patched", block_id=block_id, fields=sorted(changes))


class FlowchartLoader:
    """Loads a persisted flowchart into a graph store."""

    def __init__(self, api: RemoteBlockAPI, settings: Optional[EditorSettings] = None):
        self.api = api
        self.settings = settings or get_settings()

    async def load(self, flowchart_id: str, store) -> MessagesFlowchart:
        """
        Replace the store's graph with a persisted flowchart.

        Returns:
            The fetched flowchart

        Raises:
            FlowchartLoadError: If the flowchart cannot be fetched
        """
        try:
            flowchart = await self.api.get_flowchart(flowchart_id)
        except FlowchartAPIError as e:
            logger.error("flowchart_load_failed", flowchart_id=flowchart_id, error=str(e))
            raise FlowchartLoadError(f"Failed to load flowchart {flowchart_id}: {e}") from e

        nodes, edges = blocks_to_graph(flowchart.message_block_sequence, self.settings)
        store.load(nodes, edges)

        logger.info(
            "flowchart_loaded",
            flowchart_id=flowchart_id,
            blocks=len(nodes),
            edges=len(edges),
        )
        return flowchart


__all__ = [
    "RemoteBlockAPI",
    "DeferredReference",
    "SaveResult",
    "FlowchartSaver",
    "FlowchartLoader",
]
