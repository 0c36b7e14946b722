"""
Editor Session.

The seam between a UI host and the graph core. A session owns one
``FlowGraphStore``, tracks selection and sidebar state, translates host
callbacks (clicks, delete key, sidebar edits) into store mutations and
hands the host a fresh ``EditorSnapshot`` after every change.
"""

import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import structlog

from .config import EditorSettings, get_settings
from .exceptions import FlowchartLoadError, FlowchartSaveError
from .graph.store import FlowGraphStore, HandleLike
from .graph.timing import recompute_timing
from .graph.validator import FlowValidator, is_node_complete
from .models import (
    FlowEdge,
    MessageNode,
    MessagesFlowchart,
    Position,
    Timing,
    ValidationIssue,
)
from .persistence.saver import FlowchartLoader, FlowchartSaver, RemoteBlockAPI, SaveResult

logger = structlog.get_logger(__name__)

Notifier = Callable[[str, str], None]
SnapshotListener = Callable[["EditorSnapshot"], None]


@dataclass
class NodeView:
    """A node as the canvas renders it."""

    node: MessageNode
    has_incoming_connections: bool
    selected: bool
    complete: bool
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.node.id


@dataclass
class EditorSnapshot:
    """Everything a host needs to render the editor."""

    nodes: List[NodeView]
    edges: List[FlowEdge]
    selected_node_id: Optional[str]
    selected_edge_id: Optional[str]
    sidebar_open: bool
    flow_name: str
    node_count: int
    error_count: int
    valid: bool = True

    def node(self, node_id: str) -> Optional[NodeView]:
        for view in self.nodes:
            if view.id == node_id:
                return view
        return None


def _log_notification(level: str, message: str) -> None:
    logger.info("editor_notification", level=level, message=message)


class EditorSession:
    """
    One editing session of a messages flowchart.

    Features:
    - Selection and sidebar state
    - Sidebar edits (examples, data fields, timing, destinations)
    - Block creation next to the existing blocks
    - Load and save through a remote block API
    """

    def __init__(
        self,
        api: Optional[RemoteBlockAPI] = None,
        store: Optional[FlowGraphStore] = None,
        settings: Optional[EditorSettings] = None,
        company_id: Optional[str] = None,
        notify: Optional[Notifier] = None,
    ):
        self.settings = settings or get_settings()
        self.store = store or FlowGraphStore(settings=self.settings)
        self.validator = FlowValidator(self.settings)
        self.api = api
        self.company_id = company_id
        self.notify = notify or _log_notification

        self.flowchart_id: Optional[str] = None
        self.flow_name = self.settings.default_flow_name
        self.selected_node_id: Optional[str] = None
        self.selected_edge_id: Optional[str] = None
        self.sidebar_open = False
        self.is_busy = False

        self._listeners: List[SnapshotListener] = []
        self.store.add_listener(self._on_store_change)

    @property
    def is_edit_mode(self) -> bool:
        return self.flowchart_id is not None

    # -------------------------------------------------------------------------
    # Snapshots
    # -------------------------------------------------------------------------

    def add_listener(self, listener: SnapshotListener) -> None:
        """Call ``listener(snapshot)`` after every change."""
        self._listeners.append(listener)

    def remove_listener(self, listener: SnapshotListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def snapshot(self) -> EditorSnapshot:
        result = self.validator.validate(self.store)

        views = []
        for node in self.store.nodes:
            has_incoming = self.store.has_incoming_edge(node.id)
            views.append(
                NodeView(
                    node=node,
                    has_incoming_connections=has_incoming,
                    selected=node.id == self.selected_node_id,
                    complete=is_node_complete(node, has_incoming),
                    issues=result.for_node(node.id),
                )
            )

        return EditorSnapshot(
            nodes=views,
            edges=self.store.edges,
            selected_node_id=self.selected_node_id,
            selected_edge_id=self.selected_edge_id,
            sidebar_open=self.sidebar_open,
            flow_name=self.flow_name,
            node_count=len(self.store),
            error_count=sum(1 for view in views if not view.complete),
            valid=result.valid,
        )

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def _on_store_change(self, store: FlowGraphStore) -> None:
        if self.selected_node_id is not None and self.selected_node_id not in store:
            self.selected_node_id = None
            self.sidebar_open = False
        if self.selected_edge_id is not None and not store.has_edge(self.selected_edge_id):
            self.selected_edge_id = None
        self._publish()

    # -------------------------------------------------------------------------
    # Canvas callbacks
    # -------------------------------------------------------------------------

    def on_node_click(self, node_id: str) -> None:
        self.store.get_node(node_id)
        self.selected_node_id = node_id
        self.selected_edge_id = None
        self.sidebar_open = True
        self._publish()

    def on_edge_click(self, edge_id: str) -> None:
        self.store.get_edge(edge_id)
        self.selected_node_id = None
        self.selected_edge_id = edge_id
        self.sidebar_open = False
        self._publish()

    def on_pane_click(self) -> None:
        self.selected_node_id = None
        self.selected_edge_id = None
        self.sidebar_open = False
        self._publish()

    def on_delete_key(self) -> None:
        """Delete the selected edge, or else the selected node."""
        if self.selected_edge_id is not None:
            edge_id, self.selected_edge_id = self.selected_edge_id, None
            if self.store.has_edge(edge_id):
                self.store.disconnect_edge(edge_id)
            else:
                self._publish()
        elif self.selected_node_id is not None:
            node_id = self.selected_node_id
            if node_id in self.store:
                self.store.delete_node(node_id)

    def on_connect(self, source: str, source_handle: HandleLike, target: str) -> FlowEdge:
        """A connection dragged between two blocks."""
        return self.store.connect(source, source_handle, target)

    def on_node_moved(self, node_id: str, x: float, y: float) -> None:
        self.store.update_node_data(node_id, position=Position(x=x, y=y))

    # -------------------------------------------------------------------------
    # Sidebar
    # -------------------------------------------------------------------------

    @property
    def selected_node(self) -> Optional[MessageNode]:
        if self.selected_node_id is None or self.selected_node_id not in self.store:
            return None
        return self.store.get_node(self.selected_node_id)

    def on_update_node_data(self, node_id: str, **changes: Any) -> MessageNode:
        return self.store.update_node_data(node_id, **changes)

    def force_timing_update(self, node_id: str) -> bool:
        """Recompute timing even if it was edited by hand."""
        with self.store.batch():
            return recompute_timing(self.store, node_id, force=True)

    def add_example(self, node_id: str, text: str) -> bool:
        text = text.strip()
        if not text:
            return False
        node = self.store.get_node(node_id)
        self.store.update_node_data(node_id, examples=[*node.examples, text])
        return True

    def remove_example(self, node_id: str, index: int) -> None:
        node = self.store.get_node(node_id)
        examples = [e for i, e in enumerate(node.examples) if i != index]
        self.store.update_node_data(node_id, examples=examples)

    def add_data_field(self, node_id: str, name: str) -> bool:
        name = name.strip()
        if not name:
            return False
        node = self.store.get_node(node_id)
        with self.store.batch():
            self.store.update_node_data(node_id, data_collection=[*node.data_collection, name])
            recompute_timing(self.store, node_id, force=True)
        return True

    def remove_data_field(self, node_id: str, index: int) -> None:
        node = self.store.get_node(node_id)
        fields_left = [f for i, f in enumerate(node.data_collection) if i != index]
        with self.store.batch():
            self.store.update_node_data(node_id, data_collection=fields_left)
            recompute_timing(self.store, node_id, force=True)

    def destination_options(self, node_id: str) -> List[MessageNode]:
        """Blocks a branch of ``node_id`` may point to."""
        return [n for n in self.store.nodes if n.id != node_id]

    def rename_flow(self, name: str) -> None:
        name = name.strip()
        if not name:
            return
        self.flow_name = name
        self._publish()

    def close_sidebar(self) -> None:
        self.sidebar_open = False
        self._publish()

    def add_new_block(self) -> MessageNode:
        """Add a block right of the rightmost one, select it and open the sidebar."""
        canvas = self.settings.canvas
        nodes = self.store.nodes

        if nodes:
            rightmost = max(nodes, key=lambda n: n.position.x)
            position = Position(x=rightmost.position.x + canvas.new_node_offset_x, y=rightmost.position.y)
        else:
            position = Position(x=canvas.default_x, y=canvas.default_y)

        node = MessageNode(
            id=uuid.uuid4().hex,
            title=self.settings.new_block_title,
            message_purpose=self.settings.new_block_purpose,
            timing=Timing(
                interval=self.settings.timing.base_interval,
                max_wait=self.settings.timing.idle_max_wait,
            ),
            position=position,
        )

        self.selected_node_id = node.id
        self.selected_edge_id = None
        self.sidebar_open = True
        self.store.add_node(node)

        logger.debug("block_added", node_id=node.id, x=position.x, y=position.y)
        return node

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _require_api(self) -> RemoteBlockAPI:
        if self.api is None:
            raise RuntimeError("EditorSession has no remote API configured")
        return self.api

    async def load(self, flowchart_id: str) -> Optional[MessagesFlowchart]:
        """
        Load a persisted flowchart and switch to edit mode.

        Returns:
            The loaded flowchart, or None if loading failed
        """
        loader = FlowchartLoader(self._require_api(), self.settings)
        self.is_busy = True
        try:
            flowchart = await loader.load(flowchart_id, self.store)
        except FlowchartLoadError:
            self.notify("error", "Erro ao carregar fluxo. Verifique se o fluxo existe.")
            return None
        finally:
            self.is_busy = False

        self.flowchart_id = flowchart.id
        self.flow_name = flowchart.name or self.settings.default_flow_name
        self.selected_node_id = None
        self.selected_edge_id = None
        self.sidebar_open = False
        self._publish()
        return flowchart

    async def save(self, company_id: Optional[str] = None) -> Optional[SaveResult]:
        """
        Save the graph, rewriting the loaded flowchart or creating a new one.

        Returns:
            The SaveResult, or None if the save failed
        """
        company_id = company_id or self.company_id
        if not self.is_edit_mode and not company_id:
            self.notify("error", "Nenhuma empresa selecionada")
            return None

        saver = FlowchartSaver(self._require_api(), self.settings)
        edit_mode = self.is_edit_mode
        self.is_busy = True
        try:
            result = await saver.save(
                self.store,
                name=self.flow_name,
                flowchart_id=self.flowchart_id,
                company_id=company_id,
            )
        except FlowchartSaveError:
            self.notify("error", "Erro ao salvar fluxo. Verifique sua conexão e tente novamente.")
            return None
        finally:
            self.is_busy = False

        self.flowchart_id = result.flowchart_id
        self.notify(
            "success",
            "Fluxo atualizado com sucesso!" if edit_mode else "Fluxo criado com sucesso!",
        )
        return result


__all__ = ["EditorSession", "EditorSnapshot", "NodeView"]
