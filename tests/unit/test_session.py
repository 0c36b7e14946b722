"""Unit tests for the editor session."""

import httpx
import pytest
import respx

from flowchart_editor.client import FlowchartClient
from flowchart_editor.exceptions import ServerError
from flowchart_editor.models import MessageNode, Position
from flowchart_editor.session import EditorSession


@pytest.fixture
def notifications():
    return []


@pytest.fixture
def session(chain_store, fake_api, settings, notifications):
    return EditorSession(
        api=fake_api,
        store=chain_store,
        settings=settings,
        notify=lambda level, message: notifications.append((level, message)),
    )


@pytest.fixture
def snapshots(session):
    received = []
    session.add_listener(received.append)
    return received


class TestSelection:
    """Tests for canvas callbacks and selection state."""

    def test_node_click_opens_sidebar(self, session, snapshots):
        """Test clicking a block selects it and opens the sidebar."""
        session.on_node_click("B")

        snapshot = snapshots[-1]
        assert snapshot.selected_node_id == "B"
        assert snapshot.sidebar_open is True
        assert snapshot.node("B").selected is True
        assert session.selected_node.id == "B"

    def test_edge_click_closes_sidebar(self, session):
        session.on_node_click("B")
        edge_id = session.store.outgoing_edges("A")[0].id

        session.on_edge_click(edge_id)

        assert session.selected_edge_id == edge_id
        assert session.selected_node_id is None
        assert session.sidebar_open is False

    def test_pane_click_clears_selection(self, session):
        session.on_node_click("A")

        session.on_pane_click()

        assert session.selected_node is None
        assert session.sidebar_open is False

    def test_delete_key_prefers_edge(self, session):
        """Test the delete key removes the selected edge, not the block."""
        edge_id = session.store.outgoing_edges("A")[0].id
        session.on_edge_click(edge_id)

        session.on_delete_key()

        assert not session.store.has_edge(edge_id)
        assert session.store.node_ids == ["A", "B", "C"]
        assert session.selected_edge_id is None

    def test_delete_key_removes_selected_node(self, session, snapshots):
        """Test deleting a block drops its edges and closes the sidebar."""
        session.on_node_click("B")

        session.on_delete_key()

        assert "B" not in session.store
        assert session.store.edges == []
        assert session.selected_node_id is None
        assert snapshots[-1].sidebar_open is False

    def test_delete_key_without_selection(self, session):
        session.on_delete_key()

        assert len(session.store) == 3

    def test_node_moved(self, session):
        session.on_node_moved("A", 40, 60)

        assert session.store.get_node("A").position == Position(40, 60)


class TestSnapshot:
    """Tests for EditorSnapshot."""

    def test_complete_chain(self, session):
        """Test a filled chain has no incomplete blocks."""
        snapshot = session.snapshot()

        assert snapshot.node_count == 3
        assert snapshot.error_count == 0
        assert snapshot.valid is True
        assert snapshot.flow_name == "Novo Fluxo"
        assert snapshot.node("A").has_incoming_connections is False
        assert snapshot.node("C").has_incoming_connections is True

    def test_incomplete_blocks_counted(self, session):
        """Test disconnected and empty blocks count as errors."""
        session.store.add_node(MessageNode(id="D"))

        snapshot = session.snapshot()

        assert snapshot.error_count == 1
        assert snapshot.node("D").complete is False
        assert {i.code for i in snapshot.node("D").issues} == {"incomplete_content", "disconnected"}

    def test_listener_once_per_mutation(self, session, snapshots):
        """Test cascaded reducer updates publish a single snapshot."""
        session.on_connect("C", None, "A")

        assert len(snapshots) == 1

    def test_remove_listener(self, session, snapshots):
        session.remove_listener(snapshots.append)

        session.rename_flow("Outro")

        assert snapshots == []


class TestSidebar:
    """Tests for sidebar edits."""

    def test_add_and_remove_example(self, session):
        assert session.add_example("A", "  Bom dia!  ") is True
        assert session.add_example("A", "   ") is False

        assert session.store.get_node("A").examples == ["Exemplo A", "Bom dia!"]

        session.remove_example("A", 0)

        assert session.store.get_node("A").examples == ["Bom dia!"]

    def test_data_field_recomputes_timing(self, session):
        """Test adding a field recomputes the interval even after a manual edit."""
        session.on_update_node_data("C", timing={"interval": 99, "max_wait": 5})
        assert session.store.get_node("C").manual_timing_edit is True

        session.add_data_field("C", "email")

        node = session.store.get_node("C")
        assert node.data_collection == ["email"]
        assert (node.timing.interval, node.timing.max_wait) == (20, 0)
        assert node.manual_timing_edit is False

    def test_remove_data_field(self, session):
        for name in ("nome", "email", "cpf"):
            session.add_data_field("A", name)
        assert session.store.get_node("A").timing.interval == 30

        session.remove_data_field("A", 2)

        node = session.store.get_node("A")
        assert node.data_collection == ["nome", "email"]
        assert node.timing.interval == 20

    def test_force_timing_update(self, session):
        session.on_update_node_data("A", timing={"interval": 99, "max_wait": 1})

        assert session.force_timing_update("A") is True
        assert session.store.get_node("A").timing.interval == 10

    def test_destination_options_exclude_self(self, session):
        assert [n.id for n in session.destination_options("B")] == ["A", "C"]

    def test_rename_flow(self, session):
        session.rename_flow("  Pós-venda ")
        session.rename_flow("   ")

        assert session.flow_name == "Pós-venda"


class TestAddNewBlock:
    """Tests for add_new_block."""

    def test_placed_right_of_rightmost(self, session):
        """Test a new block goes right of the rightmost block at its height."""
        session.on_node_moved("B", 500, 80)

        node = session.add_new_block()

        assert node.position == Position(800, 80)
        assert node.title == "Nova Mensagem"
        assert session.selected_node_id == node.id
        assert session.sidebar_open is True
        assert node.is_start_node is False

    def test_first_block_on_empty_canvas(self, store, settings):
        """Test the first block lands at the default position and starts the flow."""
        session = EditorSession(store=store, settings=settings)

        node = session.add_new_block()

        assert node.position == Position(100, 100)
        assert node.is_start_node is True
        assert (node.timing.interval, node.timing.max_wait) == (10, 0)


class TestPersistence:
    """Tests for session load and save."""

    @pytest.mark.asyncio
    async def test_load_switches_to_edit_mode(self, session, fake_api):
        flowchart = await session.load("flow-1")

        assert flowchart.id == "flow-1"
        assert session.is_edit_mode is True
        assert session.flow_name == "Vendas"
        assert session.store.node_ids == ["node-1", "node-2", "node-3"]

    @pytest.mark.asyncio
    async def test_load_failure_notifies(self, session, notifications):
        """Test a missing flowchart keeps the current graph."""
        result = await session.load("missing")

        assert result is None
        assert session.is_edit_mode is False
        assert session.store.node_ids == ["A", "B", "C"]
        assert notifications == [("error", "Erro ao carregar fluxo. Verifique se o fluxo existe.")]

    @pytest.mark.asyncio
    async def test_save_without_company(self, session, fake_api, notifications):
        result = await session.save()

        assert result is None
        assert notifications == [("error", "Nenhuma empresa selecionada")]
        fake_api.create_flowchart.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_then_update(self, session, fake_api, notifications):
        """Test the first save creates the flowchart and later saves update it."""
        session.rename_flow("Vendas")

        first = await session.save(company_id="company-1")

        assert first.created is True
        assert session.flowchart_id == "flow-new"
        fake_api.create_flowchart.assert_awaited_once_with("company-1", "Vendas")

        fake_api.get_flowchart.side_effect = None
        fake_api.get_flowchart.return_value = fake_api.flowchart.model_copy(update={"id": "flow-new"})
        second = await session.save()

        assert second.created is False
        assert [level for level, _ in notifications] == ["success", "success"]
        assert notifications[0][1] == "Fluxo criado com sucesso!"
        assert notifications[1][1] == "Fluxo atualizado com sucesso!"

    @pytest.mark.asyncio
    async def test_save_failure_notifies(self, session, fake_api, notifications):
        fake_api.create_block.side_effect = ServerError("boom")

        result = await session.save(company_id="company-1")

        assert result is None
        assert session.is_busy is False
        assert notifications == [
            ("error", "Erro ao salvar fluxo. Verifique sua conexão e tente novamente.")
        ]

    def test_missing_api(self, store, settings):
        session = EditorSession(store=store, settings=settings, company_id="company-1")

        with pytest.raises(RuntimeError):
            session._require_api()


class TestSaveOverHTTP:
    """Tests for saving through the HTTP client."""

    @pytest.mark.asyncio
    @respx.mock
    async def test_dropped_connection_during_save(self, chain_store, settings, notifications):
        """Test a connection reset mid-save is reported, not raised."""
        base_url = "https://api.test"
        respx.post(f"{base_url}/seller-companies/company-1/messages-flowcharts").mock(
            return_value=httpx.Response(201, json={"messagesFlowchart": {"id": "f1"}})
        )
        blocks = respx.post(f"{base_url}/messages-flowcharts/f1/message-blocks").mock(
            side_effect=httpx.ReadError("connection reset")
        )
        session = EditorSession(
            api=FlowchartClient(base_url=base_url),
            store=chain_store,
            settings=settings,
            company_id="company-1",
            notify=lambda level, message: notifications.append((level, message)),
        )

        result = await session.save()

        assert result is None
        assert blocks.call_count == 1
        assert session.is_edit_mode is False
        assert notifications == [
            ("error", "Erro ao salvar fluxo. Verifique sua conexão e tente novamente.")
        ]
        await session.api.close()
