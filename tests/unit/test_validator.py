"""Unit tests for flow validation."""

from datetime import timezone

import pytest

from flowchart_editor.config import CanvasConfig, EditorSettings, IssueSeverity
from flowchart_editor.graph.store import FlowGraphStore
from flowchart_editor.graph.validator import FlowValidator, has_basic_content, is_node_complete
from flowchart_editor.models import FlowEdge, MessageNode


@pytest.fixture
def validator(settings):
    return FlowValidator(settings)


@pytest.fixture
def loop_store(store, node_factory):
    """S -> M plain; M asks a question, yes loops back to S, no is unset."""
    store.add_node(node_factory("S"))
    store.add_node(node_factory("M"))
    store.connect("S", None, "M")
    store.update_node_data("M", has_condition=True, condition_question="Deseja continuar?")
    store.connect("M", "yes", "S")
    return store


class TestNodeIssues:
    """Tests for per-block issues."""

    def test_complete_chain_has_no_issues(self, chain_store, validator):
        """Test a fully filled chain validates cleanly."""
        result = validator.validate(chain_store)

        assert result.valid is True
        assert result.issues == []

    def test_missing_content(self, store, validator):
        """Test a block without purpose or examples is incomplete."""
        store.add_node(MessageNode(id="A"))

        issues = validator.node_issues(store, "A")

        assert [i.code for i in issues] == ["incomplete_content"]
        assert "purpose" in issues[0].message
        assert "examples" in issues[0].message

    def test_blank_examples_do_not_count(self):
        node = MessageNode(id="A", message_purpose="Vender", examples=["  "])

        assert has_basic_content(node) is False

    def test_disconnected_block(self, store, node_factory, validator):
        """Test a non-start block without incoming edges is flagged."""
        store.add_node(node_factory("A"))
        store.add_node(node_factory("B"))

        result = validator.validate(store)

        assert [(i.code, i.node_id) for i in result.issues] == [("disconnected", "B")]
        assert result.valid is True

    def test_branch_missing_no_destination(self, loop_store, validator):
        """Test a conditional block without a no destination is incomplete."""
        issues = validator.node_issues(loop_store, "M")

        assert [i.code for i in issues] == ["incomplete_condition"]
        assert "no destination" in issues[0].message
        assert is_node_complete(loop_store.get_node("M"), has_incoming=True) is False

    def test_incomplete_block_does_not_block_editing(self, loop_store, validator):
        """Test issues are reported without preventing mutations."""
        loop_store.update_node_data("M", title="Continuar")

        assert loop_store.get_node("M").title == "Continuar"
        assert validator.validate(loop_store).valid is True


class TestStructure:
    """Tests for graph-wide checks."""

    def test_cycle_is_warning(self, loop_store, validator):
        """Test a loop back to an earlier block is reported once."""
        result = validator.validate(loop_store)

        cycles = [i for i in result.issues if i.code == "cycle"]
        assert len(cycles) == 1
        assert cycles[0].severity == IssueSeverity.WARNING
        assert cycles[0].node_id == "S"

    def test_orphan_branch(self, store, node_factory, validator):
        """Test a yes edge on a block without condition is flagged."""
        store.add_node(node_factory("A"))
        store.add_node(node_factory("B"))
        store.connect("A", "yes", "B")

        result = validator.validate(store)

        assert "orphan_branch" in result.codes()

    def test_no_only_branch_is_info(self, store, node_factory, validator):
        store.add_node(node_factory("A", has_condition=True, condition_question="Quer?"))
        store.add_node(node_factory("B"))
        store.connect("A", "no", "B")

        result = validator.validate(store)

        infos = [i for i in result.issues if i.code == "no_only_branch"]
        assert [i.severity for i in infos] == [IssueSeverity.INFO]

    def test_missing_and_multiple_start(self, settings, node_factory, validator):
        """Test start block errors on a graph without normalisation."""
        bare = FlowGraphStore(settings=settings, install_reducers=False)
        bare.load([node_factory("A"), node_factory("B")], [])

        assert validator.validate(bare).codes()[0] == "missing_start"

        bare.load(
            [node_factory("A", is_start_node=True), node_factory("B", is_start_node=True)],
            [FlowEdge(id="A-B", source="A", target="B")],
        )
        result = validator.validate(bare)

        assert result.valid is False
        assert [(i.code, i.node_id) for i in result.errors] == [("multiple_start", "B")]

    def test_dangling_edge(self, store, node_factory, validator):
        """Test edges with a missing endpoint are errors."""
        store.add_node(node_factory("A"))
        store._edges["A-X"] = FlowEdge(id="A-X", source="A", target="X")

        result = validator.validate(store)

        assert result.valid is False
        assert [(i.code, i.edge_id) for i in result.errors] == [("dangling_edge", "A-X")]

    def test_too_many_nodes(self, node_factory):
        """Test the block limit comes from the canvas config."""
        settings = EditorSettings(canvas=CanvasConfig(max_nodes_per_flow=2))
        store = FlowGraphStore(settings=settings)
        for node_id in ("A", "B", "C"):
            store.add_node(node_factory(node_id))
        store.connect("A", None, "B")
        store.connect("B", None, "C")

        validator = FlowValidator(settings)
        result = validator.validate(store)

        assert result.codes() == ["too_many_nodes"]
        assert validator.quick_validate(store) is False

    def test_empty_graph_is_valid(self, store, validator):
        assert validator.validate(store).valid is True
        assert validator.quick_validate(store) is True

    def test_checked_at_is_timezone_aware(self, chain_store, validator):
        result = validator.validate(chain_store)

        assert result.checked_at.tzinfo is timezone.utc
