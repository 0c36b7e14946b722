"""Shared pytest fixtures for testing."""

from typing import List, Optional
from unittest.mock import AsyncMock

import pytest

from flowchart_editor.config import EditorSettings
from flowchart_editor.exceptions import NotFoundError
from flowchart_editor.graph.store import FlowGraphStore
from flowchart_editor.models import MessageBlock, MessageNode, MessagesFlowchart


# =============================================================================
# Graph Fixtures
# =============================================================================


@pytest.fixture
def settings() -> EditorSettings:
    """Editor settings with defaults."""
    return EditorSettings()


@pytest.fixture
def store(settings) -> FlowGraphStore:
    """Empty graph store with the default reducers."""
    return FlowGraphStore(settings=settings)


@pytest.fixture
def node_factory():
    """Build message nodes with complete content unless overridden."""

    def _make(node_id: str, **kwargs) -> MessageNode:
        kwargs.setdefault("title", f"Bloco {node_id}")
        kwargs.setdefault("message_purpose", f"Propósito {node_id}")
        kwargs.setdefault("examples", [f"Exemplo {node_id}"])
        return MessageNode(id=node_id, **kwargs)

    return _make


@pytest.fixture
def chain_store(store, node_factory) -> FlowGraphStore:
    """A -> B -> C with plain edges."""
    for node_id in ("A", "B", "C"):
        store.add_node(node_factory(node_id))
    store.connect("A", None, "B")
    store.connect("B", None, "C")
    return store


# =============================================================================
# Remote Fixtures
# =============================================================================


@pytest.fixture
def sample_blocks() -> List[MessageBlock]:
    """A -> B plain, B branches yes -> C and no -> A."""
    return [
        MessageBlock.model_validate(
            {
                "id": "blk-a",
                "isFirstMessage": True,
                "isLastMessage": False,
                "previousMessageBlockId": None,
                "messagePurpose": "Cumprimentar o cliente",
                "messageExamples": ["Olá! Tudo bem?"],
                "positiveBlockId": None,
                "negativeBlockId": None,
                "timeIntervalBetweenMessages": 10,
                "maximumWaitTime": 3600,
                "haveParticularCondition": False,
                "condition": None,
                "dataCollectionFields": [],
            }
        ),
        MessageBlock.model_validate(
            {
                "id": "blk-b",
                "isFirstMessage": False,
                "isLastMessage": False,
                "previousMessageBlockId": "blk-a",
                "messagePurpose": "Perguntar interesse",
                "messageExamples": ["Posso te mostrar nossos planos?"],
                "positiveBlockId": "blk-c",
                "negativeBlockId": "blk-a",
                "timeIntervalBetweenMessages": 20,
                "maximumWaitTime": 3600,
                "haveParticularCondition": True,
                "condition": "Tem interesse?",
                "dataCollectionFields": ["nome"],
            }
        ),
        MessageBlock.model_validate(
            {
                "id": "blk-c",
                "isFirstMessage": False,
                "isLastMessage": True,
                "previousMessageBlockId": "blk-b",
                "messagePurpose": "Apresentar planos",
                "messageExamples": ["Temos três planos."],
                "positiveBlockId": None,
                "negativeBlockId": None,
                "timeIntervalBetweenMessages": 10,
                "maximumWaitTime": 0,
                "haveParticularCondition": False,
                "condition": None,
                "dataCollectionFields": None,
            }
        ),
    ]


class FakeBlockAPI:
    """In-memory remote block API; every method is an ``AsyncMock``."""

    def __init__(self, flowchart: Optional[MessagesFlowchart] = None):
        self.flowchart = flowchart
        self.created = []
        self._counter = 0

        self.create_flowchart = AsyncMock(return_value="flow-new")
        self.get_flowchart = AsyncMock(side_effect=self._get_flowchart)
        self.set_flowchart_sequence = AsyncMock(return_value=None)
        self.create_block = AsyncMock(side_effect=self._create_block)
        self.edit_block = AsyncMock(return_value=None)
        self.delete_block = AsyncMock(return_value=None)

    async def _create_block(self, flowchart_id, request):
        self._counter += 1
        block_id = f"r{self._counter}"
        self.created.append((block_id, request))
        return block_id

    async def _get_flowchart(self, flowchart_id):
        if self.flowchart is None or self.flowchart.id != flowchart_id:
            raise NotFoundError(f"Resource not found: /messages-flowcharts/{flowchart_id}")
        return self.flowchart

    def request_for(self, block_id):
        for created_id, request in self.created:
            if created_id == block_id:
                return request
        raise KeyError(block_id)


@pytest.fixture
def sample_flowchart(sample_blocks) -> MessagesFlowchart:
    return MessagesFlowchart(id="flow-1", name="Vendas", message_block_sequence=sample_blocks)


@pytest.fixture
def fake_api(sample_flowchart) -> FakeBlockAPI:
    return FakeBlockAPI(sample_flowchart)
