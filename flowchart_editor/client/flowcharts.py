"""Flowchart and message block resources."""

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

from ..models import (
    CreateMessageBlockRequest,
    CreateMessagesFlowchartRequest,
    FlowchartSummary,
    MessagesFlowchart,
)

if TYPE_CHECKING:
    from .client import FlowchartClient


class FlowchartTemplate(str, Enum):
    """Server-side flowchart templates."""

    SALES_GENERAL = "sales_general"
    SALES_SCHEDULING = "sales_scheduling"


class FlowchartsAPI:
    """
    Messages flowcharts API.

    A flowchart belongs to a seller company and holds an ordered block
    sequence.
    """

    def __init__(self, client: "FlowchartClient"):
        self._client = client

    async def list(self, company_id: str) -> List[FlowchartSummary]:
        """List the flowcharts of a company."""
        response = await self._client.get(f"/seller-companies/{company_id}/messages-flowcharts")
        return [FlowchartSummary.model_validate(item) for item in response.get("messagesFlowcharts", [])]

    async def get(self, flowchart_id: str) -> MessagesFlowchart:
        """Get a flowchart with its block sequence."""
        response = await self._client.get(f"/messages-flowcharts/{flowchart_id}")
        return MessagesFlowchart.model_validate(response["messagesFlowchart"])

    async def create(
        self,
        company_id: str,
        name: str,
        block_ids: Optional[List[str]] = None,
    ) -> MessagesFlowchart:
        """
        Create a flowchart.

        Args:
            company_id: Owning seller company
            name: Flowchart name
            block_ids: Initial block sequence, usually empty

        Returns:
            The created flowchart (id and name only)
        """
        body = CreateMessagesFlowchartRequest(name=name, message_block_sequence_ids=block_ids or [])
        response = await self._client.post(
            f"/seller-companies/{company_id}/messages-flowcharts",
            data=body.model_dump(by_alias=True),
        )
        created = response["messagesFlowchart"]
        return MessagesFlowchart(id=created["id"], name=created.get("name", name))

    async def update(self, flowchart_id: str, name: str, block_ids: List[str]) -> None:
        """Rename a flowchart and replace its block sequence."""
        body = CreateMessagesFlowchartRequest(name=name, message_block_sequence_ids=block_ids)
        await self._client.put(
            f"/messages-flowcharts/{flowchart_id}",
            data=body.model_dump(by_alias=True),
        )

    async def delete(self, flowchart_id: str) -> None:
        """Delete a flowchart."""
        await self._client.delete(f"/messages-flowcharts/{flowchart_id}")

    async def create_from_template(
        self,
        company_id: str,
        template: Union[FlowchartTemplate, str],
        name: str,
    ) -> MessagesFlowchart:
        """Create a flowchart pre-filled from a server template."""
        response = await self._client.post(
            f"/seller-companies/{company_id}/messages-flowcharts/from-template",
            data={"templateType": FlowchartTemplate(template).value, "name": name},
        )
        created = response["messagesFlowchart"]
        return MessagesFlowchart(id=created["id"], name=created.get("name", name))


class BlocksAPI:
    """Message blocks API."""

    def __init__(self, client: "FlowchartClient"):
        self._client = client

    async def create(self, flowchart_id: str, request: CreateMessageBlockRequest) -> str:
        """
        Create a block in a flowchart.

        Returns:
            The remote id of the new block
        """
        response = await self._client.post(
            f"/messages-flowcharts/{flowchart_id}/message-blocks",
            data=request.to_payload(),
        )
        return response["messageBlock"]["id"]

    async def edit(
        self,
        block_id: str,
        changes: Union[CreateMessageBlockRequest, Dict[str, Any]],
    ) -> None:
        """Partially edit a block. Dict changes are sent as-is (camelCase keys)."""
        if isinstance(changes, CreateMessageBlockRequest):
            changes = changes.to_payload()
        await self._client.put(f"/message-blocks/{block_id}", data=changes)

    async def delete(self, block_id: str) -> None:
        """Delete a block."""
        await self._client.delete(f"/message-blocks/{block_id}")


__all__ = ["FlowchartTemplate", "FlowchartsAPI", "BlocksAPI"]
