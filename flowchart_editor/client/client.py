"""HTTP client for the remote message block API."""

from typing import Any, Dict, List, Optional, Union

import httpx
import structlog

from ..config import APIConfig, get_settings
from ..exceptions import (
    APIConnectionError,
    AuthenticationError,
    FlowchartAPIError,
    NotFoundError,
    ServerError,
    ValidationError,
)
from ..models import CreateMessageBlockRequest, FlowchartSummary, MessagesFlowchart
from .flowcharts import BlocksAPI, FlowchartsAPI, FlowchartTemplate

logger = structlog.get_logger(__name__)


def _error_detail(response: httpx.Response, default: str) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {"message": response.text or default}
    if not isinstance(body, dict):
        return {"message": default}
    body.setdefault("message", body.get("detail") or body.get("error") or default)
    return body


class FlowchartClient:
    """
    Remote message block API client.

    Usage:
        async with FlowchartClient(token="...") as client:
            flowchart_id = await client.create_flowchart(company_id, "Vendas")
            block_id = await client.create_block(flowchart_id, request)

    Requests are never retried; a failed call raises immediately.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        config: Optional[APIConfig] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API base URL, defaults to the ``api.base_url`` setting
            token: Bearer token
            timeout: Transport timeout in seconds
            config: Explicit API configuration
        """
        config = config or get_settings().api
        self.config = config.model_copy(
            update={
                key: value
                for key, value in {
                    "base_url": base_url,
                    "token": token,
                    "timeout": timeout,
                }.items()
                if value is not None
            }
        )
        self.config.base_url = self.config.base_url.rstrip("/")

        self._http_client: Optional[httpx.AsyncClient] = None

        self.flowcharts = FlowchartsAPI(self)
        self.blocks = BlocksAPI(self)

    async def __aenter__(self):
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._http_client is None:
            headers = {
                "Content-Type": "application/json",
                "User-Agent": self.config.user_agent,
            }
            if self.config.token:
                headers["Authorization"] = f"Bearer {self.config.token}"

            self._http_client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                headers=headers,
            )
        return self._http_client

    async def close(self) -> None:
        """Close the client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None

    async def request(
        self,
        method: str,
        path: str,
        data: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make an API request.

        Args:
            method: HTTP method
            path: API path
            data: Request body
            params: Query parameters

        Returns:
            Response data

        Raises:
            FlowchartAPIError: On API or transport errors
        """
        client = await self._ensure_client()

        try:
            response = await client.request(method=method, url=path, json=data, params=params)
        except httpx.TransportError as e:
            logger.error("api_unreachable", method=method, path=path, error=str(e))
            raise APIConnectionError(f"Request to {path} failed: {e}") from e

        logger.debug("api_request", method=method, path=path, status=response.status_code)

        if response.status_code == 401:
            raise AuthenticationError("Invalid or expired token")
        elif response.status_code == 404:
            raise NotFoundError(f"Resource not found: {path}")
        elif response.status_code == 422:
            error_data = _error_detail(response, "Validation error")
            raise ValidationError(error_data["message"], errors=error_data.get("errors", []))
        elif response.status_code >= 500:
            error_data = _error_detail(response, "Server error")
            raise ServerError(error_data["message"], status_code=response.status_code)
        elif response.status_code >= 400:
            error_data = _error_detail(response, "API error")
            raise FlowchartAPIError(
                error_data["message"],
                status_code=response.status_code,
                error_code=error_data.get("code"),
            )

        if response.status_code == 204 or not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            logger.error("api_invalid_response", method=method, path=path, status=response.status_code)
            raise FlowchartAPIError(
                f"Invalid JSON response from {path}",
                status_code=response.status_code,
                error_code="INVALID_RESPONSE",
            ) from e

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make GET request."""
        return await self.request("GET", path, params=params)

    async def post(self, path: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make POST request."""
        return await self.request("POST", path, data=data)

    async def put(self, path: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make PUT request."""
        return await self.request("PUT", path, data=data)

    async def delete(self, path: str) -> Dict[str, Any]:
        """Make DELETE request."""
        return await self.request("DELETE", path)

    @property
    def is_connected(self) -> bool:
        return self._http_client is not None

    # -------------------------------------------------------------------------
    # Remote block API used by the saver and loader
    # -------------------------------------------------------------------------

    async def create_flowchart(self, company_id: str, name: str) -> str:
        flowchart = await self.flowcharts.create(company_id, name)
        return flowchart.id

    async def get_flowchart(self, flowchart_id: str) -> MessagesFlowchart:
        return await self.flowcharts.get(flowchart_id)

    async def set_flowchart_sequence(
        self, flowchart_id: str, name: str, ordered_ids: List[str]
    ) -> None:
        await self.flowcharts.update(flowchart_id, name, ordered_ids)

    async def create_block(self, flowchart_id: str, request: CreateMessageBlockRequest) -> str:
        return await self.blocks.create(flowchart_id, request)

    async def edit_block(self, block_id: str, changes: Dict[str, Any]) -> None:
        await self.blocks.edit(block_id, changes)

    async def delete_block(self, block_id: str) -> None:
        await self.blocks.delete(block_id)

    # -------------------------------------------------------------------------
    # Flowchart management
    # -------------------------------------------------------------------------

    async def list_flowcharts(self, company_id: str) -> List[FlowchartSummary]:
        return await self.flowcharts.list(company_id)

    async def delete_flowchart(self, flowchart_id: str) -> None:
        await self.flowcharts.delete(flowchart_id)

    async def create_flowchart_from_template(
        self,
        company_id: str,
        template: Union[FlowchartTemplate, str],
        name: str,
    ) -> MessagesFlowchart:
        return await self.flowcharts.create_from_template(company_id, template, name)
