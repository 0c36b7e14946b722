"""Remote message block API client."""

from .client import FlowchartClient
from .flowcharts import BlocksAPI, FlowchartsAPI, FlowchartTemplate

__all__ = ["FlowchartClient", "FlowchartsAPI", "BlocksAPI", "FlowchartTemplate"]
