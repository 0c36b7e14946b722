"""
Configuration for the Flowchart Editor.
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SourceHandle(str, Enum):
    """Named conditional output ports of a message block.

    The plain output has no handle and is represented by ``None``.
    """

    YES = "yes"
    NO = "no"


class NodeKind(str, Enum):
    """Kind of a message block, derived from its flags."""

    START = "start"
    PLAIN = "plain"
    CONDITIONAL = "conditional"


class IssueSeverity(str, Enum):
    """Validation issue severity."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    PRETTY = "pretty"


class TimingConfig(BaseSettings):
    """Timing inference constants (seconds)."""

    model_config = SettingsConfigDict(env_prefix="FLOWCHART_TIMING_")

    base_interval: int = Field(default=10, description="Interval with no data collection")
    short_collection_interval: int = Field(default=20, description="Interval for 1-2 fields")
    long_collection_interval: int = Field(default=30, description="Interval for many fields")
    long_collection_threshold: int = Field(default=3, description="Field count for long interval")
    connected_max_wait: int = Field(default=3600, description="Max wait with outgoing edges")
    idle_max_wait: int = Field(default=0, description="Max wait with no outgoing edge")


class CanvasConfig(BaseSettings):
    """Canvas placement and limits."""

    model_config = SettingsConfigDict(env_prefix="FLOWCHART_CANVAS_")

    # New blocks
    default_x: float = Field(default=100, description="Position of the first block")
    default_y: float = Field(default=100, description="Position of the first block")
    new_node_offset_x: float = Field(default=300, description="Gap right of the rightmost block")

    # Import grid
    columns: int = Field(default=3, ge=1, description="Blocks per row on import")
    origin_x: float = Field(default=250, description="Import grid origin")
    origin_y: float = Field(default=100, description="Import grid origin")
    column_spacing: float = Field(default=350, description="Horizontal grid spacing")
    row_spacing: float = Field(default=250, description="Vertical grid spacing")

    # Validation
    max_nodes_per_flow: int = Field(default=500, description="Max blocks per flowchart")


class APIConfig(BaseSettings):
    """Remote block API configuration."""

    model_config = SettingsConfigDict(env_prefix="FLOWCHART_API_")

    base_url: str = Field(default="http://localhost:3000", description="API base URL")
    token: Optional[str] = Field(default=None, description="Bearer token")
    timeout: float = Field(default=30.0, description="Transport timeout in seconds")
    user_agent: str = Field(default="flowchart-editor/1.0.0", description="User-Agent header")


class EditorSettings(BaseSettings):
    """Main editor settings."""

    model_config = SettingsConfigDict(
        env_prefix="FLOWCHART_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    log_level: str = Field(default="info", description="Log level")
    log_format: LogFormat = Field(default=LogFormat.PRETTY, description="Log renderer")

    default_flow_name: str = Field(default="Novo Fluxo", description="Name of a new flowchart")
    new_block_title: str = Field(default="Nova Mensagem", description="Title of a new block")
    new_block_purpose: str = Field(
        default="Definir propósito da mensagem",
        description="Placeholder purpose of a new block",
    )

    # Sub-configurations
    timing: TimingConfig = Field(default_factory=TimingConfig)
    canvas: CanvasConfig = Field(default_factory=CanvasConfig)
    api: APIConfig = Field(default_factory=APIConfig)


@lru_cache
def get_settings() -> EditorSettings:
    """Get cached settings."""
    return EditorSettings()
