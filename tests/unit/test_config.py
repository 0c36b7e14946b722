"""Unit tests for settings and logging setup."""

import logging

import pytest
import structlog

from flowchart_editor.config import EditorSettings, LogFormat
from flowchart_editor.logging import configure_logging


@pytest.fixture
def reset_structlog():
    yield
    structlog.reset_defaults()


class TestSettings:
    """Tests for EditorSettings."""

    def test_defaults(self):
        settings = EditorSettings()

        assert settings.timing.base_interval == 10
        assert settings.timing.connected_max_wait == 3600
        assert settings.canvas.columns == 3
        assert settings.api.base_url == "http://localhost:3000"
        assert settings.default_flow_name == "Novo Fluxo"

    def test_environment_overrides(self, monkeypatch):
        """Test nested settings read their own env prefix."""
        monkeypatch.setenv("FLOWCHART_TIMING_LONG_COLLECTION_INTERVAL", "45")
        monkeypatch.setenv("FLOWCHART_API_TOKEN", "abc")
        monkeypatch.setenv("FLOWCHART_LOG_FORMAT", "json")

        settings = EditorSettings()

        assert settings.timing.long_collection_interval == 45
        assert settings.api.token == "abc"
        assert settings.log_format == LogFormat.JSON


class TestLogging:
    """Tests for configure_logging."""

    def test_json_renderer(self, reset_structlog, caplog):
        caplog.set_level(logging.INFO)
        configure_logging(level="info", fmt="json")

        structlog.get_logger("flowchart_editor.test").info("block_added", node_id="A")

        out = caplog.text
        assert '"event": "block_added"' in out
        assert '"node_id": "A"' in out

    def test_invalid_format(self, reset_structlog):
        with pytest.raises(ValueError):
            configure_logging(fmt="xml")
