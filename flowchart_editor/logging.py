"""
Structured Logging Configuration

Wires structlog on top of the standard library logger so that editor,
converter and client events are emitted as key/value records. JSON output
is meant for production, the console renderer for development.
"""

import logging
import sys
from typing import Optional, Union

import structlog

from .config import LogFormat, get_settings


def configure_logging(
    level: Optional[str] = None,
    fmt: Optional[Union[LogFormat, str]] = None,
) -> None:
    """
    Configure structlog and the root stdlib logger.

    Args:
        level: Log level name, defaults to the ``log_level`` setting
        fmt: Renderer, ``json`` or ``pretty``, defaults to the ``log_format`` setting
    """
    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    log_format = LogFormat(fmt or settings.log_format)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level_name, logging.INFO),
    )

    if log_format == LogFormat.JSON:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


__all__ = ["configure_logging"]
