"""
Logging configuration module for structured logging.

This module configures the package's logging using structlog. Workers get
JSON lines in production and human-readable console output in development.

The logging configuration includes:
- Timestamp formatting
- Log level inclusion
- JSON/Console output based on settings
- Logger caching
"""

import logging
from typing import Optional

import structlog

from mail_throttle.core.config.settings import get_settings


def configure_logging(log_level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """
    Configures structlog on top of the standard library logging module.

    Args:
        log_level: Level name; defaults to ``LOG_LEVEL`` from settings.
        json_logs: Render JSON; defaults to ``LOG_JSON`` from settings.
    """
    settings = get_settings()
    level = (log_level or settings.LOG_LEVEL).upper()
    render_json = settings.LOG_JSON if json_logs is None else json_logs

    logging.basicConfig(format="%(message)s", level=getattr(logging, level, logging.INFO))

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if render_json else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
