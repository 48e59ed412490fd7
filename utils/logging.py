# utils/logging.py

"""Logging setup shared by the CLI and the HTTP server.

Application code logs through ``structlog``; records end up on the standard
library root logger so third-party output (uvicorn, httpx) shares handlers.
"""

from __future__ import annotations

import logging
import logging.handlers
import os

import structlog
from rich.logging import RichHandler

from config import settings

logger = structlog.get_logger(__name__)


__all__ = ["setup_logging"]

_SHARED_PROCESSORS: list = [
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]

_QUIET_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def _plain_formatter() -> logging.Formatter:
    return logging.Formatter(settings.LOG_FORMAT, datefmt=settings.LOG_DATE_FORMAT)


def _json_formatter() -> logging.Formatter:
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
    )


def _file_handler(path: str) -> logging.Handler | None:
    try:
        log_dir = os.path.dirname(path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            path,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            mode="a",
            encoding="utf-8",
        )
    except OSError as e:  # pragma: no cover - path issues
        logger.error("Error setting up file logger: %s", e)
        return None
    formatter = _json_formatter() if settings.LOG_JSON else _plain_formatter()
    handler.setFormatter(formatter)
    return handler


def _console_handler() -> logging.Handler:
    if settings.LOG_JSON:
        handler = logging.StreamHandler()
        handler.setFormatter(_json_formatter())
        return handler
    if settings.ENABLE_RICH_LOGGING:
        return RichHandler(
            level=settings.LOG_LEVEL_STR,
            rich_tracebacks=True,
            show_path=False,
            markup=False,
        )
    handler = logging.StreamHandler()
    handler.setFormatter(_plain_formatter())
    return handler


def setup_logging() -> None:
    """Configure structlog and route everything through the root logger.

    Safe to call more than once; existing root handlers are replaced.
    """
    if settings.LOG_JSON:
        final_processor = structlog.stdlib.ProcessorFormatter.wrap_for_formatter
    else:
        final_processor = structlog.stdlib.render_to_log_kwargs
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, final_processor],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(settings.LOG_LEVEL_STR)

    if settings.LOG_FILE:
        file_handler = _file_handler(settings.LOG_FILE)
        if file_handler is not None:
            root_logger.addHandler(file_handler)
    root_logger.addHandler(_console_handler())

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger().info(
        "Workshop logging setup complete.",
        log_level=settings.LOG_LEVEL_STR,
        json=settings.LOG_JSON,
    )
