#!/usr/bin/env python3
"""
Structured logging configuration for mediagrab.

Everything goes to stderr through stdlib logging, so uvicorn, httpx and
mediagrab records share one stream and one level.
"""

import logging
import sys

import structlog
from structlog.typing import Processor

from .config import get_config

# Libraries that log every HTTP request or chunk at INFO/DEBUG
CHATTY_LOGGERS = ("httpx", "httpcore")


def _render_processors(log_format: str) -> list[Processor]:
    if log_format == "json":
        return [
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    return [
        structlog.processors.TimeStamper(fmt="%H:%M:%S"),
        structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
    ]


def setup_logging() -> None:
    """Configure structured logging based on configuration."""
    config = get_config()
    level = getattr(logging, config.log_level)

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)
    for name in CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            *_render_processors(config.log_format),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = "mediagrab") -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance."""
    return structlog.get_logger(name)
