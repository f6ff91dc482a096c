"""
Structured Logging (structlog).

Wraps structlog with the options the service exposes through its `LOG_*`
configuration: level, output format, timestamp format and short level names.
"""

import logging
import sys
from typing import IO, Any

import structlog

OUTPUT_JSON = "json"
OUTPUT_TEXT = "text"

DEFAULT_TIME_FORMAT = "%b %d %H:%M:%S"

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}

SHORT_LEVELS = {
    "debug": "DBG",
    "info": "INF",
    "warning": "WRN",
    "error": "ERR",
    "critical": "ERR",
}


def parse_level(level: str) -> int:
    """Map a level name to a stdlib level; unknown names fall back to INFO."""
    return LEVELS.get(level.strip().lower(), logging.INFO)


def shorten_level(_logger: Any, _method: str, event_dict: dict) -> dict:
    """Replace the level name with its three-letter form (INF, WRN, ...)."""
    level = event_dict.get("level")
    if level in SHORT_LEVELS:
        event_dict["level"] = SHORT_LEVELS[level]
    return event_dict


def setup_logging(
    level: str = "info",
    fmt: str = OUTPUT_JSON,
    time_format: str = DEFAULT_TIME_FORMAT,
    stream: IO[str] | None = None,
) -> None:
    """
    Configure structlog for structured logging.

    Output format: JSON (default) or text. Unknown formats fall back to JSON.
    Timestamps are local time rendered with `time_format` (strftime).
    """
    if fmt not in (OUTPUT_JSON, OUTPUT_TEXT):
        fmt = OUTPUT_JSON

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=parse_level(level),
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        shorten_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt=time_format or DEFAULT_TIME_FORMAT, utc=False),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if fmt == OUTPUT_JSON:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get configured logger."""
    return structlog.get_logger(name)
