"""Logging configuration for nodeloom.

Engine modules log through standard module loggers and never configure
handlers themselves. Hosts (or the CLI) call configure_logging() once.

Usage:
    from nodeloom.core.logging_config import configure_logging

    configure_logging(level="DEBUG")

Environment Variables:
    NODELOOM_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    NODELOOM_LOG_FORMAT: Output format ("text" or "json")
    NODELOOM_LOG_FILE: Optional log file path
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Literal

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
TEXT_FORMAT_WITH_MS = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else came from `extra=`
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "taskName"}

_configured = False


class JsonFormatter(logging.Formatter):
    """Format records as one JSON object per line.

    {"timestamp": "...", "level": "INFO", "logger": "nodeloom.core.runner.runner",
     "message": "node_started: id=...", "extra": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str | None = None,
    format: Literal["text", "json"] | None = None,
    file_path: str | None = None,
    include_ms: bool = True,
    force: bool = False,
) -> None:
    """Configure root logging.

    Subsequent calls are ignored unless force=True. Arguments left as None
    fall back to the NODELOOM_LOG_* environment variables.

    Args:
        level: Log level name. Defaults to NODELOOM_LOG_LEVEL or "INFO".
        format: "text" or "json". Defaults to NODELOOM_LOG_FORMAT or "text".
        file_path: Optional log file. Defaults to NODELOOM_LOG_FILE.
        include_ms: Include milliseconds in text timestamps.
        force: Reconfigure even if already configured.
    """
    global _configured
    if _configured and not force:
        return

    level = level or os.environ.get("NODELOOM_LOG_LEVEL", "INFO")
    format = format or os.environ.get("NODELOOM_LOG_FORMAT", "text")  # type: ignore[assignment]
    file_path = file_path or os.environ.get("NODELOOM_LOG_FILE")

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.handlers.clear()

    if format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        fmt = TEXT_FORMAT_WITH_MS if include_ms else TEXT_FORMAT
        formatter = logging.Formatter(fmt, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if file_path:
        file_handler = logging.FileHandler(file_path)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger (thin wrapper over logging.getLogger for consistent naming)."""
    return logging.getLogger(name)


def set_level(level: str, logger_name: str | None = None) -> None:
    """Set the level of one logger, or of the root logger when name is None."""
    logging.getLogger(logger_name).setLevel(getattr(logging, level.upper()))
