"""Logging configuration for garp.

Usage:
    from garp.logging_config import get_logger

    logger = get_logger(__name__)
    logger.info("Deployment started", extra={"extra": {"strategy": "rsync"}})

The CLI calls ``setup_logging`` once; library code only asks for loggers.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
import traceback
from datetime import datetime, timezone
from pathlib import Path

ROOT_LOGGER_NAME = "garp"


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging."""

    @staticmethod
    def _utc_isoformat() -> str:
        return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self._utc_isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if isinstance(getattr(record, "extra", None), dict):
            log_data.update(record.extra)

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        return json.dumps(log_data, default=str)


def setup_logging(
    level: int = logging.INFO,
    log_dir: Path | None = None,
    enable_json: bool = False,
    enable_console: bool = True,
) -> logging.Logger:
    """Configure the ``garp`` logger hierarchy.

    Args:
        level: Console logging level
        log_dir: Directory for the rotating JSON log (only used with enable_json)
        enable_json: Also write structured logs to ``<log_dir>/garp.json.log``
        enable_console: Log to stderr

    Returns:
        The configured root ``garp`` logger
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    if enable_console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
                datefmt="%H:%M:%S",
            )
        )
        logger.addHandler(console_handler)

    if enable_json:
        log_dir = log_dir or Path(".garp") / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)
        json_handler = logging.handlers.RotatingFileHandler(
            log_dir / "garp.json.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
        )
        json_handler.setLevel(logging.DEBUG)
        json_handler.setFormatter(JSONFormatter())
        logger.addHandler(json_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the ``garp`` namespace."""
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


__all__ = ["setup_logging", "get_logger", "JSONFormatter"]
