"""
Structured JSON logging for the workflow board engine.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import UTC, datetime
from logging.handlers import TimedRotatingFileHandler
from typing import Any

ROOT_LOGGER_NAME = "workflow_board"

VALID_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

_STANDARD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "taskName",
        "message",
    }
)


class JSONFormatter(logging.Formatter):
    """
    Formats records as one JSON object per line.

    Anything passed through ``extra=`` ends up under the ``extra`` key.
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).strftime("%Y-%m-%d %H:%M:%S")

        log_data: dict[str, Any] = {
            "timestamp": timestamp,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {key: value for key, value in record.__dict__.items() if key not in _STANDARD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


LOG_FILENAME = "workflow_board.log"


def _file_handler(directory: str, retention_days: int) -> TimedRotatingFileHandler:
    """Handler writing to ``workflow_board.log``, rolled over at UTC midnight."""
    os.makedirs(directory, exist_ok=True)
    return TimedRotatingFileHandler(
        os.path.join(directory, LOG_FILENAME),
        when="midnight",
        backupCount=retention_days,
        encoding="utf-8",
        utc=True,
    )


def setup_logging(
    level: str,
    name: str = ROOT_LOGGER_NAME,
    directory: str | None = None,
    retention_days: int = 14,
) -> logging.Logger:
    """
    Configure JSON logging on the ``name`` logger.

    Logs to stdout, and additionally to a daily rotating file when
    ``directory`` is given, keeping ``retention_days`` rotated files.

    Raises:
        ValueError: If level is not a valid log level
    """
    level_upper = level.upper()
    if level_upper not in VALID_LOG_LEVELS:
        raise ValueError(f"Invalid log level: {level}. Must be one of {sorted(VALID_LOG_LEVELS)}")

    numeric_level = getattr(logging, level_upper)

    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)
    logger.handlers.clear()

    formatter = JSONFormatter()

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(numeric_level)
    stdout_handler.setFormatter(formatter)
    logger.addHandler(stdout_handler)

    if directory is not None:
        file_handler = _file_handler(directory, retention_days)
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Logger for a module, always under the ``workflow_board`` namespace.

    ``get_logger(__name__)`` inside the package returns the module logger as is.
    """
    if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
