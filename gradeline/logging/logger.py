# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Structured JSON logger for gradeline.

Every log entry is a single JSON line: timestamped, leveled, tagged with the
source module, plus whatever context the caller attaches through `extra`.

  {"ts": "2026-...", "level": "INFO", "module": "gradeline.evaluation.runner.scheduler",
   "msg": "Grading run finished", "submissions": 12, ...}

`get_logger` is the only way modules obtain a logger. `configure_logging`
is called once by the runtime bootstrap to apply the configured level and
optional file sink to every gradeline logger, including ones created at
import time before the config was known.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

_ROOT_NAME = "gradeline"

_STANDARD_ATTRS = frozenset({
    "name",
    "msg",
    "args",
    "created",
    "relativeCreated",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "pathname",
    "filename",
    "module",
    "levelno",
    "levelname",
    "processName",
    "process",
    "threadName",
    "thread",
    "message",
    "msecs",
    "taskName",
})


class JsonFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Mandatory fields: ts (ISO 8601 UTC), level, module (logger name), msg.
    Fields passed via `extra=` are merged in as additional context. A
    formatted traceback is added under `exc` when the call carried exc_info.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "ts": datetime.now(tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _resolve_log_level(level_name: str) -> int:
    """Turn a level name string into the corresponding logging constant."""
    upper = level_name.upper()
    if upper not in _VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level '{level_name}'. Must be one of: {', '.join(sorted(_VALID_LOG_LEVELS))}"
        )
    return getattr(logging, upper)


def get_logger(
    name: str,
    log_level: str = "INFO",
    log_file: Optional[Path] = None,
) -> logging.Logger:
    """
    Create a structured JSON logger.

    Args:
        name: Logger name, typically __name__ of the calling module.
        log_level: One of DEBUG, INFO, WARNING, ERROR, CRITICAL.
        log_file: Optional path to a log file. If provided, logs go to both
                  stdout and the file.

    Returns:
        A configured logging.Logger that outputs structured JSON.
    """
    logger = logging.getLogger(name)
    level = _resolve_log_level(log_level)
    logger.setLevel(level)

    # Avoid stacking handlers if get_logger is called multiple times for the
    # same name (happens in tests).
    if logger.handlers:
        return logger

    formatter = JsonFormatter()

    stdout_handler = logging.StreamHandler(stream=sys.stdout)
    stdout_handler.setLevel(level)
    stdout_handler.setFormatter(formatter)
    logger.addHandler(stdout_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    return logger


def configure_logging(log_level: str, log_file: Optional[Path] = None) -> None:
    """
    Apply a level (and optional file sink) to every existing gradeline logger.

    Module loggers are created at import time with the default level, so the
    configured level has to be pushed down to them after the config loads.
    """
    level = _resolve_log_level(log_level)
    file_handler: Optional[logging.FileHandler] = None
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(JsonFormatter())

    for name in list(logging.Logger.manager.loggerDict):
        if name != _ROOT_NAME and not name.startswith(f"{_ROOT_NAME}."):
            continue
        logger = logging.getLogger(name)
        if not logger.handlers:
            continue
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)
        if file_handler is not None and not any(
            isinstance(h, logging.FileHandler) for h in logger.handlers
        ):
            logger.addHandler(file_handler)
