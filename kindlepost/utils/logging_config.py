"""
Logging configuration for kindlepost.

Console output is human-readable on stdout. When ``Config.LOG_TO_FILE`` is
set, a rotating file under ``Config.LOG_DIR`` receives the same records,
as JSON lines unless ``Config.LOG_JSON_FORMAT`` is off.
"""

from __future__ import annotations

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Optional

from kindlepost.config import Config
from kindlepost.utils.file_utils import ensure_dir

ROOT_LOGGER_NAME = "kindlepost"

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JsonFormatter(logging.Formatter):
    """One JSON object per record; context from ``log_event`` is merged in."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "filename": record.filename,
            "lineno": record.lineno,
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        context = getattr(record, "extra", None)
        if isinstance(context, dict):
            entry.update(context)

        return json.dumps(entry, ensure_ascii=True)


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(name: str, level: int) -> logging.Handler:
    log_dir = ensure_dir(Config.LOG_DIR)
    handler = RotatingFileHandler(
        log_dir / f"{name}.log",
        maxBytes=Config.LOG_FILE_MAX_BYTES,
        backupCount=Config.LOG_FILE_BACKUP_COUNT,
    )
    handler.setLevel(level)
    if Config.LOG_JSON_FORMAT:
        handler.setFormatter(JsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(
    name: str = ROOT_LOGGER_NAME,
    level: Optional[str] = None,
    log_to_file: bool = True,
) -> logging.Logger:
    """
    Configure the named logger and return it.

    Args:
        name: Logger name
        level: Log level name; defaults to Config.LOG_LEVEL
        log_to_file: Also write to a rotating file (still gated by Config.LOG_TO_FILE)

    A logger that already has handlers only gets the new level.
    """
    numeric_level = getattr(logging, (level or Config.LOG_LEVEL).upper())
    logger = logging.getLogger(name)
    logger.setLevel(numeric_level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(numeric_level)
        return logger

    logger.addHandler(_console_handler(numeric_level))
    if log_to_file and Config.LOG_TO_FILE:
        logger.addHandler(_file_handler(name, numeric_level))

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return the ``kindlepost.<name>`` logger, configuring the root on first use."""
    full_name = name if name.startswith(ROOT_LOGGER_NAME) else f"{ROOT_LOGGER_NAME}.{name}"
    logger = logging.getLogger(full_name)

    if not logger.handlers and not logging.getLogger(ROOT_LOGGER_NAME).handlers:
        setup_logging()

    return logger


def log_event(logger: logging.Logger, level: str, message: str, **context: Any) -> None:
    """Emit a log record carrying ``context`` for the JSON file formatter."""
    log_fn = getattr(logger, level.lower(), logger.info)
    log_fn(message, extra={"extra": context} if context else None)
