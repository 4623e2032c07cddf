"""Logging setup for the THESAURION logger hierarchy.

Every module logs to ``THESAURION.<Component>``. ``setup_logging`` attaches a
console handler (and optionally a rotating file) to the ``THESAURION`` parent
only, so host applications keep control of the root logger.
"""

from __future__ import annotations

import json
import logging
import logging.handlers
import sys
from typing import Dict, List, Optional

from ..utils.errors import ThesaurionError

LOGGER_NAME = "THESAURION"


def _level(name: str) -> int:
    return getattr(logging, str(name).upper(), logging.INFO)


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
            error = record.exc_info[1]
            if isinstance(error, ThesaurionError) and error.context:
                entry["context"] = {k: str(v) for k, v in error.context.items()}
        return json.dumps(entry, ensure_ascii=False)


class StandardFormatter(logging.Formatter):
    """``time LEVEL [Component] message``, coloured on a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[41m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: Optional[bool] = None):
        super().__init__()
        self.use_color = sys.stdout.isatty() if use_color is None else use_color

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8s}"
        if self.use_color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"
        component = record.name
        if component.startswith(LOGGER_NAME + "."):
            component = component[len(LOGGER_NAME) + 1:]

        text = f"{self.formatTime(record)} {level} [{component}] {record.getMessage()}"
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


def _make_handlers(
    formatter: logging.Formatter,
    level: int,
    log_file: Optional[str],
    file_size_mb: int,
    backup_count: int,
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        try:
            handlers.append(logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=file_size_mb * 1024 * 1024,
                backupCount=backup_count,
                encoding="utf-8",
            ))
        except OSError as e:
            logging.getLogger(LOGGER_NAME).warning(f"Failed to set up file logging: {e}")
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "standard",
    log_file: Optional[str] = None,
    component_levels: Optional[Dict[str, str]] = None,
    file_size_mb: int = 10,
    backup_count: int = 5,
) -> logging.Logger:
    """Configure the THESAURION loggers; safe to call more than once.

    Args:
        log_level: Level for THESAURION.* loggers
        log_format: "standard" or "json"
        log_file: Optional path to a rotating log file
        component_levels: e.g. {"THESAURION.Cache": "DEBUG"}

    Returns:
        The THESAURION parent logger
    """
    parent = logging.getLogger(LOGGER_NAME)
    for handler in parent.handlers[:]:
        parent.removeHandler(handler)
        handler.close()

    level = _level(log_level)
    parent.setLevel(level)

    formatter = JSONFormatter() if log_format.lower() == "json" else StandardFormatter()
    for handler in _make_handlers(formatter, level, log_file, file_size_mb, backup_count):
        parent.addHandler(handler)

    for component, component_level in (component_levels or {}).items():
        logging.getLogger(component).setLevel(_level(component_level))

    parent.info(f"Logging initialized: level={log_level}, format={log_format}")
    return parent


def setup_logging_from_config(config) -> logging.Logger:
    """Apply a ThesaurionConfig's logging section."""
    section = config.logging
    return setup_logging(
        log_level=section.level,
        log_format=section.format,
        log_file=section.file_path,
        file_size_mb=section.file_size_mb,
        backup_count=section.backup_count,
    )


__all__ = [
    "setup_logging",
    "setup_logging_from_config",
    "JSONFormatter",
    "StandardFormatter",
    "LOGGER_NAME",
]
