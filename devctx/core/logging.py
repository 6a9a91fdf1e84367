"""Structured key=value logging for the dev context service.

Each record is a single line of ``key=value`` pairs; values containing
whitespace are quoted so lines stay machine-splittable. Stack traces
follow on the next lines.
"""

import logging
import sys
from typing import Any

# Fields promoted from ``extra`` ahead of free-form context
CONTEXT_FIELDS = ("request_id", "scope", "action")


def _format_value(value: Any) -> str:
    text = str(value)
    if not text or any(char.isspace() for char in text) or '"' in text:
        return '"' + text.replace('"', '\\"') + '"'
    return text


class StructuredFormatter(logging.Formatter):
    """Key=value structured log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
        }

        for name in CONTEXT_FIELDS:
            if hasattr(record, name):
                fields[name] = getattr(record, name)

        fields.update(getattr(record, "extra_data", {}) or {})
        fields["message"] = record.getMessage()

        line = " ".join(f"{key}={_format_value(value)}" for key, value in fields.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _level_for_environment() -> int:
    try:
        from devctx.core.config import get_settings

        return logging.DEBUG if get_settings().DEVCTX_ENV == "dev" else logging.INFO
    except Exception:
        # Settings not loadable yet; the lifespan reports configuration errors
        return logging.INFO


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger writing structured lines to stdout, DEBUG in the dev environment
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level_for_environment())

    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **fields: Any) -> None:
    """
    Log with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **fields: Context fields; request_id, scope and action are printed first
    """
    extra: dict[str, Any] = {name: fields.pop(name) for name in CONTEXT_FIELDS if name in fields}
    extra["extra_data"] = fields
    logger.log(level, msg, extra=extra)
