"""Structured key=value logging for BRD Engine."""

import logging
import sys
from typing import Any

# Attributes every LogRecord carries; anything else arrived through `extra=`
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}

_ENV_LEVELS = {
    "dev": logging.DEBUG,
    "test": logging.WARNING,
}


class StructuredFormatter(logging.Formatter):
    """Render records as `key=value` pairs, extra fields included."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS or key == "extra_data" or value is None:
                continue
            fields[key] = value

        fields.update(getattr(record, "extra_data", None) or {})

        line = " ".join(f"{key}={value}" for key, value in fields.items())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _level_for_env() -> int:
    try:
        from brd_engine.core.config import get_settings

        return _ENV_LEVELS.get(get_settings().BRD_ENGINE_ENV, logging.INFO)
    except Exception:
        # Settings need env vars that scripts and imports may not have yet
        return logging.INFO


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger writing structured lines to stdout.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level_for_env())

    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """
    Log with context fields such as document_id, project_id or chunk_count.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Context fields appended to the line
    """
    logger.log(level, msg, extra={"extra_data": kwargs})
