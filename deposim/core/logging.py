"""Structured logging for the deposition simulator.

Records are written as ``key=value`` pairs on stdout. API keys and other
secrets that slip into a message are redacted before formatting.
"""

import logging
import sys
from typing import Any

# Order of the leading columns; anything from extra_data follows
_BASE_FIELDS = ("timestamp", "level", "module", "function", "session_id", "message")


def _redact(message: str) -> str:
    # Imported here: errors depends on this module for its logger
    from deposim.core.errors import SENSITIVE_PATTERNS

    for pattern in SENSITIVE_PATTERNS:
        message = pattern.sub("[REDACTED]", message)
    return message


class StructuredFormatter(logging.Formatter):
    """Key=value formatter with a session_id column and secret redaction."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "session_id": getattr(record, "session_id", None),
            "message": _redact(record.getMessage()),
        }
        fields.update(getattr(record, "extra_data", None) or {})

        line = " ".join(
            f"{key}={value}"
            for key, value in fields.items()
            if value is not None or key not in _BASE_FIELDS
        )
        if record.exc_info:
            line += "\n" + _redact(self.formatException(record.exc_info))
        return line


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger writing structured lines; DEBUG when DEPOSIM_ENV is "dev"
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        try:
            from deposim.core.config import get_settings

            dev = get_settings().DEPOSIM_ENV == "dev"
        except Exception:
            # Settings may be unreadable at import time (bad env); log at INFO
            dev = False
        logger.setLevel(logging.DEBUG if dev else logging.INFO)

    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """
    Log with additional context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Context fields; ``session_id`` gets its own column
    """
    session_id = kwargs.pop("session_id", None)
    logger.log(level, msg, extra={"session_id": session_id, "extra_data": kwargs})
