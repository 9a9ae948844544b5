"""
Structured logging configuration.

Every module logs through ``logging.getLogger(__name__)``, which places it
under the ``bankcards`` logger hierarchy. ``setup_logging`` attaches a single
JSON handler to that root so records come out one object per line.

Passwords and token strings must never be passed to a logger.
"""

import json
import logging
from datetime import datetime, timezone


class JSONFormatter(logging.Formatter):
    """Render a log record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", logger_name: str = "bankcards") -> logging.Logger:
    """
    Configure the package logger.

    Safe to call more than once (e.g. on every app startup in tests):
    existing handlers are replaced, not duplicated.
    """
    logger = logging.getLogger(logger_name)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    logger.addHandler(handler)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    return logger
