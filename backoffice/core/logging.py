"""Backoffice — Structured JSON Logging.

One handler on the ``backoffice`` logger; module loggers propagate to it.
Context goes in ``extra=`` and is copied into the JSON line when it is one
of ``EXTRA_KEYS``.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from backoffice.config import settings

ROOT_LOGGER = "backoffice"

EXTRA_KEYS = (
    "endpoint",
    "entity_id",
    "account_id",
    "user_id",
    "status_code",
    "duration_ms",
)


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _configure_root() -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        root.addHandler(handler)
        root.propagate = False
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    return root


def get_logger(name: str) -> logging.Logger:
    """``backoffice.<name>``, writing JSON lines to stdout."""
    _configure_root()
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
