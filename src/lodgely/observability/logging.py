"""JSON logs on stdout, one object per line.

Each line carries timestamp, service, level, logger, message and the
current correlationId; callers add fields with
``extra={"extra_fields": safe_log_context(...)}``.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .correlation import get_correlation_id

SERVICE_NAME = "lodgely"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = get_correlation_id()
        if cid:
            entry["correlationId"] = cid

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(getattr(record, "extra_fields", None) or {})
        return json.dumps(entry, default=str)


def level_from_env() -> int:
    """LOG_LEVEL as a logging level, INFO when unset or unknown."""
    level = logging.getLevelName(os.environ.get("LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Logger writing JSON to stdout; configured once per name."""
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    logger.setLevel(level_from_env())
    logger.propagate = False
    return logger
