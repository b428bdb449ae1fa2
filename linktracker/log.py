"""JSON logging to a stream, and a logger that discards everything."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from typing import TextIO

_RESERVED = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None))
) | {"message", "asctime", "taskName"}

_LEVEL_NAMES = {"WARNING": "WARN", "CRITICAL": "ERROR"}


class JsonFormatter(logging.Formatter):
    """Formats a record as one JSON object per line.

    Values passed through ``extra`` become keys of the object.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created).astimezone().isoformat(),
            "level": _LEVEL_NAMES.get(record.levelname, record.levelname),
            "msg": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED:
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def new_logger(stream: TextIO | None = None) -> logging.Logger:
    """A debug-level logger writing JSON lines to ``stream`` (stdout by default)."""
    logger = logging.Logger("linktracker", logging.DEBUG)
    handler = logging.StreamHandler(sys.stdout if stream is None else stream)
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger


def new_discard_logger() -> logging.Logger:
    """A logger that drops every record."""
    logger = logging.Logger("linktracker.discard")
    logger.addHandler(logging.NullHandler())
    return logger