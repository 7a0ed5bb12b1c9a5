"""Structured JSON-lines logging for the relay.

Every record is rendered as one JSON object per line carrying ``timestamp``,
``level``, ``logger`` and ``message`` plus any fields passed through
``extra=``. Records go to stderr by default: stdout belongs to the MCP stdio
transport.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, TextIO

ROOT_LOGGER = "stdout_mcp"

_STANDARD_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "asctime",
    "message",
    "taskName",
}


def _record_timestamp(record: logging.LogRecord) -> str:
    ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class JSONLineFormatter(logging.Formatter):
    """Render log records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": _record_timestamp(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith("_"):
                continue
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=False)


class _StructuredHandler(logging.StreamHandler):
    pass


def configure_logging(level: str | int = "INFO", stream: TextIO | None = None) -> logging.Logger:
    """Install the JSON handler on the ``stdout_mcp`` logger.

    Calling it again replaces the previous handler rather than stacking a new one.
    """

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, _StructuredHandler):
            logger.removeHandler(handler)
    handler = _StructuredHandler(stream or sys.stderr)
    handler.setFormatter(JSONLineFormatter())
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.propagate = False
    return logger
