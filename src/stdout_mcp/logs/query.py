"""Query adapter between the MCP tool and the log buffer."""

from __future__ import annotations

import json
import logging
from typing import List, Optional, Sequence

from stdout_mcp.errors import LogRetrievalError
from stdout_mcp.logs.buffer import LogBuffer
from stdout_mcp.logs.models import LogEntry
from stdout_mcp.settings import DEFAULT_LINES
from stdout_mcp.telemetry import meter

logger = logging.getLogger(__name__)


class QueryService:
    def __init__(self, buffer: LogBuffer, default_lines: int = DEFAULT_LINES) -> None:
        self._buffer = buffer
        self._default_lines = default_lines

    def get_logs(
        self,
        lines: Optional[int] = None,
        filter: Optional[str] = None,
        since: Optional[float] = None,
    ) -> List[LogEntry]:
        """Fetch buffered entries; failures surface only as ``LogRetrievalError``."""

        try:
            result = self._buffer.query(
                max_lines=self._default_lines if lines is None else int(lines),
                filter=filter or None,
                since=None if since is None else float(since),
            )
        except Exception:
            logger.exception(
                "Error retrieving logs",
                extra={"lines": lines, "filter": filter, "since": since},
            )
            meter.record_query("error")
            raise LogRetrievalError() from None
        meter.record_query("ok")
        return result

    @staticmethod
    def render(entries: Sequence[LogEntry]) -> str:
        return json.dumps([entry.as_dict() for entry in entries], ensure_ascii=False)


__all__ = ["QueryService"]
