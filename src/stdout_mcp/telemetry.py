from __future__ import annotations

from typing import Mapping, Optional

from opentelemetry import metrics


class _Meter:
    def __init__(self):
        meter = metrics.get_meter("stdout_mcp")
        self._ctr_lines = meter.create_counter(
            "log_lines_ingested_total",
            unit="line",
            description="Count of log lines read from the named pipe",
        )
        self._ctr_sessions = meter.create_counter(
            "pipe_read_sessions_total",
            unit="session",
            description="Count of finished pipe read sessions by outcome",
        )
        self._ctr_queries = meter.create_counter(
            "log_queries_total",
            unit="query",
            description="Count of get-logs queries by status",
        )

    def inc_lines(self, inc: int = 1, attrs: Optional[Mapping[str, str]] = None):
        self._ctr_lines.add(inc, attributes=attrs or {})

    def record_session(self, outcome: str) -> None:
        self._ctr_sessions.add(1, attributes={"outcome": outcome})

    def record_query(self, status: str) -> None:
        self._ctr_queries.add(1, attributes={"status": status})


meter = _Meter()
