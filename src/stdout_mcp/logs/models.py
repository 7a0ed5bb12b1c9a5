"""Log entry model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """Render ``ts`` as ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""

    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp_millis(raw: str) -> int:
    """Parse an ISO-8601 timestamp into epoch milliseconds.

    Naive timestamps are read as UTC. Raises ``ValueError`` when ``raw`` is not
    a valid timestamp.
    """

    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return (parsed - _EPOCH) // timedelta(milliseconds=1)


@dataclass(frozen=True, slots=True)
class LogEntry:
    timestamp: str
    message: str

    @classmethod
    def now(cls, message: str) -> "LogEntry":
        return cls(timestamp=format_timestamp(_utc_now()), message=message)

    def timestamp_millis(self) -> int:
        return parse_timestamp_millis(self.timestamp)

    def as_dict(self) -> Dict[str, str]:
        return {"timestamp": self.timestamp, "message": self.message}


__all__ = ["LogEntry", "format_timestamp", "parse_timestamp_millis"]
