from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterable, List, Optional

from stdout_mcp.logs.models import LogEntry
from stdout_mcp.settings import DEFAULT_LINES, MAX_STORED_LOGS

logger = logging.getLogger(__name__)


class LogBuffer:
    """Bounded in-memory store of the most recent log entries.

    Appends beyond ``capacity`` evict the oldest entry first. The buffer is
    owned by a single relay and only touched from the event loop thread.
    """

    def __init__(self, capacity: int = MAX_STORED_LOGS, entries: Iterable[LogEntry] | None = None) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._entries: Deque[LogEntry] = deque(entries or (), maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: LogEntry) -> None:
        self._entries.append(entry)

    def snapshot(self) -> List[LogEntry]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()

    def query(
        self,
        max_lines: Optional[int] = DEFAULT_LINES,
        filter: Optional[str] = None,
        since: Optional[float] = None,
    ) -> List[LogEntry]:
        """Return matching entries, oldest first.

        ``filter`` is a case-insensitive substring match on the message.
        ``since`` keeps entries strictly newer than the given epoch
        milliseconds. At most the ``max_lines`` most recent matches are kept;
        ``None`` or a value <= 0 means all of them.
        """

        entries = self.snapshot()

        if filter:
            needle = filter.lower()
            entries = [e for e in entries if needle in e.message.lower()]

        if since is not None:
            entries = [e for e in entries if _newer_than(e, since)]

        if max_lines is not None and 0 < max_lines < len(entries):
            entries = entries[-max_lines:]
        return entries


def _newer_than(entry: LogEntry, since: float) -> bool:
    try:
        return entry.timestamp_millis() > since
    except ValueError:
        logger.warning(
            "Skipping log entry with malformed timestamp",
            extra={"entry": entry.as_dict()},
        )
        return False


__all__ = ["LogBuffer"]
