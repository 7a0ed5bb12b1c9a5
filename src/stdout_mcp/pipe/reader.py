"""Pipe read sessions.

A ``PipeReader`` is a two-state machine. ``start_reading`` moves it from
``IDLE`` to ``READING`` and schedules one session on the event loop; the
session returns it to ``IDLE`` when the writer closes its end or the read
fails. Sessions are never restarted from here: the directory watcher decides
when the next one begins.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
from enum import Enum
from typing import List, Optional

from stdout_mcp.logs.buffer import LogBuffer
from stdout_mcp.logs.models import LogEntry
from stdout_mcp.pipe.stream import PipeOpener, PipeStream, ThreadedPipeOpener
from stdout_mcp.telemetry import meter

logger = logging.getLogger(__name__)


class ReaderState(str, Enum):
    IDLE = "idle"
    READING = "reading"


class LineAccumulator:
    """Split a chunked text stream on ``\\n``, holding back the unterminated tail."""

    def __init__(self) -> None:
        self._pending = ""

    @property
    def pending(self) -> str:
        return self._pending

    def feed(self, text: str) -> List[str]:
        parts = (self._pending + text).split("\n")
        self._pending = parts.pop()
        return parts

    def reset(self) -> None:
        self._pending = ""


class PipeReader:
    def __init__(
        self,
        path: str,
        buffer: LogBuffer,
        opener: PipeOpener | None = None,
        chunk_size: int = 4096,
    ) -> None:
        self.path = path
        self._buffer = buffer
        self._opener = opener or ThreadedPipeOpener(chunk_size=chunk_size)
        self._chunk_size = chunk_size
        self._lines = LineAccumulator()
        self._state = ReaderState.IDLE
        self._stream: Optional[PipeStream] = None
        self._task: Optional[asyncio.Task] = None
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def state(self) -> ReaderState:
        return self._state

    @property
    def is_reading(self) -> bool:
        return self._state is ReaderState.READING

    @property
    def pending(self) -> str:
        return self._lines.pending

    @property
    def stream(self) -> Optional[PipeStream]:
        return self._stream

    def start_reading(self) -> bool:
        """Begin a read session unless one is already active.

        Must be called from the event loop thread. Returns ``True`` when a new
        session was scheduled.
        """

        if self._state is ReaderState.READING or self._stream is not None:
            return False

        self._state = ReaderState.READING
        self._idle.clear()
        self._lines.reset()
        self._task = asyncio.get_running_loop().create_task(self._run_session())
        return True

    async def wait_idle(self) -> None:
        await self._idle.wait()

    async def stop(self) -> None:
        """Cancel the active session. Used on shutdown.

        A pump thread still blocked in a read keeps the bytes it receives for
        the next session rather than feeding the cancelled one.
        """

        task = self._task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._finish()

    def ingest(self, text: str) -> List[LogEntry]:
        """Feed decoded text into the current session and store completed lines."""

        entries: List[LogEntry] = []
        for line in self._lines.feed(text):
            message = line.strip()
            if not message:
                continue
            entry = LogEntry.now(message)
            self._buffer.append(entry)
            entries.append(entry)
            logger.info("New log entry", extra={"entry": entry.as_dict()})
        if entries:
            meter.inc_lines(len(entries))
        return entries

    async def _run_session(self) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        outcome = "end"
        try:
            self._stream = await self._opener.open(self.path)
            logger.info("Started reading from log pipe", extra={"path": self.path})
            while True:
                chunk = await self._stream.read(self._chunk_size)
                if not chunk:
                    self.ingest(decoder.decode(b"", final=True))
                    break
                self.ingest(decoder.decode(chunk))
            logger.info("Pipe read stream ended", extra={"path": self.path})
        except FileNotFoundError:
            outcome = "missing"
            logger.info("Waiting for named pipe to be created...", extra={"path": self.path})
        except asyncio.CancelledError:
            outcome = "cancelled"
            raise
        except Exception:
            outcome = "error"
            logger.error("Error reading from pipe", extra={"path": self.path}, exc_info=True)
        finally:
            meter.record_session(outcome)
            self._finish()

    def _finish(self) -> None:
        if self._stream is not None:
            self._stream.close()
        self._stream = None
        self._task = None
        self._state = ReaderState.IDLE
        self._idle.set()


__all__ = ["PipeReader", "ReaderState", "LineAccumulator"]
