"""Byte streams over the named pipe.

Opening a pipe for reading blocks until a writer connects, and reads block
until data arrives. That blocking I/O runs in a daemon thread which hands
every chunk to an ``asyncio.StreamReader`` on the event loop; nothing else
crosses the thread boundary.
"""

from __future__ import annotations

import asyncio
import os
import threading
from typing import Any, Protocol


class PipeStream:
    """Readable end of an open pipe, consumed from the event loop."""

    def __init__(self, reader: asyncio.StreamReader, closed: threading.Event | None = None) -> None:
        self._reader = reader
        self._closed = closed or threading.Event()

    async def read(self, n: int) -> bytes:
        return await self._reader.read(n)

    def close(self) -> None:
        """Let the pump thread release the read end of the pipe."""

        self._closed.set()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()


class PipeOpener(Protocol):
    async def open(self, path: str) -> PipeStream:
        """Open ``path`` for reading; raises ``FileNotFoundError`` if it is missing."""
        ...


# One default-sized pipe buffer; bounds the drain against a writer that keeps writing.
_DRAIN_LIMIT = 64 * 1024


def _resolve(fut: asyncio.Future) -> None:
    if not fut.done():
        fut.set_result(None)


def _fail(opened: asyncio.Future, reader: asyncio.StreamReader, exc: BaseException) -> None:
    if opened.done():
        reader.set_exception(exc)
    else:
        opened.set_exception(exc)


def _drain(fd: int) -> bytes:
    """Read whatever is already buffered in the pipe without waiting for more."""

    if os.name != "posix":
        return b""
    os.set_blocking(fd, False)
    data = bytearray()
    while len(data) < _DRAIN_LIMIT:
        try:
            chunk = os.read(fd, _DRAIN_LIMIT)
        except BlockingIOError:
            break
        if not chunk:
            break
        data += chunk
    return bytes(data)


class ThreadedPipeOpener:
    """Open pipes on a daemon thread, one thread per read session.

    The thread keeps its descriptor open until the session calls
    ``PipeStream.close()``. Closing the read end is what the directory watch
    observes, so the next session can only start after the previous one has
    gone idle. Bytes that a writer pushes between end of stream and that close
    would otherwise be lost with the descriptor; they are carried over and
    delivered first by the next ``open()``.
    """

    def __init__(self, chunk_size: int = 4096) -> None:
        self.chunk_size = chunk_size
        self._carry = b""
        self._carry_lock = threading.Lock()

    async def open(self, path: str) -> PipeStream:
        loop = asyncio.get_running_loop()
        opened: asyncio.Future = loop.create_future()
        reader = asyncio.StreamReader()
        closed = threading.Event()

        carry = self._take_carry()
        if carry:
            # the session can start on the carried bytes while the thread waits for a writer
            reader.feed_data(carry)
            opened.set_result(None)

        thread = threading.Thread(
            target=self._pump,
            args=(path, loop, opened, reader, closed),
            name="stdout-mcp-pipe-reader",
            daemon=True,
        )
        thread.start()
        try:
            await opened
        except asyncio.CancelledError:
            closed.set()
            raise
        return PipeStream(reader, closed)

    def _pump(
        self,
        path: str,
        loop: asyncio.AbstractEventLoop,
        opened: asyncio.Future,
        reader: asyncio.StreamReader,
        closed: threading.Event,
    ) -> None:
        try:
            fd = os.open(path, os.O_RDONLY | getattr(os, "O_BINARY", 0))
        except OSError as exc:
            self._call(loop, _fail, opened, reader, exc)
            return

        try:
            if not self._call(loop, _resolve, opened):
                return
            while not closed.is_set():
                chunk = os.read(fd, self.chunk_size)
                if closed.is_set():
                    # read was already blocked when the session closed
                    self._keep(chunk)
                    break
                if not chunk:
                    if not self._call(loop, reader.feed_eof):
                        return
                    closed.wait()
                    break
                if not self._call(loop, reader.feed_data, chunk):
                    return
            self._keep(_drain(fd))
        except OSError as exc:
            if self._call(loop, reader.set_exception, exc):
                closed.wait()
        finally:
            os.close(fd)

    def _keep(self, data: bytes) -> None:
        if not data:
            return
        with self._carry_lock:
            self._carry += data

    def _take_carry(self) -> bytes:
        with self._carry_lock:
            carry, self._carry = self._carry, b""
        return carry

    @staticmethod
    def _call(loop: asyncio.AbstractEventLoop, fn: Any, *args: Any) -> bool:
        try:
            loop.call_soon_threadsafe(fn, *args)
        except RuntimeError:
            # loop already closed; the process is shutting down
            return False
        return True


__all__ = ["PipeStream", "PipeOpener", "ThreadedPipeOpener"]
