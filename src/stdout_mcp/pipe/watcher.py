"""Directory watch that restarts pipe reads on writer activity.

Some platforms cannot watch a named pipe directly, so the watch covers the
pipe's parent directory and filters events by file name.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from stdout_mcp.errors import WatchSetupError
from stdout_mcp.pipe.reader import PipeReader

logger = logging.getLogger(__name__)


class _PipeEventHandler(FileSystemEventHandler):
    """Forward watchdog events from the observer thread to the event loop."""

    def __init__(self, watcher: "PipeWatcher") -> None:
        super().__init__()
        self.watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        names = {_basename(event.src_path)}
        dest = getattr(event, "dest_path", None)
        if dest:
            names.add(_basename(dest))
        for name in names:
            self.watcher.notify(name)


def _basename(path: str | bytes) -> str:
    return os.path.basename(os.fsdecode(path))


class PipeWatcher:
    def __init__(
        self,
        reader: PipeReader,
        path: str | None = None,
        observer_factory: Callable[[], object] = Observer,
    ) -> None:
        self.reader = reader
        self.path = path or reader.path
        self.directory = str(Path(self.path).parent)
        self.filename = Path(self.path).name
        self._observer_factory = observer_factory
        self._observer = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def is_running(self) -> bool:
        return self._observer is not None

    def start(self) -> None:
        """Install the watch; failures here are fatal to startup."""

        self._loop = asyncio.get_running_loop()
        observer = self._observer_factory()
        try:
            observer.schedule(_PipeEventHandler(self), self.directory, recursive=False)
            observer.start()
        except Exception as exc:
            raise WatchSetupError(f"Failed to watch {self.directory}: {exc}") from exc
        self._observer = observer
        logger.info(f"Watching for logs at {self.path}", extra={"directory": self.directory})

    def stop(self) -> None:
        observer, self._observer = self._observer, None
        if observer is None:
            return
        observer.stop()
        observer.join()

    def notify(self, name: str) -> None:
        """Thread-safe entry point used by the watchdog handler."""

        loop = self._loop
        if loop is None or loop.is_closed():
            return
        try:
            loop.call_soon_threadsafe(self.handle_change, name)
        except RuntimeError:
            logger.warning("Watch event dropped; event loop is closed", extra={"name": name})

    def handle_change(self, name: str) -> bool:
        """React to a change of ``name`` in the watched directory.

        Returns ``True`` when a new read session was started.
        """

        try:
            if name != self.filename or self.reader.is_reading:
                return False
            return self.reader.start_reading()
        except Exception:
            logger.error("Watch error", extra={"name": name}, exc_info=True)
            return False


__all__ = ["PipeWatcher"]
