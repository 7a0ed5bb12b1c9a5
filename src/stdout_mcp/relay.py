"""Wiring of the log relay: one buffer shared by ingestion and queries."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from watchdog.observers import Observer

from stdout_mcp.logs.buffer import LogBuffer
from stdout_mcp.logs.query import QueryService
from stdout_mcp.pipe.provisioner import NamedPipeCreator, PipeProvisioner
from stdout_mcp.pipe.reader import PipeReader
from stdout_mcp.pipe.stream import PipeOpener
from stdout_mcp.pipe.watcher import PipeWatcher
from stdout_mcp.settings import RelaySettings

logger = logging.getLogger(__name__)


class LogRelay:
    """Owns the pipe, the reader state machine and the log buffer."""

    def __init__(
        self,
        settings: Optional[RelaySettings] = None,
        *,
        creator: NamedPipeCreator | None = None,
        opener: PipeOpener | None = None,
        observer_factory: Callable[[], object] = Observer,
    ) -> None:
        self.settings = settings or RelaySettings()
        path = self.settings.PIPE_PATH
        self.buffer = LogBuffer(capacity=self.settings.MAX_STORED_LOGS)
        self.provisioner = PipeProvisioner(path, creator=creator)
        self.reader = PipeReader(
            path,
            self.buffer,
            opener=opener,
            chunk_size=self.settings.READ_CHUNK_SIZE,
        )
        self.watcher = PipeWatcher(self.reader, observer_factory=observer_factory)
        self.queries = QueryService(self.buffer, default_lines=self.settings.DEFAULT_LINES)

    @property
    def pipe_path(self) -> str:
        return self.settings.PIPE_PATH

    async def start(self) -> None:
        """Create the pipe, install the watch and make the first read attempt.

        ``PipeCreationError`` and ``WatchSetupError`` propagate to the caller.
        """

        await self.provisioner.ensure_pipe()
        self.watcher.start()
        self.reader.start_reading()

    async def stop(self) -> None:
        self.watcher.stop()
        await self.reader.stop()


__all__ = ["LogRelay"]
