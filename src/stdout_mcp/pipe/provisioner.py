"""Named pipe provisioning.

The relay only needs one capability from the platform: "create a named pipe
at this path". Each platform implements it by running its own command as an
external process.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import List, Protocol

from stdout_mcp.errors import PipeCreationError

logger = logging.getLogger(__name__)


class NamedPipeCreator(Protocol):
    async def create_named_pipe(self, path: str) -> None:
        """Create a named pipe at ``path`` or raise ``PipeCreationError``."""
        ...


class _CommandPipeCreator:
    def command(self, path: str) -> List[str]:
        raise NotImplementedError

    async def create_named_pipe(self, path: str) -> None:
        cmd = self.command(path)
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            _, stderr = await proc.communicate()
        except OSError as exc:
            raise PipeCreationError(path, command=cmd, stderr=str(exc)) from exc
        if proc.returncode != 0:
            raise PipeCreationError(
                path,
                command=cmd,
                returncode=proc.returncode,
                stderr=stderr.decode("utf-8", errors="replace"),
            )


class PosixPipeCreator(_CommandPipeCreator):
    def command(self, path: str) -> List[str]:
        return ["mkfifo", path]


class WindowsPipeCreator(_CommandPipeCreator):
    def command(self, path: str) -> List[str]:
        return [
            "powershell.exe",
            "-Command",
            f"New-Item -ItemType NamedPipe -Path '{path}'",
        ]


def default_pipe_creator(platform: str | None = None) -> NamedPipeCreator:
    platform = platform or sys.platform
    if platform == "win32":
        return WindowsPipeCreator()
    return PosixPipeCreator()


class PipeProvisioner:
    """Ensure the named pipe exists; never recreates or truncates an existing one."""

    def __init__(self, path: str, creator: NamedPipeCreator | None = None) -> None:
        self.path = path
        self._creator = creator or default_pipe_creator()

    def exists(self) -> bool:
        return os.path.exists(self.path)

    async def ensure_pipe(self) -> bool:
        """Create the pipe if missing. Returns ``True`` when it was created."""

        if self.exists():
            logger.info("Named pipe already exists", extra={"path": self.path})
            return False

        try:
            await self._creator.create_named_pipe(self.path)
        except PipeCreationError:
            logger.error("Failed to create named pipe", extra={"path": self.path}, exc_info=True)
            raise
        logger.info(f"Created named pipe at {self.path}", extra={"path": self.path})
        return True


__all__ = [
    "NamedPipeCreator",
    "PosixPipeCreator",
    "WindowsPipeCreator",
    "PipeProvisioner",
    "default_pipe_creator",
]
