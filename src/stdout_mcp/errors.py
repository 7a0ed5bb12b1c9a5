from __future__ import annotations

from typing import Optional, Sequence


class StdoutMCPError(Exception):
    """Base class for relay errors."""


class PipeCreationError(StdoutMCPError):
    """Raised when the platform command creating the named pipe fails."""

    def __init__(
        self,
        path: str,
        command: Sequence[str] | None = None,
        returncode: Optional[int] = None,
        stderr: str | None = None,
        message: str = "Failed to create named pipe",
    ) -> None:
        detail = f"{message} at {path}"
        if returncode is not None:
            detail += f" (exit code {returncode})"
        if stderr:
            detail += f": {stderr.strip()}"
        super().__init__(detail)
        self.path = path
        self.command = list(command or [])
        self.returncode = returncode
        self.stderr = stderr


class WatchSetupError(StdoutMCPError):
    """Raised when the directory watcher for the pipe cannot be installed."""


class LogRetrievalError(StdoutMCPError):
    """Generic query failure; detail is only logged locally."""

    def __init__(self, message: str = "Failed to retrieve logs") -> None:
        super().__init__(message)


__all__ = [
    "StdoutMCPError",
    "PipeCreationError",
    "WatchSetupError",
    "LogRetrievalError",
]
