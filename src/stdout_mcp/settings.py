from __future__ import annotations

import sys

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

POSIX_PIPE_PATH = "/tmp/stdout_pipe"
WINDOWS_PIPE_PATH = r"\\.\pipe\stdout_pipe"
MAX_STORED_LOGS = 100
DEFAULT_LINES = 50


def default_pipe_path(platform: str | None = None) -> str:
    platform = platform or sys.platform
    if platform == "win32":
        return WINDOWS_PIPE_PATH
    return POSIX_PIPE_PATH


class RelaySettings(BaseSettings):
    # Pipe
    PIPE_PATH: str = Field(default_factory=default_pipe_path)
    READ_CHUNK_SIZE: int = Field(default=4096, ge=1)

    # Buffer and queries
    MAX_STORED_LOGS: int = Field(default=MAX_STORED_LOGS, ge=1)
    DEFAULT_LINES: int = DEFAULT_LINES

    # Server
    SERVER_NAME: str = "stdout-mcp-server"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="STDOUT_MCP_", case_sensitive=False)


__all__ = [
    "RelaySettings",
    "default_pipe_path",
    "POSIX_PIPE_PATH",
    "WINDOWS_PIPE_PATH",
    "MAX_STORED_LOGS",
    "DEFAULT_LINES",
]
