"""stdout-mcp CLI entry point."""

from __future__ import annotations

import asyncio
import logging
import os
import stat
import sys
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from stdout_mcp import __version__
from stdout_mcp.errors import StdoutMCPError, WatchSetupError
from stdout_mcp.logging import configure_logging
from stdout_mcp.relay import LogRelay
from stdout_mcp.server.app_server import create_mcp_server
from stdout_mcp.settings import RelaySettings

logger = logging.getLogger(__name__)

app = typer.Typer(help="Relay lines written to a named pipe to an MCP client over stdio")
# stdout carries the MCP protocol
console = Console(stderr=True)


def load_settings(
    pipe_path: Optional[str] = None,
    max_logs: Optional[int] = None,
    log_level: Optional[str] = None,
) -> RelaySettings:
    overrides = {}
    if pipe_path:
        overrides["PIPE_PATH"] = pipe_path
    if max_logs is not None:
        overrides["MAX_STORED_LOGS"] = max_logs
    if log_level:
        overrides["LOG_LEVEL"] = log_level
    return RelaySettings(**overrides)


def startup_hint(error: BaseException, platform: str | None = None) -> Optional[str]:
    """Explain startup failures that no amount of retrying will fix."""
    platform = platform or sys.platform
    if platform == "win32" and isinstance(error, WatchSetupError):
        return (
            "Windows named pipes under \\\\.\\pipe\\ cannot be watched for changes, "
            "so the relay cannot run on Windows. Use a POSIX system with a FIFO path."
        )
    return None


async def _serve(settings: RelaySettings) -> None:
    relay = LogRelay(settings)
    await relay.start()
    try:
        mcp = create_mcp_server(relay)
        logger.info("Pipe log MCP server started", extra={"server": settings.SERVER_NAME})
        await mcp.run_stdio_async()
    finally:
        await relay.stop()


@app.callback(invoke_without_command=True)
def main(ctx: typer.Context) -> None:
    """Start the stdio MCP server when no command is given."""
    if ctx.invoked_subcommand is None:
        serve(pipe_path=None, max_logs=None, log_level=None)


@app.command()
def serve(
    pipe_path: Optional[str] = typer.Option(None, "--pipe-path", help="Named pipe to read"),
    max_logs: Optional[int] = typer.Option(None, "--max-logs", min=1, help="Entries kept in memory"),
    log_level: Optional[str] = typer.Option(None, "--log-level"),
) -> None:
    """Create the pipe, watch it and serve get-logs over stdio."""

    settings = load_settings(pipe_path, max_logs, log_level)
    configure_logging(settings.LOG_LEVEL)
    try:
        asyncio.run(_serve(settings))
    except StdoutMCPError as e:
        logger.error("Failed to start server", exc_info=True)
        console.print(f"[red]Failed to start server: {e}[/red]")
        hint = startup_hint(e)
        if hint:
            logger.error(hint)
            console.print(hint, style="yellow", markup=False, soft_wrap=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        pass


@app.command()
def info(
    pipe_path: Optional[str] = typer.Option(None, "--pipe-path"),
) -> None:
    """Show the resolved relay configuration."""

    settings = load_settings(pipe_path)
    path = settings.PIPE_PATH
    try:
        mode = os.stat(path).st_mode
    except OSError:
        mode = None

    table = Table(title=f"stdout-mcp {__version__}")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("Pipe path", path)
    table.add_row("Pipe exists", "yes" if mode is not None else "no")
    table.add_row("Is FIFO", "yes" if mode is not None and stat.S_ISFIFO(mode) else "no")
    table.add_row("Max stored logs", str(settings.MAX_STORED_LOGS))
    table.add_row("Default lines", str(settings.DEFAULT_LINES))
    table.add_row("Log level", settings.LOG_LEVEL)
    console.print(table)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
