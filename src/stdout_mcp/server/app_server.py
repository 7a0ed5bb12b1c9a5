"""
Exposes the log relay as an MCP server with a single ``get-logs`` tool.
"""

from typing import Annotated, Any, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError
from pydantic import Field

from stdout_mcp.errors import LogRetrievalError
from stdout_mcp.relay import LogRelay

GET_LOGS_TOOL = "get-logs"


def _get_attached_relay(mcp: FastMCP) -> LogRelay | None:
    """Return the LogRelay attached to the FastMCP server, if any."""
    return getattr(mcp, "_stdout_mcp_relay", None)


def register_log_tools(mcp: Any, relay: LogRelay) -> None:
    """Register the log query tools on a FastMCP-like server."""

    @mcp.tool(
        name=GET_LOGS_TOOL,
        description="Retrieve logs from the named pipe with optional filtering",
    )
    async def get_logs(
        lines: Annotated[
            Optional[int],
            Field(description="Number of log lines to return (default 50)"),
        ] = None,
        filter: Annotated[
            Optional[str],
            Field(description="Text to filter logs by (case-insensitive)"),
        ] = None,
        since: Annotated[
            Optional[float],
            Field(description="Timestamp in epoch milliseconds to get logs after"),
        ] = None,
    ) -> str:
        try:
            entries = relay.queries.get_logs(lines=lines, filter=filter, since=since)
        except LogRetrievalError as e:
            raise ToolError(str(e)) from None
        return relay.queries.render(entries)


def create_mcp_server(relay: LogRelay, name: str | None = None) -> FastMCP:
    """Build the FastMCP server for ``relay``. The relay must be started separately."""

    mcp = FastMCP(name or relay.settings.SERVER_NAME)
    setattr(mcp, "_stdout_mcp_relay", relay)
    register_log_tools(mcp, relay)
    return mcp
