from .app_server import create_mcp_server, register_log_tools

__all__ = ["create_mcp_server", "register_log_tools"]
