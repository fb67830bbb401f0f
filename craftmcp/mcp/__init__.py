"""
MCP (Model Context Protocol) server core for craftmcp

Architecture:
    core.py:                   Tool catalog (MCPServer)
    handlers.py:               JSON-RPC dispatcher
    bridge.py:                 Host Execution Bridge (bounded waits on the host thread)
    tools/:                    Tool implementations and the @tool registry
    transport/http_server.py:  ServerManager + uvicorn lifecycle
    transport/asgi.py:         Starlette ASGI application
    transport/sessions.py:     Push-channel session registry
"""

from . import transport, utils
from .logger import get_logger, setup_logging

__all__ = [
    # Utilities for submodules
    "get_logger",
    "setup_logging",
    "utils",
    # Public API
    "start_server",
    "stop_server",
    "is_running",
    "is_shutting_down",
    "wait_shutdown",
]

# Public API for external use
start_server = transport.start_mcp_server
stop_server = transport.stop_mcp_server
is_running = transport.is_server_running
is_shutting_down = transport.is_server_shutting_down
wait_shutdown = transport.wait_for_shutdown
