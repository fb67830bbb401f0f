"""
MCP Transport Layer

Architecture:
    http_server.py: ServerManager + uvicorn lifecycle management
    asgi.py:        Starlette ASGI application (/sse, /messages, /api, /mcp)
    sessions.py:    Session registry for push channels
"""

from . import http_server
from .asgi import create_asgi_app
from .sessions import SessionChannel, SessionRegistry

__all__ = [
    "http_server",
    "ServerManager",
    "start_mcp_server",
    "stop_mcp_server",
    "is_server_running",
    "is_server_shutting_down",
    "wait_for_shutdown",
    "create_asgi_app",
    "SessionChannel",
    "SessionRegistry",
]

# Re-export commonly used functions for convenience
ServerManager = http_server.ServerManager
start_mcp_server = http_server.start_mcp_server
stop_mcp_server = http_server.stop_mcp_server
is_server_running = http_server.is_server_running
is_server_shutting_down = http_server.is_server_shutting_down
wait_for_shutdown = http_server.wait_for_shutdown
