"""
Public API for craftmcp.

Lazy-loading wrappers so embedding code can import craftmcp cheaply:
`from craftmcp import tool, start_server`
"""

from importlib import import_module


def tool(*args, **kwargs):
    """
    Decorator to register an MCP tool.

    Tool name and description are extracted from the function. Tools must be
    registered before start_server() builds the catalog.

    Example:
        from craftmcp import tool

        @tool
        async def whoami(ctx: "ToolContext") -> str:
            '''Report the host name.'''
            return ctx.require_bridge().host.name
    """
    return import_module(f"{__package__}.mcp.tools._internal.registry").tool(
        *args, **kwargs
    )


def iter_tools():
    """Return all registered tools."""
    return import_module(f"{__package__}.mcp.tools").iter_tools()


def start_server(host, settings):
    """Start the MCP server for host with the given ServerSettings."""
    return import_module(f"{__package__}.mcp").start_server(host, settings)


def stop_server():
    """Stop the MCP server."""
    return import_module(f"{__package__}.mcp").stop_server()


def is_running():
    """Check if MCP server is running."""
    return import_module(f"{__package__}.mcp").is_running()


def is_shutting_down():
    """Check if MCP server is shutting down."""
    return import_module(f"{__package__}.mcp").is_shutting_down()


def wait_shutdown(timeout=None):
    """Wait for MCP server to shut down."""
    return import_module(f"{__package__}.mcp").wait_shutdown(timeout)


__all__ = [
    "tool",
    "iter_tools",
    "start_server",
    "stop_server",
    "is_running",
    "is_shutting_down",
    "wait_shutdown",
]
