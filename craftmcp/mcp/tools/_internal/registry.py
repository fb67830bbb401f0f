"""
Tools Registry - Decorator and storage for MCP tools.

Provides @tool decorator and registry for tool discovery.
Registration order is the catalog order reported by tools/list.
"""

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Set

# Import directly from submodules to avoid circular import through mcp/__init__.py
from ...logger import get_logger
from ...utils import validators as utils

logger = get_logger("craftmcp-tools-registry")


@dataclass
class ToolRegistration:
    """Tool registration entry."""

    handler: Callable[..., Any]
    name: Optional[str] = None
    description: Optional[str] = None


# Internal registry populated by @tool decorator
_tool_registry: List[ToolRegistration] = []
# Track registered tool names to detect duplicates
_registered_tool_names: Set[str] = set()


def tool(func: Optional[Callable[..., Any]] = None, *, name: Optional[str] = None):
    """
    Decorator to register an MCP tool.

    The decorated function may be sync or async. Sync handlers are run in a
    worker thread so file I/O never blocks the event loop.

    The function can optionally accept a 'ctx' parameter as its first
    argument; a ToolContext is injected at call time and 'ctx' does not
    appear in the tool's JSON schema.

    Args:
        func: The function to register as a tool
        name: Tool name override (defaults to the function name)

    Example:
        @tool
        def read_file(ctx: "ToolContext", path: str) -> str:
            '''Read a file from the server.'''
            ...
    """
    if func is None:
        return lambda f: tool(f, name=name)

    is_valid = (
        utils.validate_callable(func, "tool", logger)
        and utils.validate_has_name(func, "tool", logger)
        and utils.check_docstring(func, logger)
        and utils.check_return_type(func, str, logger=logger)
    )

    if is_valid:
        tool_name = name or func.__name__

        if tool_name in _registered_tool_names:
            logger.error(
                "Tool name '%s' is already registered. "
                "The duplicate registration will be ignored.",
                tool_name,
            )
            return func

        _tool_registry.append(ToolRegistration(handler=func, name=tool_name))
        _registered_tool_names.add(tool_name)
        logger.debug("Registered tool: %s", tool_name)

    return func


def iter_tools() -> List[ToolRegistration]:
    """Return a snapshot of all registered tools."""
    return list(_tool_registry)


def clear_registry() -> None:
    """Clear all registered tools. Used for testing."""
    _tool_registry.clear()
    _registered_tool_names.clear()
    logger.debug("Tool registry cleared")


__all__ = ["tool", "iter_tools", "clear_registry", "ToolRegistration"]
