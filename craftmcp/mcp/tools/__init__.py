"""
MCP Tools - static tool catalog

Import order below is the catalog order reported by tools/list.
"""

from pathlib import Path
from typing import TYPE_CHECKING, Optional

from ..logger import get_logger
from . import host_command  # noqa: F401
from . import files  # noqa: F401
from . import server_info  # noqa: F401
from ._internal.context import ToolContext, get_context, set_context
from ._internal.registry import iter_tools, tool

if TYPE_CHECKING:
    from ..bridge import HostBridge

logger = get_logger("craftmcp-tools")


def register_tools(bridge: "HostBridge", root: Path, log_file: Optional[str] = None):
    """
    Initialize tools system - sets execution context for tools to use.

    Args:
        bridge: Bridge into the host's main thread
        root: Sandbox root for filesystem tools
        log_file: Host log file relative to root
    """
    logger.info("Initializing tools system...")

    set_context(bridge, root, log_file)
    logger.debug("Set context: root=%s", get_context().root)

    tool_count = len(iter_tools())
    logger.info("Tools system ready - %d tool(s) available", tool_count)


# Public API
__all__ = [
    "ToolContext",  # Type hint for ctx parameter
    "register_tools",
    "iter_tools",
    "tool",
    "get_context",
]
