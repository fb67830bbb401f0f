"""
Tool Context

Gives tool functions access to the host bridge and the sandbox root.
Set once at server startup, read from worker threads during tool calls.
"""

import threading
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Optional

import anyio

if TYPE_CHECKING:
    from ...bridge import HostBridge


class ToolContext:
    """
    Context object that tools can access to get execution environment.

    Attributes:
        bridge: HostBridge into the host's main thread
        root: Sandbox root (absolute, normalized) for filesystem tools
        log_file: Host log file, relative to root
    """

    def __init__(self):
        self.bridge: Optional["HostBridge"] = None
        self.root: Optional[Path] = None
        self.log_file: Optional[str] = None

    def require_bridge(self) -> "HostBridge":
        if self.bridge is None:
            raise RuntimeError(
                "Context not initialized - set_context() must be called before using the host"
            )
        return self.bridge

    def require_root(self) -> Path:
        if self.root is None:
            raise RuntimeError(
                "Context not initialized - set_context() must be called before filesystem access"
            )
        return self.root

    async def run_on_host(self, fn: Callable[..., Any], *args: Any) -> Any:
        """
        Call a blocking bridge method from async code.

        The wait happens in a worker thread so other requests keep flowing
        while this one blocks on the host.
        """
        return await anyio.to_thread.run_sync(fn, *args)


# Shared across threads; written once at startup under the lock
_tool_context = ToolContext()
_context_lock = threading.Lock()


def get_context() -> ToolContext:
    """Get the shared tool execution context."""
    with _context_lock:
        return _tool_context


def set_context(bridge: Optional["HostBridge"], root: Optional[Path], log_file: Optional[str] = None) -> None:
    """
    Set the tool execution context (called once at server startup).

    Args:
        bridge: HostBridge for host-thread work
        root: Sandbox root; resolved to an absolute, normalized path
        log_file: Host log file relative to root
    """
    with _context_lock:
        _tool_context.bridge = bridge
        _tool_context.root = Path(root).resolve() if root is not None else None
        _tool_context.log_file = log_file
