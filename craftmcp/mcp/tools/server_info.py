"""
Server Information Tools

list_plugins asks the host thread for installed modules; get_logs tails the
host's primary log file.
"""

from collections import deque
from typing import TYPE_CHECKING

from ...host.base import ModuleInfo
from ..bridge import PENDING
from ..utils.config import DEFAULT_LOG_FILE, LOG_TAIL_LINES
from ._internal.registry import tool
from ._internal.sandbox import resolve_in_root

if TYPE_CHECKING:
    from ._internal.context import ToolContext


def format_module(module: ModuleInfo) -> str:
    line = f"{module.name} ({module.version})"
    if not module.enabled:
        line += " [DISABLED]"
    return line


@tool
async def list_plugins(ctx: "ToolContext") -> str:
    """List installed plugins with their versions; disabled ones are flagged."""
    bridge = ctx.require_bridge()
    modules = await ctx.run_on_host(bridge.run, bridge.host.list_modules)
    if modules is PENDING:
        return "Plugin list requested but the host did not respond in time."
    if not modules:
        return "No plugins installed."
    return "\n".join(format_module(m) for m in modules)


@tool
def get_logs(ctx: "ToolContext") -> str:
    """Get the last 100 lines of the server log."""
    log_file = ctx.log_file or DEFAULT_LOG_FILE
    log_path = resolve_in_root(ctx.require_root(), log_file)
    if not log_path.is_file():
        return f"No {log_path.name} found."

    with open(log_path, encoding="utf-8", errors="replace") as f:
        tail = deque((line.rstrip("\r\n") for line in f), maxlen=LOG_TAIL_LINES)
    return "\n".join(tail)
