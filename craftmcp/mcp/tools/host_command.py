"""
Host Command Tool

Runs a command on the host's main thread and returns the text it produced.
"""

from typing import TYPE_CHECKING

from ._internal.registry import tool
from ._internal.sandbox import expect_str

if TYPE_CHECKING:
    from ._internal.context import ToolContext


@tool
async def execute_command(ctx: "ToolContext", command: str) -> str:
    """
    Execute a server console command.

    The command runs on the host's main thread. Its output is captured and
    returned; if the host does not answer within the bridge timeout the tool
    reports that the command may still have executed.

    Args:
        command: Command line to run, with or without a leading slash
    """
    expect_str("command", command)
    bridge = ctx.require_bridge()
    return await ctx.run_on_host(bridge.execute_command, command)
