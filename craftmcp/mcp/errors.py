"""
Error taxonomy for the protocol core.

Everything raised while handling a JSON-RPC message is converted to a JSON-RPC
error by the dispatcher; transport errors (auth, unknown session) never get here.
"""


class ProtocolError(Exception):
    """Base error for all protocol-layer failures."""


class ToolError(ProtocolError):
    """A tool invocation failed. The subclass is kept in the message only."""


class UnknownToolError(ToolError):
    """Requested tool does not exist in the catalog."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class InvalidArgumentsError(ToolError):
    """A required argument is missing or has the wrong type."""


class AccessDeniedError(ToolError):
    """A path resolved outside the sandbox root."""

    def __init__(self, message: str = "Access denied: Path is outside server root.") -> None:
        super().__init__(message)


class NotFoundError(ToolError):
    """A file or directory does not exist."""


class HostTimeoutError(Exception):
    """The host did not finish a unit of work before the bridge deadline.

    Never surfaced to clients: tools turn it into an informational result.
    """

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Host did not respond within {timeout} seconds")


__all__ = [
    "ProtocolError",
    "ToolError",
    "UnknownToolError",
    "InvalidArgumentsError",
    "AccessDeniedError",
    "NotFoundError",
    "HostTimeoutError",
]
