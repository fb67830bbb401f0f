"""
MCP Utilities

Shared utility functions and helpers.
"""

from .config import (
    DEFAULT_AUTH_TOKEN_LENGTH,
    DEFAULT_LOG_FILE,
    # Configuration constants
    DEFAULT_SERVER_PORT,
    GRACEFUL_SHUTDOWN_TIMEOUT,
    HOST_EXECUTION_TIMEOUT,
    LOG_CAPTURE_GRACE,
    LOG_TAIL_LINES,
    PROTOCOL_VERSION,
    SERVER_NAME,
    SERVER_STARTUP_TIMEOUT,
    SERVER_VERSION,
    SSE_PING_INTERVAL,
    ConfigValidationResult,
    validate_config,
    validate_port,
)
from .validators import (
    check_docstring,
    check_return_type,
    validate_callable,
    validate_has_name,
)

__all__ = [
    # Decorator validators
    "validate_callable",
    "validate_has_name",
    "check_docstring",
    "check_return_type",
    # Config validation
    "validate_config",
    "validate_port",
    "ConfigValidationResult",
    # Configuration constants
    "SERVER_NAME",
    "SERVER_VERSION",
    "PROTOCOL_VERSION",
    "DEFAULT_SERVER_PORT",
    "DEFAULT_AUTH_TOKEN_LENGTH",
    "DEFAULT_LOG_FILE",
    "HOST_EXECUTION_TIMEOUT",
    "LOG_CAPTURE_GRACE",
    "SERVER_STARTUP_TIMEOUT",
    "GRACEFUL_SHUTDOWN_TIMEOUT",
    "SSE_PING_INTERVAL",
    "LOG_TAIL_LINES",
]
