"""
Configuration validation utilities.

Validates server configuration before startup to prevent runtime issues.
Provides centralized configuration constants for the MCP server.
"""

import socket
from dataclasses import dataclass
from typing import List, Optional, Tuple

# =============================================================================
# CENTRALIZED CONFIGURATION CONSTANTS
# =============================================================================

# Server identity
SERVER_NAME = "craftmcp"
SERVER_VERSION = "1.2.3"
PROTOCOL_VERSION = "2024-11-05"

# Server defaults
DEFAULT_SERVER_PORT = 8080
DEFAULT_AUTH_TOKEN_LENGTH = 32
DEFAULT_LOG_FILE = "logs/latest.log"

# Timeout settings (in seconds)
HOST_EXECUTION_TIMEOUT: float = 10.0  # Bounded wait on the host thread
LOG_CAPTURE_GRACE: float = 0.1  # Wait for asynchronous log lines during passive capture
SERVER_STARTUP_TIMEOUT: float = 5.0  # Server startup timeout
GRACEFUL_SHUTDOWN_TIMEOUT: float = 1.5  # Graceful shutdown wait

# Push channel
SSE_PING_INTERVAL: int = 15  # Keep-alive comment interval for idle sessions

# Tool output
LOG_TAIL_LINES: int = 100

# =============================================================================
# PORT VALIDATION CACHE
# =============================================================================
_port_validation_cache: dict[tuple[str, int], bool] = {}


def clear_port_validation_cache() -> None:
    """Clear the port validation cache (useful after server stop)."""
    _port_validation_cache.clear()


@dataclass
class ConfigValidationResult:
    """Result of configuration validation."""

    valid: bool
    errors: List[str]
    warnings: List[str]

    def __bool__(self):
        return self.valid


def validate_port(
    port: int, host: str, use_cache: bool = True
) -> Tuple[bool, Optional[str]]:
    """
    Validate port number and check availability.

    Uses caching to avoid expensive socket operations on repeated calls.

    Args:
        port: Port number to validate
        host: Host to check port on
        use_cache: If True, use cached validation result (default True)

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(port, int) or isinstance(port, bool):
        return False, f"Port must be integer, got {type(port).__name__}"

    if port < 1024:
        return False, f"Port {port} is in privileged range (< 1024)"

    if port > 65535:
        return False, f"Port {port} exceeds maximum (65535)"

    cache_key = (host, port)
    if use_cache and cache_key in _port_validation_cache:
        return _port_validation_cache[cache_key], None

    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.settimeout(0.1)
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.bind((host, port))
        _port_validation_cache[cache_key] = True
    except OSError as e:
        errno_val = getattr(e, "errno", None)
        if errno_val in (98, 10048):  # Address already in use (Linux/Windows)
            # Don't cache "in use" - port might become available
            return False, f"Port {port} is already in use"
        return False, f"Port {port} unavailable: {str(e)}"

    return True, None


def validate_config(
    port: int, network_access: bool, auth_token: str, check_port: bool = True
) -> ConfigValidationResult:
    """
    Validate complete server configuration.

    Args:
        port: Server port
        network_access: Whether network access is enabled (0.0.0.0 binding)
        auth_token: Shared bearer token
        check_port: Whether to test the port with a socket bind

    Returns:
        ConfigValidationResult with validation status, errors, and warnings
    """
    errors = []
    warnings = []

    host = "0.0.0.0" if network_access else "127.0.0.1"

    if check_port:
        _port_ok, port_err = validate_port(port, host)
        if port_err:
            errors.append(port_err)

    if not auth_token:
        errors.append("No authentication token set")
    elif len(auth_token) < 16:
        warnings.append(
            f"Token length ({len(auth_token)} chars) is short - recommend 32+ characters"
        )

    if network_access:
        warnings.append("Network access enabled - server accessible from 0.0.0.0")

    return ConfigValidationResult(
        valid=len(errors) == 0, errors=errors, warnings=warnings
    )
