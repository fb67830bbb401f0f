"""
Path sandboxing shared by every filesystem tool.

A client path is resolved against the sandbox root and canonicalized
(symlinks and '..' collapsed). The result must be the root itself or a
descendant of it; anything else is rejected before any I/O happens.
"""

from pathlib import Path
from typing import Any

from ...errors import AccessDeniedError, InvalidArgumentsError


def resolve_in_root(root: Path, path: str) -> Path:
    """
    Resolve path inside root.

    Args:
        root: Absolute, normalized sandbox root
        path: Client-supplied path, relative or absolute

    Returns:
        The canonical path

    Raises:
        AccessDeniedError: If the canonical path escapes root
    """
    candidate = (root / path).resolve()
    if candidate != root and root not in candidate.parents:
        raise AccessDeniedError()
    return candidate


def expect_str(name: str, value: Any) -> str:
    """Return value if it is a string, else raise InvalidArgumentsError."""
    if value is None:
        raise InvalidArgumentsError(f"Missing required argument: {name}")
    if not isinstance(value, str):
        raise InvalidArgumentsError(
            f"Argument '{name}' must be a string, got {type(value).__name__}"
        )
    return value
