"""
Filesystem Tools

Read, write and list files under the sandbox root. Every path goes through
resolve_in_root() before any I/O.
"""

import base64
import binascii
from typing import TYPE_CHECKING

from ..errors import InvalidArgumentsError, NotFoundError
from ._internal.registry import tool
from ._internal.sandbox import expect_str, resolve_in_root

if TYPE_CHECKING:
    from ._internal.context import ToolContext


def format_size(size: int) -> str:
    """Human-readable byte count (B, KB, MB, GB)."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    if size < 1024 * 1024 * 1024:
        return f"{size / (1024 * 1024):.1f} MB"
    return f"{size / (1024 * 1024 * 1024):.1f} GB"


def _existing_file(ctx: "ToolContext", path: str):
    target = resolve_in_root(ctx.require_root(), expect_str("path", path))
    if not target.exists():
        raise NotFoundError(f"File not found: {path}")
    if not target.is_file():
        raise InvalidArgumentsError(f"Not a file: {path}")
    return target


def _writable_file(ctx: "ToolContext", path: str):
    target = resolve_in_root(ctx.require_root(), expect_str("path", path))
    if target.is_dir():
        raise InvalidArgumentsError(f"Path is a directory: {path}")
    return target


@tool
def read_file(ctx: "ToolContext", path: str) -> str:
    """
    Read a file from the server.

    Args:
        path: File path relative to the server root
    """
    target = _existing_file(ctx, path)
    try:
        return target.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        raise InvalidArgumentsError(
            f"File is not valid UTF-8 text: {path} (use read_file_base64)"
        ) from None


@tool
def write_file(ctx: "ToolContext", path: str, content: str) -> str:
    """
    Write to a file on the server.

    Parent directories are created; an existing file is truncated.

    Args:
        path: File path relative to the server root
        content: UTF-8 text to write
    """
    target = _writable_file(ctx, path)
    data = expect_str("content", content).encode("utf-8")
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    return f"File written successfully to {path}"


@tool
def read_file_base64(ctx: "ToolContext", path: str) -> str:
    """
    Read a binary file and return as base64.

    Args:
        path: File path relative to the server root
    """
    target = _existing_file(ctx, path)
    return base64.b64encode(target.read_bytes()).decode("ascii")


@tool
def write_file_base64(ctx: "ToolContext", path: str, content: str) -> str:
    """
    Write a binary file from base64 encoded content.

    Args:
        path: File path relative to the server root
        content: Base64 encoded file content
    """
    target = _writable_file(ctx, path)
    try:
        data = base64.b64decode(expect_str("content", content), validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidArgumentsError(f"Invalid base64 content: {e}") from None

    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    return f"Binary file written successfully to {path} ({len(data)} bytes)"


@tool
def list_directory(ctx: "ToolContext", path: str = ".") -> str:
    """
    List files and directories in a path.

    Entries are sorted by name and tagged [DIR] or [FILE] with their size.
    An empty directory yields an empty string.

    Args:
        path: Directory path relative to the server root (default: root)
    """
    target = resolve_in_root(ctx.require_root(), expect_str("path", path))
    if not target.exists():
        raise NotFoundError(f"Directory not found: {path}")
    if not target.is_dir():
        raise InvalidArgumentsError(f"Not a directory: {path}")

    lines = []
    for entry in sorted(target.iterdir(), key=lambda p: p.name):
        if entry.is_dir():
            lines.append(f"[DIR]  {entry.name}/")
            continue
        try:
            lines.append(f"[FILE] {entry.name} ({format_size(entry.stat().st_size)})")
        except OSError:
            # Dangling symlink or a file removed mid-listing
            lines.append(f"[FILE] {entry.name}")

    return "\n".join(lines)
