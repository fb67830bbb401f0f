"""
Server settings.

Loaded from an optional JSON file and overridden by environment variables:

    {
        "server": {"port": 8080, "token": "...", "network_access": false, "enable_logs": false},
        "root": "/srv/host",
        "log_file": "logs/latest.log"
    }

Environment: CRAFTMCP_PORT, CRAFTMCP_TOKEN, CRAFTMCP_ROOT.
"""

import json
import os
import secrets
import string
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional, Union

from .mcp.logger import get_logger
from .mcp.utils.config import (
    DEFAULT_AUTH_TOKEN_LENGTH,
    DEFAULT_LOG_FILE,
    DEFAULT_SERVER_PORT,
)

logger = get_logger("craftmcp-settings")


def generate_token(length=DEFAULT_AUTH_TOKEN_LENGTH):
    """Generate a secure random authentication token."""
    alphabet = string.ascii_letters + string.digits
    return "".join(secrets.choice(alphabet) for _ in range(length))


@dataclass(frozen=True)
class ServerSettings:
    """
    Runtime settings for one server instance.

    network_access binds 0.0.0.0 instead of 127.0.0.1. root is the sandbox
    for filesystem tools, stored absolute and normalized.
    """

    token: str
    port: int = DEFAULT_SERVER_PORT
    network_access: bool = False
    enable_logs: bool = False
    root: Path = field(default_factory=Path.cwd)
    log_file: str = DEFAULT_LOG_FILE
    # True when load_settings() had to make the token up
    token_generated: bool = field(default=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "root", Path(self.root).resolve())

    @property
    def bind_address(self) -> str:
        return "0.0.0.0" if self.network_access else "127.0.0.1"

    @property
    def masked_token(self) -> str:
        if len(self.token) >= 8:
            return f"{self.token[:4]}...{self.token[-4:]}"
        return "****"

    def with_overrides(self, **overrides) -> "ServerSettings":
        """Copy with every non-None override applied. An explicit token is never "generated"."""
        applied = {k: v for k, v in overrides.items() if v is not None}
        if "token" in applied:
            applied["token_generated"] = False
        return replace(self, **applied)


def load_settings(path: Optional[Union[str, Path]] = None, environ=None) -> ServerSettings:
    """
    Load settings from a JSON file (optional) and the environment.

    A missing token is replaced by a freshly generated one, which is logged
    (masked) so the operator can find it in the file after it is saved.

    Raises:
        ValueError: If the file is not valid JSON or a value has the wrong type
    """
    environ = os.environ if environ is None else environ
    data: dict = {}
    if path is not None and Path(path).is_file():
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid settings file {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid settings file {path}: expected an object")

    server = data.get("server") or {}

    port = environ.get("CRAFTMCP_PORT", server.get("port", DEFAULT_SERVER_PORT))
    try:
        port = int(port)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid port: {port!r}") from None

    token = environ.get("CRAFTMCP_TOKEN") or server.get("token") or ""
    generated = not token
    if generated:
        token = generate_token()

    settings = ServerSettings(
        token=token,
        port=port,
        network_access=bool(server.get("network_access", False)),
        enable_logs=bool(server.get("enable_logs", False)),
        root=Path(environ.get("CRAFTMCP_ROOT") or data.get("root") or Path.cwd()),
        log_file=data.get("log_file", DEFAULT_LOG_FILE),
        token_generated=generated,
    )
    if generated:
        logger.warning("No token configured; generated %s", settings.masked_token)
    return settings


def save_settings(settings: ServerSettings, path: Union[str, Path]) -> None:
    """Write settings back as JSON (used to persist a generated token)."""
    data = {
        "server": {
            "port": settings.port,
            "token": settings.token,
            "network_access": settings.network_access,
            "enable_logs": settings.enable_logs,
        },
        "root": str(settings.root),
        "log_file": settings.log_file,
    }
    Path(path).write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
