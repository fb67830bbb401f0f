"""
Command line entry point.

Starts a LocalHost and the MCP server, prints the endpoints and blocks
until interrupted.

Usage:
    craftmcp [--config FILE] [--port PORT] [--token TOKEN] [--root DIR]
             [--network-access] [--verbose]
"""

import argparse
import sys
import threading
from importlib.metadata import PackageNotFoundError, version

from .host import LocalHost, ModuleInfo
from .mcp import is_running, start_server, stop_server, wait_shutdown
from .mcp.logger import get_logger
from .mcp.utils.config import SERVER_NAME, SERVER_VERSION
from .settings import load_settings, save_settings

logger = get_logger("craftmcp-cli")


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="craftmcp",
        description="MCP server exposing host commands and sandboxed file access over HTTP",
    )
    parser.add_argument("--config", help="JSON settings file (created with a token if missing)")
    parser.add_argument("--port", type=int, help="Port to listen on")
    parser.add_argument("--token", help="Shared bearer token")
    parser.add_argument("--root", help="Sandbox root for file tools (default: current directory)")
    parser.add_argument(
        "--network-access",
        action="store_true",
        default=None,
        help="Bind 0.0.0.0 instead of 127.0.0.1",
    )
    parser.add_argument(
        "--verbose", action="store_true", default=None, help="Enable debug logging"
    )
    return parser.parse_args(argv)


def _own_version() -> str:
    try:
        return version(SERVER_NAME)
    except PackageNotFoundError:
        return SERVER_VERSION


def _token_line(settings) -> str:
    """Full token when it was just generated, masked otherwise."""
    if settings.token_generated:
        return settings.token
    return settings.masked_token


def main(argv=None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    try:
        loaded = load_settings(args.config)
    except ValueError as e:
        print(f"craftmcp: {e}", file=sys.stderr)
        return 2

    settings = loaded.with_overrides(
        port=args.port,
        token=args.token,
        root=args.root,
        network_access=args.network_access,
        enable_logs=args.verbose,
    )
    if args.config and settings.token_generated:
        # Persist only the new token; command-line overrides stay one-off
        save_settings(loaded, args.config)

    host = LocalHost(
        root=settings.root,
        log_file=settings.log_file,
        modules=[ModuleInfo(SERVER_NAME, _own_version())],
    )
    host.start()

    if not start_server(host, settings):
        host.stop()
        print("craftmcp: failed to start server (see log for details)", file=sys.stderr)
        return 1

    base = f"http://{'localhost' if not settings.network_access else settings.bind_address}:{settings.port}"
    print(f"craftmcp {_own_version()} serving {settings.root}")
    print(f"  SSE:  {base}/sse")
    print(f"  Sync: {base}/api")
    print(f"  MCP:  {base}/mcp")
    print(f"  Token: {_token_line(settings)}")

    stop = threading.Event()
    try:
        while is_running() and not stop.wait(0.5):
            pass
    except KeyboardInterrupt:
        logger.info("Shutdown requested")
    finally:
        stop_server()
        wait_shutdown(3.0)
        host.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
