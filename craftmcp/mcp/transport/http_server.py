"""
HTTP MCP Server lifecycle

Runs the Starlette app under uvicorn inside the host process.

Architecture:
- uvicorn runs on its own asyncio event loop in a background thread
- Tool calls that need the host block a worker thread (anyio.to_thread),
  never the event loop
- Host-thread work goes through HostBridge onto the host's FIFO queue,
  which serializes it with everything else the host runs

Timeout Behavior:
- Host work is awaited for HOST_EXECUTION_TIMEOUT seconds
- Past the deadline the caller gets an informational result; the work
  still completes on the host thread
"""

import asyncio
import logging
import threading
import time
from typing import Optional

import uvicorn

from ...host.base import Host
from ..bridge import HostBridge
from ..core import MCPServer
from ..logger import get_logger, setup_logging
from ..tools import register_tools
from ..utils.config import (
    GRACEFUL_SHUTDOWN_TIMEOUT,
    SERVER_STARTUP_TIMEOUT,
    clear_port_validation_cache,
    validate_config,
)
from .asgi import create_asgi_app
from .sessions import SessionRegistry

logger = get_logger("craftmcp-http")


class BackgroundServer(uvicorn.Server):
    """uvicorn server that leaves signal handling to the host process."""

    def install_signal_handlers(self):
        pass  # Disable signal handlers - we're in a background thread


class ServerManager:
    """Manages MCP server lifecycle and state"""

    def __init__(self):
        self._mcp_instance: Optional[MCPServer] = None
        self._bridge: Optional[HostBridge] = None
        self._sessions = SessionRegistry()
        self._server_loop = None
        self._server_thread = None
        self._server_task = None
        self._uvicorn_server = None
        self._shutting_down = False
        self._bind_address: Optional[str] = None
        self._port: Optional[int] = None
        # set() = no shutdown in progress; cleared while stopping
        self._shutdown_complete = threading.Event()
        self._shutdown_complete.set()

    @property
    def sessions(self) -> SessionRegistry:
        return self._sessions

    @property
    def bridge(self) -> Optional[HostBridge]:
        return self._bridge

    @property
    def address(self) -> Optional[tuple]:
        if self._bind_address is None:
            return None
        return self._bind_address, self._port

    def _initialize_mcp(self, host: Host, settings) -> MCPServer:
        """Build the tool catalog and the tool context for this run."""
        if self._mcp_instance is not None:
            return self._mcp_instance

        mcp = MCPServer()
        self._bridge = HostBridge(host)
        register_tools(self._bridge, settings.root, settings.log_file)
        mcp.sync_tools()

        self._mcp_instance = mcp
        logger.info("MCP server initialized with %d tools", len(mcp.list_tools()))
        return mcp

    def _create_uvicorn_server(self, mcp, bind_address, port, enable_logs, auth_token):
        app = create_asgi_app(
            mcp,
            auth_token,
            host=bind_address,
            port=port,
            sessions=self._sessions,
            is_shutting_down_fn=self.is_shutting_down,
        )

        config = uvicorn.Config(
            app=app,
            host=bind_address,
            port=port,
            log_level="debug" if enable_logs else "warning",
            timeout_graceful_shutdown=1,
            lifespan="on",
            limit_concurrency=50,
            backlog=2048,
            timeout_keep_alive=5,
        )
        return BackgroundServer(config=config)

    def _start_background_loop(self):
        """Create and start an asyncio event loop in a background thread."""
        event_loop = asyncio.new_event_loop()

        def start_loop(loop):
            asyncio.set_event_loop(loop)
            loop.run_forever()

        thread = threading.Thread(
            target=start_loop,
            args=(event_loop,),
            daemon=True,
            name="MCP-Server",
        )
        thread.start()
        return event_loop, thread

    def _run_uvicorn_in_loop(self, uvicorn_server, event_loop):
        async def run_server():
            try:
                await uvicorn_server.serve()
            except asyncio.CancelledError:
                logger.info("Server stopped gracefully")
                raise
            except (OSError, SystemExit) as e:
                logger.error("Failed to start server: %s", e)
                raise

        return asyncio.run_coroutine_threadsafe(run_server(), event_loop)

    def _wait_for_server_startup(self, timeout: float = SERVER_STARTUP_TIMEOUT) -> bool:
        start_time = time.time()
        while not self._uvicorn_server.started:
            if self._server_task.done():
                try:
                    self._server_task.result()
                except BaseException as e:
                    # uvicorn raises SystemExit when it cannot bind
                    logger.error("Server failed to start: %s", e)
                    return False
                logger.error("Server exited during startup")
                return False

            if time.time() - start_time > timeout:
                logger.error("Server startup timeout")
                return False

            time.sleep(0.01)

        return True

    def _log_server_started(self, bind_address, port, network_access):
        logger.info("MCP server started")
        logger.info("SSE endpoint: http://%s:%d/sse", bind_address, port)
        logger.info("Sync endpoint: http://%s:%d/api", bind_address, port)
        logger.info("Streamable endpoint: http://%s:%d/mcp", bind_address, port)

        if network_access:
            logger.warning(
                "SECURITY: Network access enabled (binds to 0.0.0.0) - "
                "Server allows command execution and file writes from the network! "
                "Only use on trusted networks."
            )
        else:
            logger.info("Localhost only (binds to 127.0.0.1)")

    def _cleanup_server_state(self):
        self._server_loop = None
        self._server_thread = None
        self._server_task = None
        self._uvicorn_server = None
        self._bind_address = None
        self._port = None

    def start(self, host: Host, settings) -> bool:
        """
        Start the MCP HTTP server in a background thread.

        Args:
            host: Host adapter whose main thread runs host-bound work
            settings: ServerSettings

        Returns:
            bool: True if server started successfully, False otherwise
        """
        if self._server_loop is not None:
            logger.info("Server already running")
            return False

        if self._shutting_down:
            logger.warning("Server is still shutting down, please wait a moment")
            return False

        setup_logging(logging.DEBUG if settings.enable_logs else logging.INFO)

        validation = validate_config(settings.port, settings.network_access, settings.token)
        for warning in validation.warnings:
            logger.warning("Config: %s", warning)
        if not validation.valid:
            for error in validation.errors:
                logger.error("Config error: %s", error)
            return False

        bind_address = "0.0.0.0" if settings.network_access else "127.0.0.1"

        try:
            mcp = self._initialize_mcp(host, settings)

            self._uvicorn_server = self._create_uvicorn_server(
                mcp, bind_address, settings.port, settings.enable_logs, settings.token
            )
            self._server_loop, self._server_thread = self._start_background_loop()
            self._server_task = self._run_uvicorn_in_loop(
                self._uvicorn_server, self._server_loop
            )

            if not self._wait_for_server_startup():
                self.stop()
                return False

            self._bind_address = bind_address
            self._port = settings.port
            self._log_server_started(bind_address, settings.port, settings.network_access)
            return True

        except (OSError, RuntimeError, ValueError) as e:
            logger.exception("Error starting server: %s", e)
            self._cleanup_server_state()
            return False

    def stop(self) -> bool:
        """Stop the MCP server with proper uvicorn shutdown sequence."""
        if self._server_loop is None:
            return False

        # Mark as shutting down FIRST - this prevents new requests
        self._shutting_down = True
        self._shutdown_complete.clear()

        server_loop = self._server_loop
        uvicorn_server = self._uvicorn_server
        server_thread = self._server_thread
        self._cleanup_server_state()

        def graceful_shutdown():
            try:
                if uvicorn_server:
                    uvicorn_server.should_exit = True
                    logger.debug("Signaled uvicorn to exit")

                # Push channels never end on their own; close them so uvicorn can drain
                closed = self._sessions.clear()
                if closed:
                    logger.debug("Closed %d sessions", closed)

                if server_thread and server_thread.is_alive():
                    server_thread.join(timeout=GRACEFUL_SHUTDOWN_TIMEOUT)

                if server_thread and server_thread.is_alive():
                    logger.debug("Server still running after timeout, forcing stop")
                    try:
                        if not server_loop.is_closed():
                            server_loop.call_soon_threadsafe(server_loop.stop)
                    except RuntimeError:
                        pass  # Loop already stopped or closed
                    server_thread.join(timeout=0.5)

                logger.info("Server stopped")

            except Exception as e:
                logger.warning("Error during shutdown: %s", e)
            finally:
                # Rebuild the catalog on next start
                if self._mcp_instance:
                    self._mcp_instance.clear()
                    self._mcp_instance = None
                self._bridge = None
                clear_port_validation_cache()
                self._shutting_down = False
                self._shutdown_complete.set()

        shutdown_thread = threading.Thread(
            target=graceful_shutdown, daemon=True, name="MCP-Shutdown"
        )
        shutdown_thread.start()
        return True

    def is_running(self) -> bool:
        """Check if the MCP server is currently running."""
        # Local reference: _server_loop may be cleared concurrently by stop()
        loop = self._server_loop
        if loop is None:
            return False
        try:
            return loop.is_running()
        except RuntimeError:
            return False

    def is_shutting_down(self) -> bool:
        return self._shutting_down

    def wait_for_shutdown(self, timeout: Optional[float] = 3.0) -> bool:
        """Wait for shutdown to complete. Returns True if completed, False if timeout."""
        return self._shutdown_complete.wait(timeout=timeout)


# Module-level singleton
_server_manager = ServerManager()


def start_mcp_server(host: Host, settings) -> bool:
    """Wrapper function for ServerManager.start"""
    return _server_manager.start(host, settings)


def stop_mcp_server() -> bool:
    """Wrapper function for ServerManager.stop"""
    return _server_manager.stop()


def is_server_running() -> bool:
    """Wrapper function for ServerManager.is_running"""
    return _server_manager.is_running()


def is_server_shutting_down() -> bool:
    """Wrapper function for ServerManager.is_shutting_down"""
    return _server_manager.is_shutting_down()


def wait_for_shutdown(timeout: Optional[float] = 3.0) -> bool:
    """Wait for server shutdown to complete. Returns False on timeout."""
    return _server_manager.wait_for_shutdown(timeout=timeout)
