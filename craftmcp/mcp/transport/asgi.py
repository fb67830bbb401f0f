"""
ASGI Application - MCP HTTP Transports

Creates the Starlette app that terminates every HTTP surface and funnels
message bodies into the protocol dispatcher (handlers.handle_message).

Surfaces:
- GET  /sse          Push channel. Registers a session, sends an "endpoint"
                     event naming /messages?sessionId=<id>, then streams
                     "message" events until the peer disconnects
- POST /messages     Dispatches the body; the response (if any) is pushed on
                     the session's channel. Always 202 for a known session,
                     400 for a missing or unknown one
- POST /api          Synchronous: 200 with the JSON response, 204 when the
                     message was a notification
- POST /mcp          Like /api, but 202 instead of 204
- GET  /mcp          Static discovery descriptor
- GET  /health       Status and counters

Every request passes the bearer-token check first; a mismatch is answered
with 401 before anything reaches the dispatcher.

Shutdown Handling:
- Returns 503 Service Unavailable while the server is shutting down
- Open sessions are closed when the app's lifespan ends
"""

import contextlib
import secrets
import time
import uuid
from typing import Callable, Optional

from sse_starlette.sse import EventSourceResponse
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from ..core import MCPServer
from ..handlers import TOOLS_LIST_CHANGED, handle_message, serialize
from ..logger import clear_request_id, get_logger, set_request_id, set_session_id
from ..utils.config import SSE_PING_INTERVAL
from .sessions import SessionChannel, SessionRegistry

# Logger for request logging
request_logger = get_logger("craftmcp-requests")
# Logger for authentication events
auth_logger = get_logger("craftmcp-auth")


def _jsonrpc_error(code: int, message: str, status_code: int, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        {"jsonrpc": "2.0", "id": None, "error": {"code": code, "message": message}},
        status_code=status_code,
        headers=headers,
    )


class ShutdownMiddleware(BaseHTTPMiddleware):
    """Reject requests with 503 while the server is shutting down."""

    async def dispatch(self, request, call_next):
        if request.app.state.is_shutting_down():
            return _jsonrpc_error(
                -32000,
                "Server is shutting down. Please retry after the server restarts.",
                503,
                headers={"Retry-After": "5"},
            )
        return await call_next(request)


class AuthMiddleware(BaseHTTPMiddleware):
    """
    Single shared bearer-token check.

    Accepts either:
    1. Authorization header: 'Bearer <token>'
    2. Query parameter: '?token=<token>' (EventSource clients cannot set headers)

    Comparison is constant-time.
    """

    def __init__(self, app, auth_token: str):
        super().__init__(app)
        self.auth_token = auth_token

    def is_authorized(self, request) -> bool:
        auth_header = request.headers.get("Authorization")
        if auth_header and auth_header.startswith("Bearer "):
            token = auth_header[7:].strip()
            if token and secrets.compare_digest(token, self.auth_token):
                return True

        query_token = request.query_params.get("token")
        if query_token and secrets.compare_digest(query_token, self.auth_token):
            return True

        return False

    async def dispatch(self, request, call_next):
        # CORS preflight never carries credentials
        if request.method == "OPTIONS":
            return await call_next(request)

        if self.is_authorized(request):
            return await call_next(request)

        auth_logger.warning(
            "Unauthorized request rejected. Client: %s, Path: %s",
            request.client.host if request.client else "unknown",
            request.url.path,
        )
        return _jsonrpc_error(-32001, "Unauthorized: Invalid or missing token", 401)


class StatsMiddleware(BaseHTTPMiddleware):
    """Track request statistics for health endpoint."""

    async def dispatch(self, request, call_next):
        stats = request.app.state.stats
        stats["request_count"] += 1

        try:
            response = await call_next(request)
            if response.status_code >= 500:
                stats["error_count"] += 1
            return response
        except Exception:
            stats["error_count"] += 1
            raise


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log all requests with timing and request ID context."""

    async def dispatch(self, request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        set_request_id(request_id)
        start = time.perf_counter()

        try:
            response = await call_next(request)
            ms = (time.perf_counter() - start) * 1000
            request_logger.info(
                "%s %s -> %d (%.2fms)",
                request.method,
                request.url.path,
                response.status_code,
                ms,
            )
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as e:
            ms = (time.perf_counter() - start) * 1000
            request_logger.error(
                "%s %s -> ERROR (%.2fms): %s",
                request.method,
                request.url.path,
                ms,
                e,
            )
            raise
        finally:
            clear_request_id()


def push_to_session(sessions: SessionRegistry, session_id: str, data: str) -> bool:
    """Push a "message" event; a vanished session drops it silently."""
    channel = sessions.get(session_id)
    if channel is None or not channel.push("message", data):
        request_logger.debug("Session %s gone, dropping message", session_id[:8])
        return False
    return True


async def session_events(sessions: SessionRegistry, session_id: str, channel: SessionChannel):
    """
    Event stream for one push-channel session.

    The session is removed exactly once, when the stream ends for any reason
    (peer disconnect, cancellation, server shutdown).
    """
    try:
        yield {"event": "endpoint", "data": f"/messages?sessionId={session_id}"}

        while not channel.closed:
            event = channel.popleft()
            if event is None:
                await channel.wait_for_message()
                continue
            yield event
    finally:
        sessions.remove(session_id)


async def health_endpoint(request):
    """Server status, statistics, and diagnostic info."""
    mcp_server = request.app.state.mcp_server
    stats = request.app.state.stats

    return JSONResponse(
        {
            "status": "healthy",
            "uptime_seconds": round(time.time() - request.app.state.start_time, 2),
            "connections": {"active_sse_sessions": len(request.app.state.sessions)},
            "statistics": {
                "total_requests": stats["request_count"],
                "error_count": stats["error_count"],
            },
            "server": {
                "name": mcp_server.name,
                "version": mcp_server.version,
                "tools_count": len(mcp_server.list_tools()),
            },
        }
    )


async def sse_endpoint(request):
    """
    Push-channel open (GET /sse).

    Registers a new session and streams its events until disconnect.
    """
    sessions: SessionRegistry = request.app.state.sessions
    channel = SessionChannel()
    session_id = sessions.create(channel)
    request_logger.info(
        "New SSE client connected. Session ID: %s (client: %s)",
        session_id,
        request.client.host if request.client else "unknown",
    )
    return EventSourceResponse(
        session_events(sessions, session_id, channel), ping=SSE_PING_INTERVAL
    )


async def messages_endpoint(request):
    """
    Message delivery (POST /messages?sessionId=...).

    The response travels over the session's push channel; the POST itself
    is always answered with 202.
    """
    mcp_server = request.app.state.mcp_server
    sessions: SessionRegistry = request.app.state.sessions

    session_id = request.query_params.get("sessionId")
    if sessions.get(session_id) is None:
        return PlainTextResponse("Invalid or missing sessionId", status_code=400)
    set_session_id(session_id)

    outcome = await handle_message(mcp_server, await request.body())

    payload = outcome.payload
    if payload is not None:
        push_to_session(sessions, session_id, payload)

    # Some clients only fetch the tool list after this notification
    if outcome.method == "initialize":
        push_to_session(sessions, session_id, serialize(TOOLS_LIST_CHANGED))

    return PlainTextResponse("Accepted", status_code=202)


async def api_endpoint(request):
    """Synchronous call (POST /api): response inline, 204 for notifications."""
    outcome = await handle_message(request.app.state.mcp_server, await request.body())

    payload = outcome.payload
    if payload is None:
        return Response(status_code=204)
    return Response(payload, media_type="application/json")


async def mcp_post_endpoint(request):
    """Combined endpoint (POST /mcp): response inline, 202 for notifications."""
    outcome = await handle_message(request.app.state.mcp_server, await request.body())

    payload = outcome.payload
    if payload is None:
        return PlainTextResponse("Accepted", status_code=202)
    return Response(payload, media_type="application/json")


async def mcp_get_endpoint(request):
    """Combined endpoint (GET /mcp): static discovery descriptor."""
    mcp_server = request.app.state.mcp_server
    return JSONResponse(
        {
            "name": mcp_server.name,
            "version": mcp_server.version,
            "transport": "streamable-http",
        }
    )


def create_asgi_app(
    mcp_server: MCPServer,
    auth_token: str,
    host: str = "127.0.0.1",
    port: int = 8080,
    sessions: Optional[SessionRegistry] = None,
    is_shutting_down_fn: Optional[Callable[[], bool]] = None,
) -> Starlette:
    """
    Create Starlette ASGI application with MCP endpoints.

    Args:
        mcp_server: MCPServer instance with a synced tool catalog
        auth_token: Shared bearer token required on every request
        host: Server host address (drives the CORS policy)
        port: Server port
        sessions: Session registry (a new one if omitted)
        is_shutting_down_fn: Callable returning True while shutting down

    Returns:
        Starlette: ASGI application
    """
    if host == "0.0.0.0":
        allowed_origins = ["*"]
    else:
        allowed_origins = [
            "http://localhost",
            "http://127.0.0.1",
            f"http://localhost:{port}",
            f"http://127.0.0.1:{port}",
        ]

    sessions = sessions if sessions is not None else SessionRegistry()

    @contextlib.asynccontextmanager
    async def lifespan(app):
        yield
        closed = sessions.clear()
        if closed:
            request_logger.debug("Closed %d sessions on shutdown", closed)

    app = Starlette(
        routes=[
            Route("/health", health_endpoint, methods=["GET"]),
            Route("/sse", sse_endpoint, methods=["GET"]),
            Route("/messages", messages_endpoint, methods=["POST"]),
            Route("/api", api_endpoint, methods=["POST"]),
            Route("/mcp", mcp_post_endpoint, methods=["POST"]),
            Route("/mcp", mcp_get_endpoint, methods=["GET"]),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=allowed_origins,
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
                allow_credentials=True,
            ),
            Middleware(ShutdownMiddleware),
            Middleware(RequestLoggingMiddleware),
            Middleware(StatsMiddleware),
            Middleware(AuthMiddleware, auth_token=auth_token),
        ],
        lifespan=lifespan,
    )

    app.state.mcp_server = mcp_server
    app.state.sessions = sessions
    app.state.start_time = time.time()
    app.state.stats = {"request_count": 0, "error_count": 0}
    app.state.is_shutting_down = is_shutting_down_fn or (lambda: False)

    return app
