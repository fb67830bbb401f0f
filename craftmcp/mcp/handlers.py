"""
MCP Protocol Handlers

Parses JSON-RPC envelopes, routes methods to their handlers and serializes
the response. Shared by every HTTP surface (/messages, /api, /mcp); the
transport only decides how the serialized response is delivered.

State machine for a single envelope:
1. No "method" field (or null) -> -32600 Invalid Request, id null;
   a non-string method -> -32601 Method not found
2. "id" absent or null -> response (if any) carries id null
3. Known method -> handler result; "notifications/*" -> nothing to send;
   anything else -> -32601 Method not found
4. Any exception -> -32700 with the exception's message and the best-effort id
"""

import json
import traceback
from dataclasses import dataclass
from typing import Any, Optional, Union

from .errors import InvalidArgumentsError, ProtocolError
from .logger import RequestTimer, get_logger
from .utils.config import HOST_EXECUTION_TIMEOUT, PROTOCOL_VERSION

logger = get_logger("craftmcp-handlers")

JSONRPC_VERSION = "2.0"

INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
PARSE_ERROR = -32700

NOTIFICATION_PREFIX = "notifications/"

TOOLS_LIST_CHANGED = {"jsonrpc": JSONRPC_VERSION, "method": "notifications/tools/list_changed"}

RequestId = Union[str, int, float, None]


@dataclass
class DispatchResult:
    """Outcome of handling one message: the method seen and the response, if any."""

    method: Optional[str]
    response: Optional[dict]

    @property
    def payload(self) -> Optional[str]:
        """Serialized response, or None when there is nothing to send."""
        if self.response is None:
            return None
        return serialize(self.response)


def serialize(message: dict) -> str:
    return json.dumps(message, ensure_ascii=False, separators=(",", ":"))


def success_response(msg_id: RequestId, result: Any) -> dict:
    return {"jsonrpc": JSONRPC_VERSION, "id": msg_id, "result": result}


def error_response(msg_id: RequestId, code: int, message: str) -> dict:
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": msg_id,
        "error": {"code": code, "message": message},
    }


def extract_id(raw: Any) -> RequestId:
    """Return the id to echo: strings and numbers verbatim, anything else null."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (str, int)):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else raw
    return None


async def handle_initialize(mcp_server, params: Optional[dict] = None) -> dict:
    """
    Handle MCP initialize request.

    The handshake is lenient: whatever version the client asks for, the
    server answers with the one protocol version it speaks.
    """
    client_protocol = params.get("protocolVersion", "unknown") if isinstance(params, dict) else "unknown"
    logger.info("Initialize: client=%s, using=%s", client_protocol, PROTOCOL_VERSION)

    return {
        "protocolVersion": PROTOCOL_VERSION,
        "capabilities": {
            "tools": {"listChanged": True},
            "resources": {},
            "prompts": {},
        },
        "serverInfo": {"name": mcp_server.name, "version": mcp_server.version},
    }


async def handle_tools_list(mcp_server, params: Optional[dict] = None) -> dict:
    """Handle tools/list request - return the static catalog."""
    tools = mcp_server.list_tools()
    logger.debug("tools/list: returning %d tools", len(tools))
    return {"tools": tools}


async def handle_tools_call(mcp_server, params: Optional[dict] = None) -> dict:
    """
    Handle tools/call request - execute a tool.

    Tool failures propagate; handle_message turns them into JSON-RPC errors
    whose message carries the failure kind.
    """
    if not isinstance(params, dict):
        raise ProtocolError("Missing params")

    tool_name = params.get("name")
    if not isinstance(tool_name, str) or not tool_name.strip():
        raise InvalidArgumentsError(
            f"Tool name is required and cannot be empty (received: {type(tool_name).__name__})"
        )

    arguments = params.get("arguments")
    if arguments is None:
        arguments = {}

    logger.info("Tool call: %s", tool_name)

    with RequestTimer(logger, f"tool/{tool_name}", slow_after_ms=HOST_EXECUTION_TIMEOUT * 500):
        return await mcp_server.call_tool(tool_name, arguments)


async def handle_resources_list(mcp_server, params: Optional[dict] = None) -> dict:
    """Handle resources/list request - no resources are exposed."""
    return {"resources": []}


async def handle_prompts_list(mcp_server, params: Optional[dict] = None) -> dict:
    """Handle prompts/list request - no prompts are exposed."""
    return {"prompts": []}


async def handle_ping(mcp_server, params: Optional[dict] = None) -> dict:
    return {}


async def handle_notifications_initialized(mcp_server, params: Optional[dict] = None) -> None:
    """Sent by clients after they receive the initialize response."""
    logger.debug("Client initialization complete")
    return None


async def handle_notifications_cancelled(mcp_server, params: Optional[dict] = None) -> None:
    """Sent by clients when they give up on a pending request."""
    request_id = params.get("requestId") if isinstance(params, dict) else None
    logger.debug("Client cancelled request: %s", request_id)
    return None


# Mapping of MCP methods to handlers
METHOD_HANDLERS = {
    "initialize": handle_initialize,
    "tools/list": handle_tools_list,
    "tools/call": handle_tools_call,
    "resources/list": handle_resources_list,
    "prompts/list": handle_prompts_list,
    "ping": handle_ping,
}

# Notifications (no response expected)
NOTIFICATION_HANDLERS = {
    "notifications/initialized": handle_notifications_initialized,
    "notifications/cancelled": handle_notifications_cancelled,
}


async def handle_message(mcp_server, body: Union[str, bytes]) -> DispatchResult:
    """
    Handle one raw JSON-RPC message.

    Args:
        mcp_server: MCPServer instance
        body: Raw request body

    Returns:
        DispatchResult; its payload is None when nothing should be sent
    """
    method = None
    msg_id = None
    try:
        request = json.loads(body)
        logger.debug("Incoming MCP request: %s", request)

        if not isinstance(request, dict) or request.get("method") is None:
            return DispatchResult(
                None, error_response(None, INVALID_REQUEST, "Invalid Request: missing method")
            )

        msg_id = extract_id(request.get("id"))
        raw_method = request["method"]
        if not isinstance(raw_method, str):
            return DispatchResult(
                None,
                error_response(msg_id, METHOD_NOT_FOUND, f"Method not found: {serialize(raw_method)}"),
            )

        method = raw_method
        params = request.get("params")

        if method.startswith(NOTIFICATION_PREFIX):
            handler = NOTIFICATION_HANDLERS.get(method)
            if handler is not None:
                await handler(mcp_server, params)
            return DispatchResult(method, None)

        handler = METHOD_HANDLERS.get(method)
        if handler is None:
            logger.warning("Unknown method: %s", method)
            return DispatchResult(
                method, error_response(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")
            )

        result = await handler(mcp_server, params)
        return DispatchResult(method, success_response(msg_id, result))

    except Exception as e:
        logger.error("Error handling request: %s\n%s", e, traceback.format_exc())
        return DispatchResult(method, error_response(msg_id, PARSE_ERROR, f"Error: {e}"))
