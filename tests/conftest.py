"""Shared fixtures: a running LocalHost, its bridge and an app wired to both."""

import json

import pytest
from starlette.testclient import TestClient

from craftmcp.host import LocalHost, ModuleInfo
from craftmcp.mcp.bridge import HostBridge
from craftmcp.mcp.core import MCPServer
from craftmcp.mcp.tools import get_context, register_tools
from craftmcp.mcp.tools._internal.context import set_context
from craftmcp.mcp.transport.asgi import create_asgi_app
from craftmcp.mcp.transport.sessions import SessionRegistry

TOKEN = "test-token-0123456789abcdef"
AUTH = {"Authorization": f"Bearer {TOKEN}"}


def rpc(method, params=None, msg_id=1) -> str:
    """Serialize one JSON-RPC request."""
    message = {"jsonrpc": "2.0", "method": method}
    if msg_id is not None:
        message["id"] = msg_id
    if params is not None:
        message["params"] = params
    return json.dumps(message)


@pytest.fixture
def host(tmp_path):
    local = LocalHost(
        root=tmp_path,
        modules=[
            ModuleInfo("WorldEdit", "7.2.15"),
            ModuleInfo("essentials", "2.20.1", enabled=False),
        ],
    )
    local.start()
    yield local
    local.stop()


@pytest.fixture
def bridge(host):
    return HostBridge(host, timeout=2.0, capture_grace=0.05)


@pytest.fixture
def ctx(bridge, tmp_path):
    register_tools(bridge, tmp_path)
    yield get_context()
    set_context(None, None)


@pytest.fixture
def mcp_server():
    server = MCPServer()
    server.sync_tools()
    return server


@pytest.fixture
def sessions():
    return SessionRegistry()


@pytest.fixture
def app(mcp_server, sessions, ctx):
    return create_asgi_app(mcp_server, TOKEN, sessions=sessions)


@pytest.fixture
def client(app):
    return TestClient(app, headers=AUTH)
