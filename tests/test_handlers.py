"""Tests for the JSON-RPC dispatcher."""

import base64
import json
import os

import pytest

from craftmcp.mcp.handlers import (
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    extract_id,
    handle_message,
)
from craftmcp.mcp.utils.config import PROTOCOL_VERSION, SERVER_NAME, SERVER_VERSION

from .conftest import rpc

CATALOG = [
    "execute_command",
    "read_file",
    "write_file",
    "read_file_base64",
    "write_file_base64",
    "list_directory",
    "list_plugins",
    "get_logs",
]


class TestEnvelope:
    async def test_missing_method(self, mcp_server) -> None:
        outcome = await handle_message(mcp_server, '{"jsonrpc":"2.0","id":7}')
        assert outcome.method is None
        assert outcome.response == {
            "jsonrpc": "2.0",
            "id": None,
            "error": {"code": INVALID_REQUEST, "message": "Invalid Request: missing method"},
        }

    async def test_non_string_method(self, mcp_server) -> None:
        outcome = await handle_message(mcp_server, '{"jsonrpc":"2.0","id":2,"method":5}')
        assert outcome.response == {
            "jsonrpc": "2.0",
            "id": 2,
            "error": {"code": METHOD_NOT_FOUND, "message": "Method not found: 5"},
        }

    async def test_non_object_body(self, mcp_server) -> None:
        outcome = await handle_message(mcp_server, "[1, 2, 3]")
        assert outcome.response["error"]["code"] == INVALID_REQUEST

    async def test_malformed_json(self, mcp_server) -> None:
        outcome = await handle_message(mcp_server, "{not json")
        assert outcome.response["id"] is None
        assert outcome.response["error"]["code"] == PARSE_ERROR
        assert outcome.response["error"]["message"].startswith("Error: ")

    async def test_unknown_method(self, mcp_server) -> None:
        outcome = await handle_message(mcp_server, rpc("resources/read", msg_id=3))
        assert outcome.response == {
            "jsonrpc": "2.0",
            "id": 3,
            "error": {"code": METHOD_NOT_FOUND, "message": "Method not found: resources/read"},
        }

    @pytest.mark.parametrize(
        "method", ["notifications/initialized", "notifications/cancelled", "notifications/whatever"]
    )
    async def test_notifications_get_no_response(self, mcp_server, method) -> None:
        outcome = await handle_message(mcp_server, rpc(method, msg_id=None))
        assert outcome.method == method
        assert outcome.response is None
        assert outcome.payload is None

    async def test_payload_is_compact_json(self, mcp_server) -> None:
        outcome = await handle_message(mcp_server, rpc("ping", msg_id="abc"))
        assert outcome.payload == '{"jsonrpc":"2.0","id":"abc","result":{}}'


class TestExtractId:
    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("req-1", "req-1"),
            (5, 5),
            (5.0, 5),
            (2.5, 2.5),
            (None, None),
            (True, None),
            ({"a": 1}, None),
        ],
    )
    def test_extract_id(self, raw, expected) -> None:
        assert extract_id(raw) == expected

    async def test_absent_id_answers_with_null(self, mcp_server) -> None:
        outcome = await handle_message(mcp_server, rpc("ping", msg_id=None))
        assert outcome.response == {"jsonrpc": "2.0", "id": None, "result": {}}


class TestMethods:
    async def test_initialize(self, mcp_server) -> None:
        outcome = await handle_message(
            mcp_server, rpc("initialize", {"protocolVersion": "2099-01-01"})
        )
        assert outcome.method == "initialize"
        result = outcome.response["result"]
        assert result["protocolVersion"] == PROTOCOL_VERSION
        assert result["capabilities"]["tools"] == {"listChanged": True}
        assert result["serverInfo"] == {"name": SERVER_NAME, "version": SERVER_VERSION}

    async def test_tools_list_catalog_order(self, mcp_server) -> None:
        outcome = await handle_message(mcp_server, rpc("tools/list"))
        tools = outcome.response["result"]["tools"]
        assert [t["name"] for t in tools] == CATALOG
        assert all(set(t) == {"name", "description", "inputSchema"} for t in tools)

    async def test_tool_schemas(self, mcp_server) -> None:
        tools = {t["name"]: t for t in mcp_server.list_tools()}
        assert tools["read_file"]["description"] == "Read a file from the server."
        assert tools["read_file"]["inputSchema"] == {
            "type": "object",
            "properties": {
                "path": {"type": "string", "description": "File path relative to the server root"}
            },
            "required": ["path"],
        }
        assert "required" not in tools["list_directory"]["inputSchema"]
        assert tools["list_plugins"]["inputSchema"] == {"type": "object", "properties": {}}
        assert tools["write_file_base64"]["inputSchema"]["required"] == ["path", "content"]

    async def test_resources_and_prompts_are_empty(self, mcp_server) -> None:
        resources = await handle_message(mcp_server, rpc("resources/list"))
        prompts = await handle_message(mcp_server, rpc("prompts/list"))
        assert resources.response["result"] == {"resources": []}
        assert prompts.response["result"] == {"prompts": []}


class TestToolsCall:
    async def test_execute_command(self, mcp_server, ctx) -> None:
        outcome = await handle_message(
            mcp_server,
            rpc("tools/call", {"name": "execute_command", "arguments": {"command": "version"}}),
        )
        assert outcome.response["result"] == {
            "content": [
                {"type": "text", "text": "This server is running LocalHost version 1.0.0"}
            ]
        }

    async def test_unknown_tool_names_the_tool(self, mcp_server, ctx) -> None:
        outcome = await handle_message(
            mcp_server, rpc("tools/call", {"name": "teleport", "arguments": {}}, msg_id=9)
        )
        error = outcome.response["error"]
        assert outcome.response["id"] == 9
        assert error["code"] == PARSE_ERROR
        assert "teleport" in error["message"]

    async def test_missing_params(self, mcp_server, ctx) -> None:
        outcome = await handle_message(mcp_server, rpc("tools/call"))
        assert outcome.response["error"]["message"] == "Error: Missing params"

    async def test_missing_required_argument(self, mcp_server, ctx) -> None:
        outcome = await handle_message(
            mcp_server, rpc("tools/call", {"name": "read_file", "arguments": {}})
        )
        message = outcome.response["error"]["message"]
        assert message.startswith("Error: Invalid arguments for read_file")
        assert "path" in message

    async def test_unknown_arguments_are_ignored(self, mcp_server, ctx, tmp_path) -> None:
        (tmp_path / "motd.txt").write_text("Welcome!", encoding="utf-8")
        outcome = await handle_message(
            mcp_server,
            rpc("tools/call", {"name": "read_file", "arguments": {"path": "motd.txt", "mode": "r"}}),
        )
        assert outcome.response["result"]["content"][0]["text"] == "Welcome!"

    async def test_wrong_argument_type(self, mcp_server, ctx) -> None:
        outcome = await handle_message(
            mcp_server, rpc("tools/call", {"name": "read_file", "arguments": {"path": 12}})
        )
        assert "must be a string" in outcome.response["error"]["message"]

    async def test_sandbox_violation(self, mcp_server, ctx, tmp_path) -> None:
        outcome = await handle_message(
            mcp_server,
            rpc(
                "tools/call",
                {"name": "write_file", "arguments": {"path": "../../evil.sh", "content": "rm"}},
            ),
        )
        assert outcome.response["error"]["message"] == (
            "Error: Access denied: Path is outside server root."
        )
        assert not (tmp_path.parent.parent / "evil.sh").exists()

    async def test_list_plugins(self, mcp_server, ctx) -> None:
        outcome = await handle_message(
            mcp_server, rpc("tools/call", {"name": "list_plugins"})
        )
        text = outcome.response["result"]["content"][0]["text"]
        assert text == "essentials (2.20.1) [DISABLED]\nWorldEdit (7.2.15)"

    async def test_result_is_valid_json(self, mcp_server, ctx) -> None:
        outcome = await handle_message(
            mcp_server, rpc("tools/call", {"name": "list_directory", "arguments": {}})
        )
        assert json.loads(outcome.payload)["result"]["content"][0]["text"] == "[DIR]  logs/"

    async def test_large_base64_round_trip(self, mcp_server, ctx, tmp_path) -> None:
        payload = os.urandom(3 * 1024 * 1024 + 7)
        encoded = base64.b64encode(payload).decode("ascii")

        written = await handle_message(
            mcp_server,
            rpc(
                "tools/call",
                {"name": "write_file_base64", "arguments": {"path": "world/region.mca", "content": encoded}},
            ),
        )
        assert "error" not in written.response
        assert (tmp_path / "world" / "region.mca").read_bytes() == payload

        read = await handle_message(
            mcp_server,
            rpc("tools/call", {"name": "read_file_base64", "arguments": {"path": "world/region.mca"}}),
        )
        assert read.response["result"]["content"][0]["text"] == encoded
