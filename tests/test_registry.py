"""Tests for @tool registration and catalog building."""

from typing import List, Optional

import pytest

from craftmcp.mcp.core import MCPServer, text_result
from craftmcp.mcp.errors import InvalidArgumentsError, UnknownToolError
from craftmcp.mcp.tools._internal import registry
from craftmcp.mcp.utils import validators


@pytest.fixture
def empty_registry(monkeypatch):
    monkeypatch.setattr(registry, "_tool_registry", [])
    monkeypatch.setattr(registry, "_registered_tool_names", set())
    validators.clear_type_hints_cache()
    yield registry
    validators.clear_type_hints_cache()


class TestToolDecorator:
    def test_registers_in_order(self, empty_registry) -> None:
        @empty_registry.tool
        def first() -> str:
            """First tool."""
            return "1"

        @empty_registry.tool(name="renamed")
        def second() -> str:
            """Second tool."""
            return "2"

        assert [r.name for r in empty_registry.iter_tools()] == ["first", "renamed"]

    def test_duplicate_is_ignored(self, empty_registry) -> None:
        @empty_registry.tool
        def dup() -> str:
            """Original."""
            return "a"

        def other() -> str:
            """Impostor."""
            return "b"

        empty_registry.tool(other, name="dup")
        regs = empty_registry.iter_tools()
        assert len(regs) == 1
        assert regs[0].handler is dup

    def test_decorator_returns_function(self, empty_registry) -> None:
        def plain() -> str:
            """Plain."""
            return "ok"

        assert empty_registry.tool(plain) is plain
        assert plain() == "ok"


class TestCatalog:
    async def test_schema_and_call(self, empty_registry) -> None:
        @empty_registry.tool
        def greet(
            name: str,
            times: int = 1,
            loud: Optional[bool] = None,
            tags: Optional[List[str]] = None,
        ) -> str:
            """
            Greet someone.

            Longer explanation that is not part of the summary.

            Args:
                name: Who to greet
                times (int): How many times
            """
            return " ".join([f"hi {name}"] * times)

        server = MCPServer()
        server.sync_tools()
        (descriptor,) = server.list_tools()
        assert descriptor["description"] == "Greet someone."
        assert descriptor["inputSchema"] == {
            "type": "object",
            "properties": {
                "name": {"type": "string", "description": "Who to greet"},
                "times": {"type": "integer", "description": "How many times"},
                "loud": {"anyOf": [{"type": "boolean"}, {"type": "null"}]},
                "tags": {
                    "anyOf": [{"type": "array", "items": {"type": "string"}}, {"type": "null"}]
                },
            },
            "required": ["name"],
        }

        assert await server.call_tool("greet", {"name": "Steve", "times": 2}) == text_result(
            "hi Steve hi Steve"
        )

    async def test_async_handler(self, empty_registry) -> None:
        @empty_registry.tool
        async def answer() -> str:
            """Answer."""
            return "42"

        server = MCPServer()
        server.sync_tools()
        assert await server.call_tool("answer", {}) == text_result("42")

    async def test_unknown_tool(self, empty_registry) -> None:
        server = MCPServer()
        server.sync_tools()
        with pytest.raises(UnknownToolError, match="Unknown tool: ghost"):
            await server.call_tool("ghost", {})

    async def test_arguments_must_be_object(self, empty_registry) -> None:
        @empty_registry.tool
        def echo(text: str) -> str:
            """Echo."""
            return text

        server = MCPServer()
        server.sync_tools()
        with pytest.raises(InvalidArgumentsError, match="must be an object"):
            await server.call_tool("echo", ["hi"])

    async def test_tool_names_are_case_sensitive(self, empty_registry) -> None:
        @empty_registry.tool
        def echo(text: str) -> str:
            """Echo."""
            return text

        server = MCPServer()
        server.sync_tools()
        assert server.has_tool("echo")
        assert not server.has_tool("Echo")

