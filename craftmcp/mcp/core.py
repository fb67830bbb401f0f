"""
MCP Server Core - Tool Catalog

Builds the static tool catalog from the @tool registry and dispatches
invocations by exact name. Input schemas are generated once from each
handler's signature and type hints.
"""

import functools
import inspect
import re
import sys
import types
from typing import Any, Callable, Union, get_args, get_origin

import anyio

from .errors import InvalidArgumentsError, UnknownToolError
from .logger import get_logger
from .utils.config import SERVER_NAME, SERVER_VERSION
from .utils.validators import get_cached_type_hints

logger = get_logger("craftmcp-core")

# Parameters injected by the server, never exposed in schemas
_INJECTED_PARAMS = ("self", "cls", "ctx")


def text_result(text: str) -> dict:
    """Wrap text in the uniform tool result envelope."""
    return {"content": [{"type": "text", "text": text}]}


class MCPServer:
    """
    Tool catalog with decorator-driven registration.

    The cache is synced from the @tool registry once at startup and is the
    same for every session.
    """

    def __init__(self, name: str = SERVER_NAME, version: str = SERVER_VERSION):
        self.name = name
        self.version = version
        self._tool_cache: dict[str, dict] = {}

    def sync_tools(self):
        """
        Build the tool cache from the decorator registry.

        Caches handler signature info to avoid inspection on every call.
        """
        from .tools._internal.registry import iter_tools

        self._tool_cache.clear()

        for reg in iter_tools():
            tool_name = reg.name or reg.handler.__name__
            tool_desc = reg.description or _summary(reg.handler)
            sig = inspect.signature(reg.handler)
            params = [p for p in sig.parameters if p not in ("self", "cls")]

            self._tool_cache[tool_name] = {
                "handler": reg.handler,
                "name": tool_name,
                "description": tool_desc,
                "inputSchema": self._generate_schema(reg.handler),
                "signature": sig,
                "needs_ctx": bool(params) and params[0] == "ctx",
                "is_async": inspect.iscoroutinefunction(reg.handler),
            }
            logger.debug("  Synced tool: %s", tool_name)

    def clear(self):
        """Clear the cached catalog (called on server stop)."""
        self._tool_cache.clear()

    def _generate_schema(self, func: Callable[..., Any]) -> dict:
        """
        Generate JSON Schema from function signature and type hints.

        Parameters without defaults are required. Descriptions come from the
        docstring's "Args:" section.
        """
        sig = inspect.signature(func)
        hints = get_cached_type_hints(func)
        arg_docs = _arg_descriptions(func)

        properties = {}
        required = []

        for param_name, param in sig.parameters.items():
            if param_name in _INJECTED_PARAMS:
                continue

            properties[param_name] = self._type_to_schema(hints.get(param_name, Any))
            if param_name in arg_docs:
                properties[param_name]["description"] = arg_docs[param_name]

            if param.default is inspect.Parameter.empty:
                required.append(param_name)

        schema = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        return schema

    def _type_to_schema(self, python_type: Any) -> dict:
        """Convert a Python type hint to a JSON Schema fragment."""
        if python_type is type(None):
            return {"type": "null"}

        if python_type is str:
            return {"type": "string"}
        elif python_type is bool:
            return {"type": "boolean"}
        elif python_type is int:
            return {"type": "integer"}
        elif python_type is float:
            return {"type": "number"}

        origin = get_origin(python_type)
        args = get_args(python_type)

        # Handle Union types (both typing.Union and Python 3.10+ types.UnionType)
        is_union = origin is Union
        if sys.version_info >= (3, 10) and isinstance(python_type, types.UnionType):
            is_union = True

        if is_union:
            non_none_types = [t for t in args if t is not type(None)]
            schemas = [self._type_to_schema(t) for t in non_none_types]
            if type(None) in args:
                schemas.append({"type": "null"})
            if len(schemas) == 1:
                return schemas[0]
            return {"anyOf": schemas}

        if origin is list:
            if args:
                return {"type": "array", "items": self._type_to_schema(args[0])}
            return {"type": "array"}

        if origin is dict or python_type is dict:
            return {"type": "object"}

        # Default to string for unknown types
        return {"type": "string"}

    def list_tools(self) -> list[dict]:
        """Return tool descriptors in catalog order."""
        return [
            {
                "name": tool_data["name"],
                "description": tool_data["description"],
                "inputSchema": tool_data["inputSchema"],
            }
            for tool_data in self._tool_cache.values()
        ]

    def has_tool(self, tool_name: str) -> bool:
        return tool_name in self._tool_cache

    async def call_tool(self, tool_name: str, arguments: dict) -> dict:
        """
        Execute a tool and wrap its text in the tool result envelope.

        Unknown argument keys are ignored; a missing required argument raises
        InvalidArgumentsError before the handler runs. Synchronous handlers
        run in a worker thread.

        Raises:
            UnknownToolError: If no tool has this exact name
            InvalidArgumentsError: If arguments do not fit the handler
            ToolError: Whatever the handler raises
        """
        tool_data = self._tool_cache.get(tool_name)
        if tool_data is None:
            raise UnknownToolError(tool_name)
        if not isinstance(arguments, dict):
            raise InvalidArgumentsError(
                f"Tool arguments must be an object, got {type(arguments).__name__}"
            )

        handler = tool_data["handler"]
        call_args = []
        if tool_data["needs_ctx"]:
            # Import here to avoid circular dependency
            from .tools._internal.context import get_context

            call_args.append(get_context())

        sig = tool_data["signature"]
        kwargs = {k: v for k, v in arguments.items() if k in sig.parameters and k not in _INJECTED_PARAMS}
        try:
            sig.bind(*call_args, **kwargs)
        except TypeError as e:
            raise InvalidArgumentsError(f"Invalid arguments for {tool_name}: {e}") from None

        if tool_data["is_async"]:
            text = await handler(*call_args, **kwargs)
        else:
            text = await anyio.to_thread.run_sync(
                functools.partial(handler, *call_args, **kwargs)
            )

        return text_result(str(text))


def _summary(func: Callable) -> str:
    """First paragraph of the docstring, joined onto one line."""
    doc = inspect.getdoc(func) or ""
    return " ".join(doc.split("\n\n", 1)[0].split())


_ARG_LINE = re.compile(r"^\s{2,}(\w+)(?:\s*\([^)]*\))?:\s*(.+)$")


def _arg_descriptions(func: Callable) -> dict[str, str]:
    """Parse "name: description" lines from a Google-style Args section."""
    doc = inspect.getdoc(func) or ""
    _, found, args_section = doc.partition("Args:")
    if not found:
        return {}

    descriptions = {}
    for line in args_section.splitlines():
        if line.strip() and not line.startswith(" "):
            break  # Next section (Returns:, Raises:, ...)
        match = _ARG_LINE.match(line)
        if match:
            descriptions[match.group(1)] = match.group(2).strip()
    return descriptions
