"""Tool declaration mapping.

Declared functions fall into two variants: well-known web search names turn on
Gemini's built-in Google Search grounding, and everything else is registered
as a custom function declaration. The proxy never executes custom tools; their
handler always reports that execution is unsupported.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from gcproxy.core.logging import get_logger
from gcproxy.models.openai import FunctionDefinition


logger = get_logger(__name__)

BUILTIN_SEARCH_TOOL_NAMES: frozenset[str] = frozenset(
    {
        "web_search",
        "google_search",
        "google_web_search",
        "search",
        "internet_search",
    }
)

GOOGLE_SEARCH_TOOL: dict[str, Any] = {"googleSearch": {}}

TOOL_NOT_SUPPORTED_MESSAGE = "Tool execution is not supported"

ToolHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


def is_builtin_search_tool(name: str) -> bool:
    """Return True if ``name`` (case-insensitive) selects built-in search grounding."""
    return name.lower() in BUILTIN_SEARCH_TOOL_NAMES


def build_parameter_schema(parameters: dict[str, Any] | None) -> dict[str, Any]:
    """Derive an object schema from a function's declared JSON Schema parameters."""
    parameters = parameters or {}
    schema: dict[str, Any] = {
        "type": "object",
        "properties": dict(parameters.get("properties") or {}),
    }
    required = parameters.get("required")
    if isinstance(required, list) and required:
        schema["required"] = list(required)
    return schema


async def unsupported_tool_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    return {"ok": False, "error": TOOL_NOT_SUPPORTED_MESSAGE}


@dataclass(frozen=True)
class RegisteredTool:
    """Custom function made available to the model."""

    name: str
    description: str
    parameters: dict[str, Any]
    handler: ToolHandler = unsupported_tool_handler

    def to_function_declaration(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
        }

    async def execute(self, arguments: dict[str, Any]) -> dict[str, Any]:
        logger.warning("tool_execution_rejected", tool=self.name, category="tools")
        return await self.handler(arguments)


@dataclass
class ToolRegistry:
    """Custom tools declared by one request, keyed by name."""

    _tools: dict[str, RegisteredTool] = field(default_factory=dict)

    def register(
        self,
        name: str,
        description: str,
        parameters: dict[str, Any],
        handler: ToolHandler = unsupported_tool_handler,
    ) -> RegisteredTool:
        tool = RegisteredTool(
            name=name, description=description, parameters=parameters, handler=handler
        )
        self._tools[name] = tool
        return tool

    def get(self, name: str) -> RegisteredTool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def function_declarations(self) -> list[dict[str, Any]]:
        return [tool.to_function_declaration() for tool in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)


def map_tools(
    functions: list[FunctionDefinition],
) -> tuple[list[dict[str, Any]], ToolRegistry]:
    """Split declared functions into built-in tool entries and a custom registry.

    Any number of search-named functions produce a single ``googleSearch``
    entry; they are not registered as custom tools.

    Returns:
        Tuple of (Gemini tool entries, registry of custom tools)
    """
    builtin_tools: list[dict[str, Any]] = []
    registry = ToolRegistry()

    for fn in functions:
        if is_builtin_search_tool(fn.name):
            if not builtin_tools:
                builtin_tools.append(dict(GOOGLE_SEARCH_TOOL))
            logger.debug("builtin_search_tool_enabled", tool=fn.name, category="tools")
            continue
        registry.register(
            fn.name,
            fn.description or "",
            build_parameter_schema(fn.parameters),
        )

    return builtin_tools, registry
