"""Tool registry and the dispatcher that serves ``tools/list`` and ``tools/call``.

The dispatcher is the boundary between the MCP session and tool code:
whatever a handler does, the host receives a well-formed
``CallToolResult``.  Unknown tools, missing or invalid arguments and
handler exceptions all come back as ``isError=True`` results rather than
JSON-RPC errors.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from mcp import types
from mcp.server.lowlevel import Server
from pydantic import BaseModel, ValidationError

from calendar_mcp.tools._helpers import error_result

if TYPE_CHECKING:
    from calendar_mcp.app import AppContext

logger = logging.getLogger(__name__)

T = TypeVar("T")

ToolHandler = Callable[[Any, "AppContext"], Awaitable[types.CallToolResult]]


class ArgumentError(Exception):
    """Tool arguments are missing or do not match the tool's schema."""


class UnknownToolError(LookupError):
    """No tool with the requested name is registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


@dataclass(frozen=True, slots=True)
class FieldError:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}" if self.field else self.message


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Invalid:
    errors: tuple[FieldError, ...]

    def describe(self) -> str:
        return "; ".join(str(e) for e in self.errors)


ValidationResult = Valid[Any] | Invalid


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """A named tool: its wire contract plus the code that runs it."""

    name: str
    description: str
    input_schema: Mapping[str, Any]
    arguments_model: type[BaseModel]
    handler: ToolHandler

    def to_mcp(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=json.loads(json.dumps(self.input_schema)),
        )

    def validate(self, arguments: Mapping[str, Any]) -> ValidationResult:
        """Check *arguments* against the tool's argument model."""
        try:
            return Valid(self.arguments_model.model_validate(dict(arguments)))
        except ValidationError as exc:
            return Invalid(
                tuple(
                    FieldError(
                        field=".".join(str(part) for part in err["loc"]),
                        message=err["msg"],
                    )
                    for err in exc.errors()
                )
            )


class ToolRegistry:
    """Immutable, ordered set of tools created once at startup."""

    def __init__(self, tools: Iterable[ToolDescriptor]) -> None:
        ordered = tuple(tools)
        names = [t.name for t in ordered]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate tool names: {', '.join(duplicates)}")
        self._tools = ordered
        self._by_name = {t.name: t for t in ordered}

    def list_tools(self) -> tuple[ToolDescriptor, ...]:
        return self._tools

    def get(self, name: str) -> ToolDescriptor:
        try:
            return self._by_name[name]
        except KeyError:
            raise UnknownToolError(name) from None


class Dispatcher:
    """Routes tool calls to their handlers and normalises every outcome."""

    def __init__(self, registry: ToolRegistry, context: AppContext) -> None:
        self._registry = registry
        self._context = context

    def list_tools(self) -> list[types.Tool]:
        logger.debug("List tools request received")
        return [tool.to_mcp() for tool in self._registry.list_tools()]

    async def call_tool(
        self,
        name: str,
        arguments: Mapping[str, Any] | None,
    ) -> types.CallToolResult:
        """Run tool *name* and return its result; never raises."""
        logger.debug(
            "Call tool request received: %s",
            json.dumps({"name": name, "arguments": arguments}, indent=2, default=str),
        )
        try:
            tool = self._registry.get(name)
            if arguments is None:
                raise ArgumentError("No arguments provided")

            validation = tool.validate(arguments)
            if isinstance(validation, Invalid):
                raise ArgumentError(f"Invalid arguments: {validation.describe()}")

            logger.debug("Handling %s request", name)
            result = await tool.handler(validation.value, self._context)
        except UnknownToolError as exc:
            logger.debug("Unknown tool requested: %s", exc.name)
            return error_result(str(exc))
        except Exception as exc:
            logger.exception("Error in call tool handler for %s", name)
            return error_result(f"Error: {exc}")

        logger.debug("Tool %s finished (isError=%s)", name, result.isError)
        return result

    def register(self, server: Server) -> None:
        """Install this dispatcher as *server*'s tool request handlers.

        The handlers are registered directly rather than through the SDK
        decorators so the raw argument bag, including an absent one,
        reaches :meth:`call_tool` unvalidated.
        """

        async def handle_list_tools(req: types.ListToolsRequest) -> types.ServerResult:
            return types.ServerResult(types.ListToolsResult(tools=self.list_tools()))

        async def handle_call_tool(req: types.CallToolRequest) -> types.ServerResult:
            result = await self.call_tool(req.params.name, req.params.arguments)
            return types.ServerResult(result)

        server.request_handlers[types.ListToolsRequest] = handle_list_tools
        server.request_handlers[types.CallToolRequest] = handle_call_tool
