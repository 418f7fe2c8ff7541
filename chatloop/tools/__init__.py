"""
Tools System
============

Tools are functions the model can ask ChatLoop to run. Each tool has a
name, a description and a parameter schema (see ``chatloop.tools.spec``),
plus a handler that does the actual work.

How tools work:
1. The agent sends the current tool specs with every request
2. The model answers with zero or more function calls
3. Each call is dispatched by name to its handler
4. The result goes back to the model on the next round trip

Handlers take the parsed arguments dict and return a ``ToolResult`` (a
plain ``{"success": ..., "content": ..., "message": ...}`` mapping is
accepted too). They may be sync or async. A handler that raises is turned
into a failed result instead of breaking the conversation.

This module provides:
- ToolResult for standardized responses
- ToolRegistry for managing available tools
- call_handler, the single place handlers are invoked
"""

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Union

from chatloop.tools.spec import (
    ArrayOf,
    Tool,
    ToolParameter,
    ToolSpec,
    array_of,
    build_parameter,
    build_tool,
)
from chatloop.utils.logger import Logger

logger = Logger("Tools")

NOT_FOUND_CONTENT = "function_id not found"


@dataclass
class ToolResult:
    """
    Standardized result from tool execution.

    Attributes:
        success: Whether the tool executed successfully
        content: The result payload (varies by tool)
        message: Human-readable note, usually the reason for a failure
    """
    success: bool
    content: Any = None
    message: str | None = None

    @classmethod
    def not_found(cls) -> "ToolResult":
        """Result sent back when the model calls a tool that doesn't exist."""
        return cls(success=False, content=NOT_FOUND_CONTENT)

    @classmethod
    def failure(cls, message: str) -> "ToolResult":
        return cls(success=False, message=message)

    @classmethod
    def from_value(cls, value: Any) -> "ToolResult":
        """
        Normalize whatever a handler returned.

        A ToolResult passes through, a mapping with a ``success`` key is
        read field by field, and anything else is a successful result
        carrying the value as content.
        """
        if isinstance(value, ToolResult):
            return value
        if isinstance(value, Mapping) and "success" in value:
            return cls(
                success=bool(value["success"]),
                content=value.get("content"),
                message=value.get("message"),
            )
        return cls(success=True, content=value)

    def to_dict(self) -> dict:
        """Convert to a dict, leaving out fields that are not set."""
        data: dict[str, Any] = {"success": self.success}
        if self.content is not None:
            data["content"] = self.content
        if self.message is not None:
            data["message"] = self.message
        return data


ToolHandler = Callable[[dict], Union[ToolResult, Mapping[str, Any], Awaitable[Any], Any]]


async def call_handler(name: str, handler: ToolHandler, params: Any) -> ToolResult:
    """
    Run a tool handler and normalize its outcome.

    Exceptions raised by the handler are logged and returned as a failed
    ToolResult; they never propagate.
    """
    try:
        result = handler(params)
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        logger.error(f"Tool execution failed: {name}", e)
        return ToolResult.failure(f"{type(e).__name__}: {e}")

    return ToolResult.from_value(result)


class ToolRegistry:
    """
    Central registry for all available tools.

    Tools can be added or removed at any time; the agent reads the tool
    list fresh on every round trip.

    Example:
        registry = ToolRegistry()
        registry.register(my_tool)

        agent = ConversationAgent(..., get_tools=registry.list_tools)
    """

    def __init__(self):
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """
        Register a tool.

        Raises:
            ValueError: If a tool with this name already exists
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")

        self._tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def unregister(self, name: str) -> bool:
        """Remove a tool. Returns True if it was registered."""
        if self._tools.pop(name, None) is None:
            return False
        logger.debug(f"Unregistered tool: {name}")
        return True

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def list_tools(self) -> list[Tool]:
        """Get all registered tools, in registration order."""
        return list(self._tools.values())

    def list_specs(self) -> list[ToolSpec]:
        return [tool.spec for tool in self._tools.values()]

    def list_names(self) -> list[str]:
        return list(self._tools.keys())

    async def dispatch(self, name: str, params: Any) -> ToolResult:
        """
        Execute a tool by name.

        Returns:
            The handler's result, ``ToolResult.not_found()`` for an unknown
            name, or a failure result if the handler raised
        """
        tool = self.get(name)
        if tool is None:
            logger.warning(f"Tool '{name}' not found")
            return ToolResult.not_found()

        logger.info(f"Executing tool: {name}")
        return await call_handler(name, tool.handler, params)


__all__ = [
    "ArrayOf",
    "NOT_FOUND_CONTENT",
    "Tool",
    "ToolHandler",
    "ToolParameter",
    "ToolRegistry",
    "ToolResult",
    "ToolSpec",
    "array_of",
    "build_parameter",
    "build_tool",
    "call_handler",
]
