"""ToolRegistry — name-keyed table of tool descriptors and their handlers."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from weather_mcp.protocol.errors import ToolNotFoundError
from weather_mcp.protocol.models import ToolDescriptor, ToolResult
from weather_mcp.protocol.validator import check_schema

ToolHandler = Callable[[dict[str, Any]], Awaitable[ToolResult]]


@dataclass(frozen=True)
class RegisteredTool:
    """A descriptor paired with the coroutine that implements it."""

    descriptor: ToolDescriptor
    handler: ToolHandler


class ToolRegistry:
    """Maps tool names to :class:`RegisteredTool` entries.

    Populated once at startup, then frozen; every session reads from the
    same instance without locking. ``list()`` preserves insertion order.

    Usage::

        registry = ToolRegistry()
        registry.register(ToolDescriptor(name="echo", ...), echo_handler)
        registry.freeze()
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, descriptor: ToolDescriptor, handler: ToolHandler) -> None:
        """Add a tool. Raises ``ValueError`` on duplicates or unusable schemas."""
        if self._frozen:
            msg = "Tool registry is frozen; register tools before startup"
            raise RuntimeError(msg)
        if descriptor.name in self._tools:
            msg = f"Tool already registered: {descriptor.name}"
            raise ValueError(msg)
        check_schema(descriptor.input_schema)
        self._tools[descriptor.name] = RegisteredTool(descriptor=descriptor, handler=handler)

    def freeze(self) -> None:
        self._frozen = True

    def list(self) -> list[ToolDescriptor]:
        return [tool.descriptor for tool in self._tools.values()]

    def get(self, name: str) -> RegisteredTool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool
