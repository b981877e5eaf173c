"""Tests for ToolRegistry."""

from unittest.mock import AsyncMock

import pytest

from weather_mcp.protocol.errors import ToolNotFoundError
from weather_mcp.protocol.models import ToolDescriptor
from weather_mcp.protocol.registry import ToolRegistry


def _descriptor(name: str) -> ToolDescriptor:
    return ToolDescriptor(
        name=name,
        description=f"{name} tool",
        inputSchema={"type": "object", "properties": {"q": {"type": "string"}}},
    )


class TestToolRegistry:
    def test_list_preserves_insertion_order(self) -> None:
        registry = ToolRegistry()
        for name in ("zeta", "alpha", "mid"):
            registry.register(_descriptor(name), AsyncMock())
        assert [d.name for d in registry.list()] == ["zeta", "alpha", "mid"]

    def test_get_returns_handler(self) -> None:
        registry = ToolRegistry()
        handler = AsyncMock()
        registry.register(_descriptor("echo"), handler)
        tool = registry.get("echo")
        assert tool.handler is handler
        assert tool.descriptor.name == "echo"

    def test_get_unknown_raises(self) -> None:
        registry = ToolRegistry()
        with pytest.raises(ToolNotFoundError, match="missing"):
            registry.get("missing")

    def test_duplicate_rejected(self) -> None:
        registry = ToolRegistry()
        registry.register(_descriptor("echo"), AsyncMock())
        with pytest.raises(ValueError, match="already registered"):
            registry.register(_descriptor("echo"), AsyncMock())

    def test_unusable_schema_rejected(self) -> None:
        registry = ToolRegistry()
        bad = ToolDescriptor(
            name="bad",
            inputSchema={"type": "object", "properties": {"x": {"type": "date"}}},
        )
        with pytest.raises(ValueError, match="unsupported"):
            registry.register(bad, AsyncMock())

    def test_frozen_registry_rejects_registration(self) -> None:
        registry = ToolRegistry()
        registry.freeze()
        assert registry.frozen
        with pytest.raises(RuntimeError, match="frozen"):
            registry.register(_descriptor("late"), AsyncMock())

    def test_lookup_is_case_sensitive(self) -> None:
        registry = ToolRegistry()
        registry.register(_descriptor("echo"), AsyncMock())
        with pytest.raises(ToolNotFoundError):
            registry.get("Echo")
