"""Weather MCP server — weather lookup tools over JSON-RPC on stdio and WebSocket."""

from __future__ import annotations

__version__ = "1.0.0"
