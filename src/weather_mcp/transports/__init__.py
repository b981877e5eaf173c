"""Transport adapters — stdio and WebSocket."""

from weather_mcp.transports.stdio import StdioSink, StdioTransport
from weather_mcp.transports.websocket import WebSocketSink, WebSocketTransport

__all__ = [
    "StdioSink",
    "StdioTransport",
    "WebSocketSink",
    "WebSocketTransport",
]
