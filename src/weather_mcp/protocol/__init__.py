"""Protocol layer — JSON-RPC envelopes, tool registry, dispatcher and sessions."""

from weather_mcp.protocol.dispatcher import Dispatcher
from weather_mcp.protocol.errors import (
    ArgumentValidationError,
    InternalError,
    InvalidParamsError,
    InvalidRequestError,
    MethodNotFoundError,
    ParseError,
    ProtocolError,
    ToolExecutionError,
    ToolNotFoundError,
    TransportError,
)
from weather_mcp.protocol.models import Outcome, ToolDescriptor, ToolResult
from weather_mcp.protocol.registry import ToolRegistry
from weather_mcp.protocol.session import MessageSink, Session

__all__ = [
    "ArgumentValidationError",
    "Dispatcher",
    "InternalError",
    "InvalidParamsError",
    "InvalidRequestError",
    "MessageSink",
    "MethodNotFoundError",
    "Outcome",
    "ParseError",
    "ProtocolError",
    "Session",
    "ToolDescriptor",
    "ToolExecutionError",
    "ToolNotFoundError",
    "ToolRegistry",
    "ToolResult",
    "TransportError",
]
