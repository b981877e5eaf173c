"""Error taxonomy for the JSON-RPC front-end.

Every :class:`ProtocolError` maps onto exactly one wire error code, so the
session layer can build an error envelope without inspecting messages.
"""

from __future__ import annotations

from typing import Any

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
TOOL_EXECUTION_FAILED = -32000


class ProtocolError(Exception):
    """Base error for all failures reported back to a client."""

    code: int = INTERNAL_ERROR

    def __init__(self, message: str, data: Any = None) -> None:
        self.message = message
        self.data = data
        super().__init__(message)


class ParseError(ProtocolError):
    """The frame could not be decoded into a recognizable message."""

    code = PARSE_ERROR

    def __init__(self, message: str = "Parse error", request_id: int | str | None = None) -> None:
        self.request_id = request_id
        super().__init__(message)


class InvalidRequestError(ProtocolError):
    """The message is well-formed but not acceptable in the current state."""

    code = INVALID_REQUEST


class MethodNotFoundError(ProtocolError):
    """No handler is registered for the requested method."""

    code = METHOD_NOT_FOUND

    def __init__(self, method: str, message: str | None = None) -> None:
        self.method = method
        super().__init__(message or f"Method not found: {method}")


class ToolNotFoundError(MethodNotFoundError):
    """``tools/call`` named a tool that is not in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__("tools/call", f"Unknown tool: {name}")


class InvalidParamsError(ProtocolError):
    """Request parameters are missing, mistyped or refer to unknown data."""

    code = INVALID_PARAMS


class ArgumentValidationError(InvalidParamsError):
    """A tool argument failed schema validation."""

    def __init__(self, field: str, expected: str, detail: str = "") -> None:
        self.field = field
        self.expected = expected
        msg = f"Invalid argument '{field}': expected {expected}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg, data={"field": field, "expected": expected})


class ToolExecutionError(ProtocolError):
    """The tool collaborator raised or reported a failure."""

    code = TOOL_EXECUTION_FAILED

    def __init__(self, name: str, detail: str = "") -> None:
        self.name = name
        self.detail = detail
        super().__init__(f"Tool execution failed: {name}" + (f": {detail}" if detail else ""))


class InternalError(ProtocolError):
    """Anything else; the catch-all that keeps a session alive."""

    code = INTERNAL_ERROR


class TransportError(Exception):
    """Send or receive failed at the byte level; fatal for one session only."""
