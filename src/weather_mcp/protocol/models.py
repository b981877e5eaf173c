"""JSON-RPC 2.0 envelopes, tool descriptors and dispatch outcomes.

``decode_message`` is the single entry point that turns a raw transport
frame into one of :class:`JsonRpcRequest`, :class:`JsonRpcNotification` or
:class:`JsonRpcResponse`.
"""

from __future__ import annotations

import json
from typing import Any, Literal

from pydantic import BaseModel, Field, StrictInt, StrictStr, ValidationError

from weather_mcp.protocol.errors import ParseError, ProtocolError

RequestId = StrictInt | StrictStr

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request; always answered with a response."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId
    method: str
    params: Any = None


class JsonRpcNotification(BaseModel):
    """A request without ``id``; never answered."""

    jsonrpc: Literal["2.0"] = "2.0"
    method: str
    params: Any = None


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId | None = None
    result: Any = None
    error: JsonRpcError | None = None

    def to_wire(self) -> dict[str, Any]:
        """Serialize with exactly one of ``result``/``error`` present."""
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.model_dump(exclude_none=True)
        else:
            payload["result"] = self.result if self.result is not None else {}
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_wire())


Message = JsonRpcRequest | JsonRpcNotification | JsonRpcResponse


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a valid JSON number")


def decode_message(frame: str | bytes) -> Message:
    """Decode one transport frame.

    Raises :class:`ParseError` when the frame is not JSON, is not an object,
    or does not carry a recognizable method. The error carries the request
    id when one could be identified.
    """
    if isinstance(frame, bytes):
        try:
            frame = frame.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Parse error: {exc}") from exc

    try:
        raw = json.loads(frame, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Parse error: {exc.msg}") from exc
    except ValueError as exc:
        raise ParseError(f"Parse error: {exc}") from exc

    if not isinstance(raw, dict):
        raise ParseError("Parse error: message must be a JSON object")

    raw_id = raw.get("id")
    request_id = raw_id if isinstance(raw_id, (int, str)) and not isinstance(raw_id, bool) else None

    if raw.get("jsonrpc") != "2.0":
        raise ParseError("Parse error: jsonrpc must be '2.0'", request_id=request_id)

    try:
        if "method" not in raw:
            if "id" in raw and ("result" in raw or "error" in raw):
                return JsonRpcResponse.model_validate(raw)
            raise ParseError("Parse error: missing method", request_id=request_id)
        if "id" in raw:
            return JsonRpcRequest.model_validate(raw)
        return JsonRpcNotification.model_validate(raw)
    except ValidationError as exc:
        raise ParseError(
            f"Parse error: {exc.errors()[0]['msg']}", request_id=request_id
        ) from exc


# ---------------------------------------------------------------------------
# Tool payloads
# ---------------------------------------------------------------------------


class ToolDescriptor(BaseModel):
    """A tool as advertised by ``tools/list``."""

    model_config = {"populate_by_name": True, "frozen": True}

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}},
        alias="inputSchema",
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class TextContent(BaseModel):
    """A plain-text content block."""

    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """What a tool handler hands back to the dispatcher."""

    model_config = {"populate_by_name": True}

    content: list[TextContent] = []
    is_error: bool = Field(default=False, alias="isError")

    @property
    def text(self) -> str:
        return "\n".join(part.text for part in self.content)

    @classmethod
    def from_text(cls, text: str, *, is_error: bool = False) -> ToolResult:
        """Create a ToolResult with a single text content part."""
        return cls(content=[TextContent(text=text)], is_error=is_error)

    def to_wire(self) -> dict[str, Any]:
        return {"content": [part.model_dump() for part in self.content]}


# ---------------------------------------------------------------------------
# Dispatch outcome
# ---------------------------------------------------------------------------


class Outcome(BaseModel):
    """Result-or-error produced by the dispatcher, not yet bound to an id."""

    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, result: dict[str, Any]) -> Outcome:
        return cls(result=result)

    @classmethod
    def failure(cls, exc: ProtocolError) -> Outcome:
        return cls(error=JsonRpcError(code=exc.code, message=exc.message, data=exc.data))

    def to_response(self, request_id: int | str | None) -> JsonRpcResponse:
        return JsonRpcResponse(id=request_id, result=self.result, error=self.error)
