"""Tests for JSON-RPC envelopes, decoding and outcomes."""

import json

import pytest

from weather_mcp.protocol.errors import InvalidParamsError, ParseError
from weather_mcp.protocol.models import (
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    Outcome,
    ToolDescriptor,
    ToolResult,
    decode_message,
)


class TestDecodeMessage:
    def test_request(self) -> None:
        msg = decode_message('{"jsonrpc": "2.0", "id": 1, "method": "tools/list"}')
        assert isinstance(msg, JsonRpcRequest)
        assert msg.id == 1
        assert msg.params is None

    def test_string_id_preserved(self) -> None:
        msg = decode_message('{"jsonrpc": "2.0", "id": "abc", "method": "initialize"}')
        assert isinstance(msg, JsonRpcRequest)
        assert msg.id == "abc"

    def test_notification(self) -> None:
        msg = decode_message(b'{"jsonrpc": "2.0", "method": "notifications/initialized"}')
        assert isinstance(msg, JsonRpcNotification)

    def test_client_response(self) -> None:
        msg = decode_message('{"jsonrpc": "2.0", "id": 3, "result": {}}')
        assert isinstance(msg, JsonRpcResponse)

    def test_invalid_json(self) -> None:
        with pytest.raises(ParseError) as info:
            decode_message("{not json")
        assert info.value.request_id is None

    def test_non_object(self) -> None:
        with pytest.raises(ParseError, match="object"):
            decode_message("[1, 2]")

    def test_missing_method_keeps_id(self) -> None:
        with pytest.raises(ParseError, match="missing method") as info:
            decode_message('{"jsonrpc": "2.0", "id": 9, "params": {}}')
        assert info.value.request_id == 9

    def test_wrong_version(self) -> None:
        with pytest.raises(ParseError, match="2.0"):
            decode_message('{"jsonrpc": "1.0", "id": 1, "method": "tools/list"}')

    def test_non_string_method(self) -> None:
        with pytest.raises(ParseError):
            decode_message('{"jsonrpc": "2.0", "id": 1, "method": 42}')

    def test_boolean_id_rejected(self) -> None:
        with pytest.raises(ParseError) as info:
            decode_message('{"jsonrpc": "2.0", "id": true, "method": "tools/list"}')
        assert info.value.request_id is None

    @pytest.mark.parametrize("constant", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_numbers_rejected(self, constant: str) -> None:
        frame = (
            '{"jsonrpc": "2.0", "id": 1, "method": "tools/call", '
            '"params": {"name": "get_weather", "arguments": {"latitude": ' + constant + "}}}"
        )
        with pytest.raises(ParseError, match=constant):
            decode_message(frame)

    def test_invalid_utf8(self) -> None:
        with pytest.raises(ParseError):
            decode_message(b"\xff\xfe")


class TestJsonRpcResponse:
    def test_success_wire_has_no_error(self) -> None:
        wire = JsonRpcResponse(id=1, result={"ok": True}).to_wire()
        assert wire == {"jsonrpc": "2.0", "id": 1, "result": {"ok": True}}

    def test_error_wire_has_no_result(self) -> None:
        outcome = Outcome.failure(InvalidParamsError("bad"))
        wire = outcome.to_response(2).to_wire()
        assert "result" not in wire
        assert wire["error"] == {"code": -32602, "message": "bad"}

    def test_null_id(self) -> None:
        wire = json.loads(Outcome.failure(ParseError()).to_response(None).to_json())
        assert wire["id"] is None
        assert wire["error"]["code"] == -32700


class TestOutcome:
    def test_success(self) -> None:
        outcome = Outcome.success({"tools": []})
        assert outcome.ok
        assert outcome.to_response("x").result == {"tools": []}

    def test_failure_keeps_data(self) -> None:
        outcome = Outcome.failure(InvalidParamsError("bad", data={"field": "state"}))
        assert not outcome.ok
        assert outcome.error is not None
        assert outcome.error.data == {"field": "state"}


class TestToolPayloads:
    def test_descriptor_wire_uses_camel_case(self) -> None:
        descriptor = ToolDescriptor(
            name="echo",
            description="Echo text",
            inputSchema={"type": "object", "properties": {"text": {"type": "string"}}},
        )
        wire = descriptor.to_wire()
        assert wire["inputSchema"]["properties"]["text"]["type"] == "string"
        assert "input_schema" not in wire

    def test_tool_result_from_text(self) -> None:
        result = ToolResult.from_text("72F")
        assert result.to_wire() == {"content": [{"type": "text", "text": "72F"}]}
        assert result.text == "72F"

    def test_tool_result_from_wire_dict(self) -> None:
        result = ToolResult.model_validate(
            {"content": [{"type": "text", "text": "down"}], "isError": True}
        )
        assert result.is_error
