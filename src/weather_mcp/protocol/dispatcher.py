"""Dispatcher — routes a decoded method call to its handler.

The dispatcher is shared by every session and every transport. It holds no
per-session state: given ``(method, params)`` and the registry it produces
an :class:`~weather_mcp.protocol.models.Outcome`, or ``None`` for methods
that never produce a reply.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from weather_mcp.protocol.errors import (
    InternalError,
    InvalidParamsError,
    MethodNotFoundError,
    ProtocolError,
    ToolExecutionError,
)
from weather_mcp.protocol.models import Outcome, ToolResult
from weather_mcp.protocol.validator import validate
from weather_mcp.utils.telemetry import (
    ATTR_RPC_ERROR_CODE,
    ATTR_RPC_METHOD,
    ATTR_TOOL_NAME,
    get_tracer,
)

if TYPE_CHECKING:
    from weather_mcp.protocol.registry import ToolRegistry

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)

SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")
SERVER_INFO: dict[str, str] = {"name": "weather", "version": "1.0.0"}

INITIALIZE = "initialize"
INITIALIZED = "notifications/initialized"
TOOLS_LIST = "tools/list"
TOOLS_CALL = "tools/call"

_MethodHandler = Callable[[dict[str, Any]], Awaitable[dict[str, Any] | None]]


def negotiate_protocol_version(requested: Any) -> str:
    """Echo the client's version when supported, otherwise offer the newest."""
    if isinstance(requested, str) and requested in SUPPORTED_PROTOCOL_VERSIONS:
        return requested
    return SUPPORTED_PROTOCOL_VERSIONS[0]


class Dispatcher:
    """Exact-name method router over a :class:`ToolRegistry`.

    Recognized methods:

    - ``initialize`` — protocol version and server identity
    - ``notifications/initialized`` — no-op, no reply
    - ``tools/list`` — registry contents in wire form
    - ``tools/call`` — validate arguments, await the tool handler

    Anything else yields a ``MethodNotFound`` outcome. Handler failures are
    always converted to an outcome; ``dispatch`` itself never raises.
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        server_info: dict[str, str] | None = None,
    ) -> None:
        self._registry = registry
        self._server_info = dict(server_info or SERVER_INFO)
        self._methods: dict[str, _MethodHandler] = {
            INITIALIZE: self._initialize,
            INITIALIZED: self._initialized,
            TOOLS_LIST: self._list_tools,
            TOOLS_CALL: self._call_tool,
        }

    async def dispatch(self, method: str, params: Any = None) -> Outcome | None:
        """Resolve *method* and run it, converting every failure to an outcome."""
        with _tracer.start_as_current_span("rpc.dispatch") as span:
            span.set_attribute(ATTR_RPC_METHOD, method)
            outcome = await self._dispatch(method, params)
            if outcome is not None and outcome.error is not None:
                span.set_attribute(ATTR_RPC_ERROR_CODE, outcome.error.code)
            return outcome

    async def _dispatch(self, method: str, params: Any) -> Outcome | None:
        handler = self._methods.get(method)
        try:
            if handler is None:
                raise MethodNotFoundError(method)
            if params is None:
                params = {}
            elif not isinstance(params, dict):
                raise InvalidParamsError("params must be an object")
            result = await handler(params)
        except ProtocolError as exc:
            return Outcome.failure(exc)
        except Exception as exc:
            logger.exception("Unhandled error while dispatching %s", method)
            return Outcome.failure(InternalError(f"Internal error: {exc}"))
        if result is None:
            return None
        return Outcome.success(result)

    # ------------------------------------------------------------------
    # Method handlers
    # ------------------------------------------------------------------

    async def _initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        return {
            "protocolVersion": negotiate_protocol_version(params.get("protocolVersion")),
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": dict(self._server_info),
        }

    async def _initialized(self, params: dict[str, Any]) -> None:
        return None

    async def _list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [descriptor.to_wire() for descriptor in self._registry.list()]}

    async def _call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            raise InvalidParamsError("tools/call requires a string 'name'")

        tool = self._registry.get(name)
        args = validate(tool.descriptor.input_schema, params.get("arguments"))

        with _tracer.start_as_current_span("tool.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, name)
            try:
                raw = await tool.handler(args)
            except ProtocolError:
                raise
            except Exception as exc:
                logger.warning("Tool %s failed: %s", name, exc)
                raise ToolExecutionError(name, str(exc)) from exc

        try:
            result = raw if isinstance(raw, ToolResult) else ToolResult.model_validate(raw)
        except ValidationError as exc:
            logger.error("Tool %s returned a malformed result: %s", name, exc)
            raise InternalError(f"Tool {name} returned a malformed result") from exc

        if result.is_error:
            raise ToolExecutionError(name, result.text)
        return result.to_wire()
