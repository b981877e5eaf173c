"""WebSocket transport — one session per accepted connection.

Plain HTTP requests reaching the same listener are answered by a small
side channel (``/`` and ``/health``) without touching the upgrade path.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timezone
from http import HTTPStatus
from typing import TYPE_CHECKING, Any

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from weather_mcp.protocol.errors import TransportError

if TYPE_CHECKING:
    from websockets.http11 import Request, Response

    from weather_mcp.protocol.session import MessageSink, Session

logger = logging.getLogger(__name__)

SessionFactory = Callable[["MessageSink", str, bool], "Session"]
SessionRelease = Callable[["Session"], None]


class WebSocketSink:
    """Sends each response as one text frame."""

    def __init__(self, connection: ServerConnection) -> None:
        self._connection = connection

    async def send(self, text: str) -> None:
        try:
            await self._connection.send(text)
        except ConnectionClosed as exc:
            raise TransportError(f"websocket closed: {exc}") from exc

    async def close(self) -> None:
        await self._connection.close()


class WebSocketTransport:
    """Accepts WebSocket connections on *host*:*port*."""

    kind = "websocket"

    def __init__(
        self,
        session_factory: SessionFactory,
        release: SessionRelease,
        *,
        host: str = "0.0.0.0",
        port: int = 3000,
        tool_names: Sequence[str] = (),
    ) -> None:
        self._session_factory = session_factory
        self._release = release
        self._host = host
        self._port = port
        self._tool_names = list(tool_names)
        self._server: Server | None = None

    @property
    def port(self) -> int:
        """The bound port (resolves ``0`` to the ephemeral port once started)."""
        if self._server is not None:
            for sock in self._server.sockets:
                return int(sock.getsockname()[1])
        return self._port

    async def start(self) -> None:
        self._server = await serve(
            self._handle_connection,
            self._host,
            self._port,
            process_request=self._process_request,
        )
        logger.info("WebSocket transport listening on %s:%d", self._host, self.port)

    async def stop(self) -> None:
        """Stop accepting and close every open connection."""
        if self._server is None:
            return
        self._server.close()
        await self._server.wait_closed()
        self._server = None
        logger.info("WebSocket transport stopped")

    async def _handle_connection(self, connection: ServerConnection) -> None:
        session = self._session_factory(WebSocketSink(connection), self.kind, True)
        logger.info("Session %s opened from %s", session.session_id, connection.remote_address)
        try:
            async for frame in connection:
                session.feed(frame)
        except ConnectionClosed as exc:
            logger.debug("Session %s connection closed: %s", session.session_id, exc)
        finally:
            await session.close()
            self._release(session)

    # ------------------------------------------------------------------
    # HTTP side channel
    # ------------------------------------------------------------------

    def _process_request(self, connection: ServerConnection, request: Request) -> Response | None:
        if "websocket" in request.headers.get("Upgrade", "").lower():
            return None

        path = request.path.split("?", 1)[0]
        if path == "/":
            return _json_response(
                connection,
                HTTPStatus.OK,
                {
                    "message": "Weather MCP Server is running",
                    "status": "healthy",
                    "tools": self._tool_names,
                },
            )
        if path == "/health":
            return _json_response(
                connection,
                HTTPStatus.OK,
                {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()},
            )
        return _json_response(connection, HTTPStatus.NOT_FOUND, {"error": "Not found"})


def _json_response(connection: ServerConnection, status: HTTPStatus, body: dict[str, Any]) -> Response:
    response = connection.respond(status, json.dumps(body))
    del response.headers["Content-Type"]
    response.headers["Content-Type"] = "application/json"
    return response
