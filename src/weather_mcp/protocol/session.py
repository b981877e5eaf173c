"""Session — one client connection and its message-processing sequence.

A session decodes frames handed to it by its transport, runs them through
the shared :class:`~weather_mcp.protocol.dispatcher.Dispatcher` strictly in
arrival order, and writes responses back through its :class:`MessageSink`.
Intake never waits on dispatch: ``feed()`` only enqueues, and a dedicated
worker task drains the queue one message at a time.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from weather_mcp.protocol.dispatcher import INITIALIZE
from weather_mcp.protocol.errors import (
    InternalError,
    InvalidRequestError,
    ParseError,
    TransportError,
)
from weather_mcp.protocol.models import (
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    Outcome,
    decode_message,
)
from weather_mcp.utils.telemetry import ATTR_SESSION_ID, ATTR_SESSION_KIND, get_tracer

if TYPE_CHECKING:
    from weather_mcp.protocol.dispatcher import Dispatcher

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


@runtime_checkable
class MessageSink(Protocol):
    """The send-path a transport gives to its session."""

    async def send(self, text: str) -> None: ...
    async def close(self) -> None: ...


class Session:
    """Sequential request processor bound to one transport connection.

    Usage::

        session = Session(dispatcher, sink, kind="websocket", require_initialize=True)
        session.start()
        session.feed(frame)        # from the transport's read loop
        await session.close()      # on disconnect
    """

    def __init__(
        self,
        dispatcher: Dispatcher,
        sink: MessageSink,
        *,
        kind: str,
        require_initialize: bool = False,
        session_id: str | None = None,
    ) -> None:
        self._dispatcher = dispatcher
        self._sink = sink
        self.kind = kind
        self.session_id = session_id or uuid.uuid4().hex[:8]
        self._require_initialize = require_initialize
        self._initialized = False
        self._closed = False
        self._inbox: asyncio.Queue[str | bytes | ParseError | None] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return f"Session({self.kind}:{self.session_id})"

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def worker(self) -> asyncio.Task[None] | None:
        return self._worker

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Spawn the worker that drains the inbox."""
        if self._worker is None:
            self._worker = asyncio.create_task(
                self._run(), name=f"session-{self.kind}-{self.session_id}"
            )

    def feed(self, frame: str | bytes) -> None:
        """Queue one inbound frame; dropped once the session is closed."""
        if self._closed:
            logger.debug("%r closed, dropping inbound frame", self)
            return
        self._inbox.put_nowait(frame)

    def reject(self, error: ParseError) -> None:
        """Queue a parse error for a frame the transport could not read whole.

        The error is answered with a null id, in order with the frames around it.
        """
        if self._closed:
            return
        self._inbox.put_nowait(error)

    async def close(self) -> None:
        """Stop accepting work and close the transport handle.

        A dispatch already in flight runs to completion; its response is
        discarded because the sink is gone. Queued frames are dropped.
        """
        if self._closed:
            return
        self._closed = True
        self._inbox.put_nowait(None)
        try:
            await self._sink.close()
        except Exception as exc:
            logger.debug("%r error while closing transport: %s", self, exc)
        logger.info("Session %s (%s) closed", self.session_id, self.kind)

    async def drain(self) -> None:
        """Answer every frame already queued, then stop the worker.

        Used when the input side ends cleanly (stdin EOF) while the output
        side is still writable.
        """
        if self._closed or self._worker is None:
            return
        self._inbox.put_nowait(None)
        await asyncio.shield(self._worker)

    async def wait_closed(self) -> None:
        """Wait for the worker to finish the message it is processing."""
        if self._worker is not None:
            await asyncio.shield(self._worker)

    async def _run(self) -> None:
        while True:
            frame = await self._inbox.get()
            if frame is None or self._closed:
                break
            try:
                if isinstance(frame, ParseError):
                    await self._send(Outcome.failure(frame).to_response(None))
                else:
                    await self.handle_frame(frame)
            except TransportError as exc:
                logger.warning("Session %s transport failed: %s", self.session_id, exc)
                await self.close()
                break
            except Exception:
                logger.exception("Session %s failed to process a frame", self.session_id)

    # ------------------------------------------------------------------
    # Message processing
    # ------------------------------------------------------------------

    async def handle_frame(self, frame: str | bytes) -> None:
        """Decode, dispatch and answer a single frame."""
        with _tracer.start_as_current_span("session.message") as span:
            span.set_attribute(ATTR_SESSION_ID, self.session_id)
            span.set_attribute(ATTR_SESSION_KIND, self.kind)
            try:
                message = decode_message(frame)
            except ParseError as exc:
                logger.info("Session %s rejected frame: %s", self.session_id, exc.message)
                await self._send(Outcome.failure(exc).to_response(exc.request_id))
                return

            if isinstance(message, JsonRpcResponse):
                logger.debug(
                    "Session %s ignoring client response id=%s", self.session_id, message.id
                )
                return
            if isinstance(message, JsonRpcNotification):
                await self._handle_notification(message)
                return
            await self._handle_request(message)

    async def _handle_request(self, request: JsonRpcRequest) -> None:
        if self._require_initialize and not self._initialized and request.method != INITIALIZE:
            error = InvalidRequestError(
                f"Session not initialized: '{INITIALIZE}' must be the first request"
            )
            await self._send(Outcome.failure(error).to_response(request.id))
            return

        try:
            outcome = await self._dispatcher.dispatch(request.method, request.params)
        except Exception as exc:
            logger.exception("Dispatcher raised for %s", request.method)
            outcome = Outcome.failure(InternalError(f"Internal error: {exc}"))

        if outcome is None:
            # A reply-less method was called as a request; still correlate it.
            outcome = Outcome.success({})
        if request.method == INITIALIZE and outcome.ok:
            self._initialized = True
        await self._send(outcome.to_response(request.id))

    async def _handle_notification(self, notification: JsonRpcNotification) -> None:
        if self._require_initialize and not self._initialized:
            logger.info(
                "Session %s dropping %s received before initialize",
                self.session_id,
                notification.method,
            )
            return
        try:
            outcome = await self._dispatcher.dispatch(notification.method, notification.params)
        except Exception:
            logger.exception("Dispatcher raised for notification %s", notification.method)
            return
        if outcome is not None and outcome.error is not None:
            logger.info(
                "Session %s notification %s failed: %s",
                self.session_id,
                notification.method,
                outcome.error.message,
            )

    async def _send(self, response: JsonRpcResponse) -> None:
        if self._closed:
            logger.debug("%r closed, discarding response id=%s", self, response.id)
            return
        await self._sink.send(response.to_json())
