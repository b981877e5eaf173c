"""ServerSupervisor — owns the transports and the set of live sessions.

Lifecycle::

    supervisor = ServerSupervisor(settings, registry)
    await supervisor.run()     # start, wait for SIGINT/SIGTERM, drain, return

Only one supervisor may be running per process.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from typing import TYPE_CHECKING, ClassVar

from weather_mcp.protocol.dispatcher import Dispatcher
from weather_mcp.protocol.errors import TransportError
from weather_mcp.protocol.session import Session
from weather_mcp.transports.stdio import StdioTransport
from weather_mcp.transports.websocket import WebSocketTransport

if TYPE_CHECKING:
    from weather_mcp.config import ServerSettings
    from weather_mcp.protocol.registry import ToolRegistry
    from weather_mcp.protocol.session import MessageSink

logger = logging.getLogger(__name__)

_SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ServerSupervisor:
    """Starts the socket listener (and stdio outside production), then drains on shutdown."""

    _active: ClassVar[ServerSupervisor | None] = None

    def __init__(
        self,
        settings: ServerSettings,
        registry: ToolRegistry,
        *,
        stdin: asyncio.StreamReader | None = None,
        stdout: asyncio.StreamWriter | None = None,
    ) -> None:
        self._settings = settings
        self._registry = registry
        self._dispatcher = Dispatcher(registry)
        self._sessions: set[Session] = set()
        self._workers: set[asyncio.Task[None]] = set()
        self._stop_event = asyncio.Event()
        self._started = False

        self.websocket = WebSocketTransport(
            self.open_session,
            self.release_session,
            host=settings.host,
            port=settings.port,
            tool_names=[tool.name for tool in registry.list()],
        )
        self.stdio: StdioTransport | None = None
        if not settings.production:
            self.stdio = StdioTransport(
                self.open_session, self.release_session, reader=stdin, writer=stdout
            )

    @property
    def sessions(self) -> frozenset[Session]:
        """Sessions whose transport is still open."""
        return frozenset(self._sessions)

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    # ------------------------------------------------------------------
    # Session bookkeeping (called by transports)
    # ------------------------------------------------------------------

    def open_session(self, sink: MessageSink, kind: str, require_initialize: bool) -> Session:
        session = Session(
            self._dispatcher,
            sink,
            kind=kind,
            require_initialize=require_initialize,
        )
        session.start()
        self._sessions.add(session)
        if session.worker is not None:
            self._workers.add(session.worker)
            session.worker.add_done_callback(self._workers.discard)
        logger.debug("Live sessions: %d", len(self._sessions))
        return session

    def release_session(self, session: Session) -> None:
        self._sessions.discard(session)
        logger.debug("Live sessions: %d", len(self._sessions))

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Freeze the registry and bring the transports up."""
        if ServerSupervisor._active is not None and ServerSupervisor._active is not self:
            msg = "Another ServerSupervisor is already running in this process"
            raise RuntimeError(msg)
        ServerSupervisor._active = self

        self._registry.freeze()
        try:
            await self.websocket.start()
            if self.stdio is not None:
                await self._start_stdio()
            else:
                logger.info("Production mode: stdio transport disabled")
        except Exception:
            await self.websocket.stop()
            ServerSupervisor._active = None
            raise
        self._started = True

    async def _start_stdio(self) -> None:
        assert self.stdio is not None
        try:
            await self.stdio.start()
        except TransportError as exc:
            logger.warning("Stdio transport unavailable, serving sockets only: %s", exc)
            self.stdio = None

    def request_shutdown(self) -> None:
        """Ask :meth:`run` to begin shutting down."""
        self._stop_event.set()

    async def wait_for_shutdown(self) -> None:
        await self._stop_event.wait()

    async def stop(self) -> None:
        """Stop accepting, close every session, drain in-flight work."""
        if not self._started:
            return
        self._started = False
        logger.info("Shutting down servers...")

        await self.websocket.stop()
        if self.stdio is not None:
            await self.stdio.stop()
        for session in list(self._sessions):
            await session.close()
            self.release_session(session)

        pending = {task for task in self._workers if not task.done()}
        if pending:
            logger.info(
                "Waiting up to %.1fs for %d session(s) to drain",
                self._settings.drain_timeout,
                len(pending),
            )
            _, still_running = await asyncio.wait(pending, timeout=self._settings.drain_timeout)
            for task in still_running:
                task.cancel()
            if still_running:
                logger.warning("Abandoned %d session(s) after drain timeout", len(still_running))
                await asyncio.gather(*still_running, return_exceptions=True)

        ServerSupervisor._active = None
        logger.info("Server closed")

    async def run(self) -> None:
        """Serve until a termination signal arrives, then shut down cleanly."""
        loop = asyncio.get_running_loop()
        installed: list[signal.Signals] = []
        for sig in _SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
                installed.append(sig)
            except (NotImplementedError, RuntimeError):
                logger.debug("Signal handler for %s unavailable on this platform", sig.name)

        try:
            await self.start()
            await self.wait_for_shutdown()
        finally:
            await self.stop()
            for sig in installed:
                loop.remove_signal_handler(sig)

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info("Received %s", sig.name)
        self.request_shutdown()
