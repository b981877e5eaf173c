"""Stdio transport — one implicit session over newline-delimited JSON.

Reads frames from the process's stdin and writes responses to stdout. Both
ends are attached to the event loop as pipes so a slow reader on stdout
never blocks other sessions. Tests inject their own reader/writer pair.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Callable
from typing import IO, TYPE_CHECKING, Any

from weather_mcp.protocol.errors import ParseError, TransportError

if TYPE_CHECKING:
    from weather_mcp.protocol.session import MessageSink, Session

logger = logging.getLogger(__name__)

# Large tool payloads arrive on a single line.
_LINE_LIMIT = 4 * 1024 * 1024

SessionFactory = Callable[["MessageSink", str, bool], "Session"]
SessionRelease = Callable[["Session"], None]


async def connect_pipe_reader(pipe: IO[Any], *, limit: int = _LINE_LIMIT) -> asyncio.StreamReader:
    """Attach a readable pipe (stdin by default) to the running loop."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=limit)
    try:
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), pipe)
    except (ValueError, OSError) as exc:
        raise TransportError(f"cannot read from {pipe!r}: {exc}") from exc
    return reader


async def connect_pipe_writer(pipe: IO[Any]) -> asyncio.StreamWriter:
    """Attach a writable pipe (stdout by default) to the running loop.

    Raises:
        TransportError: *pipe* is not a pipe, socket or character device.
    """
    loop = asyncio.get_running_loop()
    try:
        transport, protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, pipe
        )
    except (ValueError, OSError) as exc:
        raise TransportError(f"cannot write to {pipe!r}: {exc}") from exc
    return asyncio.StreamWriter(transport, protocol, None, loop)


class StdioSink:
    """Writes one JSON document per line and waits for the pipe to drain."""

    def __init__(self, writer: asyncio.StreamWriter) -> None:
        self._writer = writer
        self._closed = False

    async def send(self, text: str) -> None:
        if self._closed:
            return
        try:
            self._writer.write(text.encode("utf-8") + b"\n")
            await self._writer.drain()
        except (ConnectionError, OSError) as exc:
            self._closed = True
            raise TransportError(f"stdout closed: {exc}") from exc

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._writer.close()


class StdioTransport:
    """Serves a single session over stdin/stdout for the process lifetime."""

    kind = "stdio"

    def __init__(
        self,
        session_factory: SessionFactory,
        release: SessionRelease,
        *,
        reader: asyncio.StreamReader | None = None,
        writer: asyncio.StreamWriter | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._release = release
        self._reader = reader
        self._writer = writer
        self._session: Session | None = None
        self._read_task: asyncio.Task[None] | None = None

    @property
    def session(self) -> Session | None:
        return self._session

    async def start(self) -> None:
        """Attach to the streams and begin reading.

        Raises:
            TransportError: stdin or stdout cannot be driven by the event loop.
        """
        if self._reader is None:
            self._reader = await connect_pipe_reader(sys.stdin)
        if self._writer is None:
            self._writer = await connect_pipe_writer(sys.stdout)

        self._session = self._session_factory(StdioSink(self._writer), self.kind, False)
        self._read_task = asyncio.create_task(self._read_loop(self._session), name="stdio-reader")
        logger.info("Stdio transport started")

    async def stop(self) -> None:
        """Stop reading and close the session."""
        if self._read_task is not None:
            self._read_task.cancel()
            try:
                await self._read_task
            except asyncio.CancelledError:
                pass
            self._read_task = None

    async def wait_closed(self) -> None:
        """Wait until stdin reaches EOF."""
        if self._read_task is not None:
            await asyncio.shield(self._read_task)

    async def _read_loop(self, session: Session) -> None:
        assert self._reader is not None
        reader = self._reader
        try:
            while True:
                try:
                    line = await reader.readuntil(b"\n")
                except asyncio.IncompleteReadError as exc:
                    # EOF; the last line may lack its newline.
                    if exc.partial.strip():
                        session.feed(exc.partial)
                    logger.info("Stdin reached EOF")
                    break
                except asyncio.LimitOverrunError:
                    logger.warning("Discarding stdin frame longer than the line limit")
                    session.reject(ParseError("Parse error: frame exceeds the line limit"))
                    await _skip_line(reader)
                    continue
                if line.strip():
                    session.feed(line)
            await session.drain()
        except (ConnectionError, OSError) as exc:
            logger.warning("Stdin read failed: %s", exc)
        finally:
            await session.close()
            self._release(session)


async def _skip_line(reader: asyncio.StreamReader) -> None:
    """Consume input up to and including the next newline."""
    while True:
        try:
            await reader.readuntil(b"\n")
            return
        except asyncio.LimitOverrunError as exc:
            await reader.readexactly(exc.consumed)
        except asyncio.IncompleteReadError:
            return
