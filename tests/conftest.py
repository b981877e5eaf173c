"""Shared fixtures: stub forecast provider, registries, an in-memory sink and a stdout pipe."""

from __future__ import annotations

import asyncio
import json
import os
from collections.abc import AsyncIterator, Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from weather_mcp.protocol.dispatcher import Dispatcher
from weather_mcp.protocol.errors import TransportError
from weather_mcp.protocol.registry import ToolRegistry
from weather_mcp.protocol.session import Session
from weather_mcp.tools import build_default_registry
from weather_mcp.transports.stdio import connect_pipe_reader, connect_pipe_writer


class RecordingSink:
    """Collects outbound frames in memory."""

    def __init__(self, *, fail_with: Exception | None = None) -> None:
        self.sent: list[str] = []
        self.closed = False
        self._fail_with = fail_with
        self.sent_event = asyncio.Event()

    async def send(self, text: str) -> None:
        if self._fail_with is not None:
            raise self._fail_with
        self.sent.append(text)
        self.sent_event.set()

    async def close(self) -> None:
        self.closed = True

    @property
    def messages(self) -> list[dict[str, Any]]:
        return [json.loads(text) for text in self.sent]

    async def wait_for(self, count: int, timeout: float = 2.0) -> list[dict[str, Any]]:
        async def _poll() -> None:
            while len(self.sent) < count:
                self.sent_event.clear()
                await self.sent_event.wait()

        await asyncio.wait_for(_poll(), timeout)
        return self.messages


@pytest.fixture
def forecast() -> AsyncMock:
    """Stub collaborator returning fixed forecast text."""
    provider = AsyncMock()
    provider.forecast = AsyncMock(return_value="72F")
    return provider


@pytest.fixture
def registry(forecast: AsyncMock) -> ToolRegistry:
    return build_default_registry(forecast)


@pytest.fixture
def dispatcher(registry: ToolRegistry) -> Dispatcher:
    return Dispatcher(registry)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def make_sink() -> Callable[..., RecordingSink]:
    return RecordingSink


@pytest.fixture
def broken_sink() -> RecordingSink:
    return RecordingSink(fail_with=TransportError("connection reset"))


@pytest.fixture
async def session(dispatcher: Dispatcher, sink: RecordingSink) -> AsyncIterator[Session]:
    session = Session(dispatcher, sink, kind="test")
    session.start()
    yield session
    await session.close()


def rpc(method: str, request_id: Any = None, **params: Any) -> str:
    message: dict[str, Any] = {"jsonrpc": "2.0", "method": method}
    if request_id is not None:
        message["id"] = request_id
    if params:
        message["params"] = params
    return json.dumps(message)


@pytest.fixture
def make_rpc() -> Callable[..., str]:
    """Build a JSON-RPC frame: ``make_rpc("tools/list", 1)``; no id means notification."""
    return rpc


@pytest.fixture
async def stdout_pipe() -> AsyncIterator[tuple[asyncio.StreamWriter, asyncio.StreamReader]]:
    """An OS pipe on the loop: bytes written to the writer come out of the reader."""
    read_fd, write_fd = os.pipe()
    writer = await connect_pipe_writer(os.fdopen(write_fd, "wb", buffering=0))
    reader = await connect_pipe_reader(os.fdopen(read_fd, "rb", buffering=0))
    yield writer, reader
    if not writer.transport.is_closing():
        writer.transport.abort()
