from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from robodash.exceptions import BridgeConnectionError, BridgeTransportError


class FakeConnection:
    """In-memory bridge connection: ``feed`` delivers frames, ``drop`` ends the stream."""

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.closed = False
        self._inbox: asyncio.Queue[str | None] = asyncio.Queue()

    async def send_str(self, data: str) -> None:
        if self.closed:
            raise BridgeTransportError("connection closed")
        self.sent.append(data)

    def feed(self, frame: str) -> None:
        self._inbox.put_nowait(frame)

    def drop(self) -> None:
        self._inbox.put_nowait(None)

    async def __aiter__(self):
        while True:
            frame = await self._inbox.get()
            if frame is None:
                return
            yield frame

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._inbox.put_nowait(None)


class FakeTransport:
    """Transport factory whose outcomes are scripted per call.

    Each entry of ``outcomes`` is ``"ok"``, ``"fail"`` or ``"hang"``; once
    the list is exhausted ``default`` applies.
    """

    def __init__(self) -> None:
        self.urls: list[str] = []
        self.connections: list[FakeConnection] = []
        self.outcomes: list[str] = []
        self.default = "ok"

    async def __call__(self, url: str) -> FakeConnection:
        self.urls.append(url)
        outcome = self.outcomes.pop(0) if self.outcomes else self.default
        if outcome == "fail":
            raise BridgeConnectionError(f"refused {url}", url=url)
        if outcome == "hang":
            await asyncio.Event().wait()
        connection = FakeConnection()
        self.connections.append(connection)
        return connection

    @property
    def latest(self) -> FakeConnection:
        return self.connections[-1]


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()
