"""WebSocket transport for the rosbridge connection."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

import aiohttp

from robodash.exceptions import BridgeConnectionError, BridgeTransportError

_logger = logging.getLogger(__name__)


class BridgeConnection(Protocol):
    """One open bidirectional text-frame connection.

    Iterating yields inbound text frames in delivery order and stops when
    the peer closes the connection.
    """

    async def send_str(self, data: str) -> None:
        ...

    def __aiter__(self) -> AsyncIterator[str]:
        ...

    async def close(self) -> None:
        ...


class TransportFactory(Protocol):
    """Opens a :class:`BridgeConnection` to *url*.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (:class:`AiohttpTransport`) concrete.
    """

    async def __call__(self, url: str) -> BridgeConnection:
        ...


class AiohttpConnection:
    """:class:`BridgeConnection` over an aiohttp client WebSocket."""

    def __init__(self, ws: aiohttp.ClientWebSocketResponse) -> None:
        self._ws = ws

    @property
    def closed(self) -> bool:
        return self._ws.closed

    async def send_str(self, data: str) -> None:
        try:
            await self._ws.send_str(data)
        except (aiohttp.ClientError, ConnectionError) as exc:
            raise BridgeTransportError(f"Send failed: {exc}") from exc

    async def __aiter__(self) -> AsyncIterator[str]:
        async for message in self._ws:
            if message.type == aiohttp.WSMsgType.TEXT:
                yield message.data
            elif message.type == aiohttp.WSMsgType.BINARY:
                yield message.data.decode("utf-8", errors="replace")
            elif message.type == aiohttp.WSMsgType.ERROR:
                raise BridgeTransportError(f"WebSocket error: {self._ws.exception()}")
        _logger.debug("WebSocket closed code=%s", self._ws.close_code)

    async def close(self) -> None:
        await self._ws.close()


class AiohttpTransport:
    """Production :class:`TransportFactory` built on ``ClientSession.ws_connect``.

    Creates its own :class:`aiohttp.ClientSession` on first use unless one is
    supplied; :meth:`close` only closes a session it created.
    """

    def __init__(
        self,
        *,
        session: aiohttp.ClientSession | None = None,
        heartbeat: float | None = None,
    ) -> None:
        self._external_session = session is not None
        self._http = session
        self._heartbeat = heartbeat

    async def __call__(self, url: str) -> AiohttpConnection:
        if self._http is None or self._http.closed:
            self._http = aiohttp.ClientSession()
            self._external_session = False
        _logger.debug("Opening WebSocket %s", url)
        try:
            ws = await self._http.ws_connect(
                url,
                heartbeat=self._heartbeat,
                autoping=True,
            )
        except (aiohttp.ClientError, OSError, TimeoutError) as exc:
            raise BridgeConnectionError(f"WebSocket connect to {url} failed: {exc}", url=url) from exc
        return AiohttpConnection(ws)

    async def close(self) -> None:
        if not self._external_session and self._http is not None:
            await self._http.close()
        self._http = None

    async def __aenter__(self) -> AiohttpTransport:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()
