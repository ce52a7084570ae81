"""Persistent pub/sub client for a rosbridge server.

Owns exactly one WebSocket connection, the topic handler registry and the
reconnection policy. All state lives on the event loop that calls
:meth:`BridgeClient.connect`; callers on other threads must submit work
with :func:`asyncio.run_coroutine_threadsafe`.
"""

from __future__ import annotations

import asyncio
import enum
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from pydantic import ValidationError

from robodash._redact import summarize_for_log
from robodash._transport import AiohttpTransport, BridgeConnection, TransportFactory
from robodash.config import BridgeConfig
from robodash.exceptions import BridgeConnectionError, BridgeTransportError
from robodash.models.messages import BridgeOp, InboundEnvelope, OutboundEnvelope

_logger = logging.getLogger(__name__)

MessageHandler = Callable[[Any], None]
Listener = Callable[[], Awaitable[None] | None]


class ConnectionState(enum.StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"


@dataclass(frozen=True, slots=True)
class TopicSubscription:
    """The single handler registered for a topic."""

    topic: str
    message_type: str
    handler: MessageHandler


class BridgeClient:
    """Async rosbridge client with bounded automatic reconnection.

    Usage::

        async with BridgeClient(BridgeConfig(url="ws://robot:9090")) as bridge:
            bridge.on_connection(lambda: print("up"))
            await bridge.connect()
            await bridge.subscribe("/odom", "nav_msgs/Odometry", handle_odom)

    State machine::

        DISCONNECTED -connect()-> CONNECTING -open-> CONNECTED
        CONNECTED -close-> DISCONNECTED -listeners-> RECONNECTING -interval-> CONNECTING
        any -disconnect()-> DISCONNECTED

    Publishing, subscribing and advertising while not connected log a
    warning and do nothing; nothing is queued.
    """

    def __init__(
        self,
        config: BridgeConfig | None = None,
        *,
        transport: TransportFactory | None = None,
    ) -> None:
        self._config = config or BridgeConfig()
        self._owned_transport: AiohttpTransport | None = None
        if transport is None:
            self._owned_transport = AiohttpTransport(heartbeat=self._config.heartbeat)
            transport = self._owned_transport
        self._transport = transport

        self._state = ConnectionState.DISCONNECTED
        self._connection: BridgeConnection | None = None
        self._subscriptions: dict[str, TopicSubscription] = {}
        self._connection_listeners: list[Listener] = []
        self._disconnection_listeners: list[Listener] = []
        self._send_lock = asyncio.Lock()

        # Bumped by disconnect() so a socket that opens afterwards is discarded.
        self._generation = 0
        self._reconnect_attempts = 0
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._open_task: asyncio.Task[BridgeConnection] | None = None
        self._reader_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BridgeClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.disconnect()
        if self._owned_transport is not None:
            await self._owned_transport.close()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def config(self) -> BridgeConfig:
        return self._config

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def reconnect_attempts(self) -> int:
        """Consecutive reconnect attempts since the last successful open."""
        return self._reconnect_attempts

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None or self._reconnect_task is not None

    @property
    def subscriptions(self) -> Mapping[str, TopicSubscription]:
        return MappingProxyType(self._subscriptions)

    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED and self._connection is not None

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def on_connection(self, listener: Listener) -> None:
        """Call *listener* after every successful open, reconnects included."""
        self._connection_listeners.append(listener)

    def on_disconnection(self, listener: Listener) -> None:
        """Call *listener* whenever an open connection goes away."""
        self._disconnection_listeners.append(listener)

    async def _notify(self, listeners: list[Listener], kind: str) -> None:
        for listener in list(listeners):
            try:
                result = listener()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                _logger.warning("Bridge %s listener failed", kind, exc_info=True)

    # ------------------------------------------------------------------
    # Connection lifecycle
    # ------------------------------------------------------------------

    def _set_state(self, state: ConnectionState) -> None:
        if state is not self._state:
            _logger.debug("Bridge state %s -> %s", self._state, state)
            self._state = state

    async def connect(self) -> None:
        """Open the connection and wait until the bridge accepts it.

        Raises
        ------
        BridgeConnectionError
            If the socket cannot be opened within ``connect_timeout``, or
            :meth:`disconnect` cancels the attempt.
        """
        if self._state is ConnectionState.CONNECTED:
            return
        if self._state is ConnectionState.CONNECTING and self._reconnect_task is None:
            raise BridgeConnectionError("Connection attempt already in progress", url=self._config.url)

        self._cancel_reconnect()
        self._reconnect_attempts = 0
        try:
            await self._open()
        except BridgeConnectionError:
            if self._state is ConnectionState.CONNECTING:
                self._set_state(ConnectionState.DISCONNECTED)
            raise

    async def _open(self) -> None:
        url = self._config.url
        generation = self._generation
        self._set_state(ConnectionState.CONNECTING)

        attempt = asyncio.create_task(asyncio.wait_for(self._transport(url), self._config.connect_timeout))
        self._open_task = attempt
        try:
            connection = await attempt
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                raise
            raise BridgeConnectionError(f"Connection attempt to {url} cancelled", url=url) from None
        except BridgeConnectionError:
            raise
        except Exception as exc:
            raise BridgeConnectionError(f"Connection to {url} failed: {exc!r}", url=url) from exc
        finally:
            if self._open_task is attempt:
                self._open_task = None

        if generation != self._generation:
            await connection.close()
            raise BridgeConnectionError(f"Connection attempt to {url} cancelled", url=url)

        self._connection = connection
        self._reconnect_attempts = 0
        self._set_state(ConnectionState.CONNECTED)
        self._reader_task = asyncio.create_task(self._read_loop(connection))
        _logger.info("Connected to bridge %s", url)
        await self._notify(self._connection_listeners, "connection")

    async def disconnect(self) -> None:
        """Close the connection and cancel any pending reconnect or open attempt.

        Always leaves the client ``DISCONNECTED``. Disconnection listeners
        fire only if the client was connected.
        """
        self._generation += 1
        self._cancel_reconnect()

        attempt = self._open_task
        self._open_task = None
        if attempt is not None:
            attempt.cancel()

        reader = self._reader_task
        self._reader_task = None
        connection = self._connection
        self._connection = None
        was_connected = self._state is ConnectionState.CONNECTED
        self._set_state(ConnectionState.DISCONNECTED)
        self._reconnect_attempts = 0

        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            await asyncio.wait([reader])
        if connection is not None:
            try:
                await connection.close()
            except Exception:
                _logger.debug("Error closing bridge connection", exc_info=True)

        if was_connected:
            _logger.info("Disconnected from bridge %s", self._config.url)
            await self._notify(self._disconnection_listeners, "disconnection")

    # ------------------------------------------------------------------
    # Reconnection
    # ------------------------------------------------------------------

    def _cancel_reconnect(self) -> None:
        handle = self._reconnect_handle
        self._reconnect_handle = None
        if handle is not None:
            handle.cancel()

        task = self._reconnect_task
        self._reconnect_task = None
        if task is not None and task is not asyncio.current_task():
            task.cancel()

    def _schedule_reconnect(self) -> None:
        limit = self._config.max_reconnect_attempts
        if self._reconnect_attempts >= limit:
            _logger.warning(
                "Giving up on bridge %s after %d reconnect attempts",
                self._config.url,
                self._reconnect_attempts,
            )
            self._set_state(ConnectionState.DISCONNECTED)
            return

        self._reconnect_attempts += 1
        self._set_state(ConnectionState.RECONNECTING)
        _logger.info(
            "Reconnecting to bridge in %.1fs (attempt %d/%d)",
            self._config.reconnect_interval,
            self._reconnect_attempts,
            limit,
        )
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(self._config.reconnect_interval, self._start_reconnect)

    def _start_reconnect(self) -> None:
        self._reconnect_handle = None
        self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        try:
            await self._open()
        except BridgeConnectionError as exc:
            _logger.warning("Reconnect attempt %d failed: %s", self._reconnect_attempts, exc)
            self._schedule_reconnect()
        finally:
            if self._reconnect_task is asyncio.current_task():
                self._reconnect_task = None

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def _read_loop(self, connection: BridgeConnection) -> None:
        try:
            async for frame in connection:
                self._dispatch(frame)
        except asyncio.CancelledError:
            raise
        except Exception:
            _logger.warning("Bridge connection failed", exc_info=True)

        if self._connection is connection:
            await self._connection_lost()

    async def _connection_lost(self) -> None:
        connection = self._connection
        self._connection = None
        self._reader_task = None
        _logger.warning("Lost connection to bridge %s", self._config.url)
        if connection is not None:
            try:
                await connection.close()
            except Exception:
                _logger.debug("Error closing dropped bridge connection", exc_info=True)

        generation = self._generation
        self._set_state(ConnectionState.DISCONNECTED)
        await self._notify(self._disconnection_listeners, "disconnection")

        # A listener may have called connect() or disconnect() meanwhile.
        if generation == self._generation and self._state is ConnectionState.DISCONNECTED:
            self._schedule_reconnect()

    def _dispatch(self, frame: str) -> None:
        try:
            envelope = InboundEnvelope.model_validate_json(frame)
        except ValidationError as exc:
            if any(error["type"] == "json_invalid" for error in exc.errors()):
                _logger.error("Unparseable bridge frame: %s", frame[:200])
            else:
                _logger.debug("Ignoring bridge frame without topic: %s", frame[:200])
            return

        if self._config.trace_frames:
            _logger.debug("<- %s %s", envelope.topic, summarize_for_log(envelope.msg))

        subscription = self._subscriptions.get(envelope.topic)
        if subscription is None:
            return
        try:
            subscription.handler(envelope.msg)
        except Exception:
            _logger.warning("Handler for %s failed", envelope.topic, exc_info=True)

    # ------------------------------------------------------------------
    # Outbound
    # ------------------------------------------------------------------

    async def _send(self, envelope: OutboundEnvelope) -> bool:
        async with self._send_lock:
            connection = self._connection
            if connection is None or self._state is not ConnectionState.CONNECTED:
                _logger.warning("Dropping %s for %s: bridge not connected", envelope.op, envelope.topic)
                return False
            try:
                frame = envelope.to_frame()
            except (TypeError, ValueError) as exc:
                _logger.error("Cannot serialize %s for %s: %s", envelope.op, envelope.topic, exc)
                return False
            if self._config.trace_frames:
                _logger.debug("-> %s", summarize_for_log(envelope.model_dump(mode="json")))
            try:
                await connection.send_str(frame)
            except BridgeTransportError as exc:
                _logger.warning("Send of %s for %s failed: %s", envelope.op, envelope.topic, exc)
                return False
        return True

    async def subscribe(self, topic: str, message_type: str, handler: MessageHandler) -> bool:
        """Register *handler* as the only handler for *topic* and subscribe.

        Registering again for the same topic replaces the previous handler.
        Returns ``False`` (and registers nothing) when not connected or when
        the subscribe frame could not be sent.
        """
        if not self.is_connected():
            _logger.warning("Cannot subscribe to %s: bridge not connected", topic)
            return False
        if not await self._send(OutboundEnvelope(op=BridgeOp.SUBSCRIBE, topic=topic, type=message_type)):
            return False
        self._subscriptions[topic] = TopicSubscription(topic=topic, message_type=message_type, handler=handler)
        return True

    async def publish(self, topic: str, message_type: str, payload: Any) -> bool:
        """Fire-and-forget publish; ``False`` when it was not sent."""
        if not self.is_connected():
            _logger.warning("Cannot publish to %s: bridge not connected", topic)
            return False
        return await self._send(
            OutboundEnvelope(op=BridgeOp.PUBLISH, topic=topic, type=message_type, msg=payload)
        )

    async def advertise(self, topic: str, message_type: str) -> bool:
        """Announce intent to publish on *topic*."""
        if not self.is_connected():
            _logger.warning("Cannot advertise %s: bridge not connected", topic)
            return False
        return await self._send(OutboundEnvelope(op=BridgeOp.ADVERTISE, topic=topic, type=message_type))
