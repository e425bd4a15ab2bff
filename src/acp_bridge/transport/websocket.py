"""Reconnecting WebSocket transport.

State machine per endpoint:

    disconnected -> connecting -> connected -> disconnected (socket closed)
                                            -> connecting (auto retry) ...
    connecting -> error -> disconnected (failed handshake, retry scheduled)

Retries are bounded by ``reconnect_attempts`` and spaced ``reconnect_delay``
seconds apart. The counter resets on every successful open and on every
explicit ``connect()``.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import websockets

from acp_bridge.errors import TransportError
from acp_bridge.logging import get_logger
from acp_bridge.state.events import ConnectionState, ConnectionStatus
from acp_bridge.transport.streams import Socket, SocketBridge, StreamPair, WebSocketSocket

log = get_logger("transport")

DEFAULT_RECONNECT_ATTEMPTS = 3
DEFAULT_RECONNECT_DELAY = 1.0

Connector = Callable[[str], Awaitable[Socket]]


async def open_websocket(url: str) -> Socket:
    """Open a WebSocket client connection to ``url``."""
    connection = await websockets.connect(url)
    return WebSocketSocket(connection, url)


def _noop_state(state: ConnectionState) -> None:
    pass


def _noop_error(error: Exception) -> None:
    pass


class WebSocketTransport:
    """One endpoint with at most one live socket and one pending retry."""

    def __init__(
        self,
        url: str,
        on_state_change: Callable[[ConnectionState], None] = _noop_state,
        on_error: Callable[[Exception], None] = _noop_error,
        reconnect_attempts: int = DEFAULT_RECONNECT_ATTEMPTS,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        connector: Connector = open_websocket,
    ) -> None:
        self.url = url
        self.reconnect_attempts = reconnect_attempts
        self.reconnect_delay = reconnect_delay
        self._on_state_change = on_state_change
        self._on_error = on_error
        self._connector = connector

        self._status = ConnectionStatus.DISCONNECTED
        self._bridge: SocketBridge | None = None
        self._streams: StreamPair | None = None
        self._reconnect_count = 0
        self._reconnect_timer: asyncio.TimerHandle | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._closing = False
        self._lock = asyncio.Lock()

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def streams(self) -> StreamPair | None:
        return self._streams

    @property
    def reconnect_count(self) -> int:
        return self._reconnect_count

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_timer is not None or self._reconnect_task is not None

    def _set_state(self, status: ConnectionStatus, error: str | None = None) -> None:
        self._status = status
        log.debug("%s: %s", self.url, status.value)
        state = ConnectionState(status=status, error=error, url=self.url)
        try:
            self._on_state_change(state)
        except Exception:
            log.exception("Connection state observer failed")

    def _report_error(self, error: Exception) -> None:
        try:
            self._on_error(error)
        except Exception:
            log.exception("Connection error observer failed")

    async def connect(self) -> StreamPair:
        """Open the socket and return its stream pair.

        Raises:
            TransportError: The handshake failed. A retry has been scheduled.
        """
        self._closing = False
        self._reconnect_count = 0
        self._cancel_reconnect()
        return await self._open()

    async def _open(self) -> StreamPair:
        async with self._lock:
            if self._streams is not None and self._status is ConnectionStatus.CONNECTED:
                return self._streams

            self._set_state(ConnectionStatus.CONNECTING)
            try:
                socket = await self._connector(self.url)
            except asyncio.CancelledError:
                self._set_state(ConnectionStatus.DISCONNECTED)
                raise
            except Exception as e:
                error = e if isinstance(e, TransportError) else TransportError(
                    f"WebSocket connection error: {e}", self.url
                )
                log.info("Connection to %s failed: %s", self.url, e)
                self._report_error(error)
                self._set_state(ConnectionStatus.ERROR, error=str(error))
                self._set_state(ConnectionStatus.DISCONNECTED)
                self._schedule_reconnect()
                raise error from e

            bridge = SocketBridge(socket, on_closed=lambda err: self._on_socket_closed(bridge, err))
            self._bridge = bridge
            self._streams = bridge.streams
            self._reconnect_count = 0
            self._set_state(ConnectionStatus.CONNECTED)
            log.info("Connected to %s", self.url)
            return self._streams

    def _on_socket_closed(self, bridge: SocketBridge, error: BaseException | None) -> None:
        if bridge is not self._bridge:
            return
        self._bridge = None
        self._streams = None
        if self._closing:
            return
        if error is not None:
            log.info("Connection to %s lost: %s", self.url, error)
            if isinstance(error, Exception):
                self._report_error(error)
        else:
            log.info("Connection to %s closed", self.url)
        self._set_state(ConnectionStatus.DISCONNECTED)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._closing or self._reconnect_timer is not None:
            return
        if self._reconnect_count >= self.reconnect_attempts:
            log.info("Giving up on %s after %d retries", self.url, self._reconnect_count)
            return
        self._reconnect_count += 1
        log.debug(
            "Reconnecting to %s in %.1fs (attempt %d/%d)",
            self.url,
            self.reconnect_delay,
            self._reconnect_count,
            self.reconnect_attempts,
        )
        loop = asyncio.get_running_loop()
        self._reconnect_timer = loop.call_later(self.reconnect_delay, self._fire_reconnect)

    def _fire_reconnect(self) -> None:
        self._reconnect_timer = None
        self._reconnect_task = asyncio.create_task(self._reconnect())

    async def _reconnect(self) -> None:
        try:
            await self._open()
        except TransportError:
            # Already reported and rescheduled by _open
            pass
        finally:
            if self._reconnect_task is asyncio.current_task():
                self._reconnect_task = None

    def _cancel_reconnect(self) -> None:
        if self._reconnect_timer is not None:
            self._reconnect_timer.cancel()
            self._reconnect_timer = None
        if self._reconnect_task is not None and self._reconnect_task is not asyncio.current_task():
            self._reconnect_task.cancel()
            self._reconnect_task = None

    async def disconnect(self) -> None:
        """Close the socket and stop retrying."""
        self._closing = True
        self._cancel_reconnect()
        bridge, self._bridge = self._bridge, None
        self._streams = None
        if bridge is not None:
            await bridge.close()
        self._set_state(ConnectionStatus.DISCONNECTED)


class MultiWebSocketTransport:
    """Keyed collection of transports, one per URL."""

    def __init__(
        self,
        on_state_change: Callable[[ConnectionState, str], None] | None = None,
        on_error: Callable[[Exception, str], None] | None = None,
        reconnect_attempts: int = DEFAULT_RECONNECT_ATTEMPTS,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        connector: Connector = open_websocket,
    ) -> None:
        self._on_state_change = on_state_change
        self._on_error = on_error
        self.reconnect_attempts = reconnect_attempts
        self.reconnect_delay = reconnect_delay
        self._connector = connector
        self._transports: dict[str, WebSocketTransport] = {}
        self.current_url: str | None = None

    def _create(self, url: str) -> WebSocketTransport:
        def on_state_change(state: ConnectionState) -> None:
            if self._on_state_change is not None:
                self._on_state_change(state, url)

        def on_error(error: Exception) -> None:
            if self._on_error is not None:
                self._on_error(error, url)

        return WebSocketTransport(
            url,
            on_state_change=on_state_change,
            on_error=on_error,
            reconnect_attempts=self.reconnect_attempts,
            reconnect_delay=self.reconnect_delay,
            connector=self._connector,
        )

    def get(self, url: str) -> WebSocketTransport | None:
        return self._transports.get(url)

    async def connect(self, url: str) -> StreamPair:
        """Connect to ``url``, reusing a live connection when there is one."""
        self.current_url = url
        transport = self._transports.get(url)
        if transport is None:
            transport = self._create(url)
            self._transports[url] = transport
        elif transport.status is ConnectionStatus.CONNECTED and transport.streams is not None:
            return transport.streams
        return await transport.connect()

    async def disconnect(self, url: str | None = None) -> None:
        """Tear down one endpoint, or all of them when ``url`` is None."""
        if url is not None:
            transport = self._transports.pop(url, None)
            if transport is not None:
                await transport.disconnect()
            return

        transports = list(self._transports.values())
        self._transports.clear()
        self.current_url = None
        for transport in transports:
            await transport.disconnect()

    def connection_status(self, url: str | None = None) -> ConnectionStatus:
        target = url or self.current_url
        if target is None:
            return ConnectionStatus.DISCONNECTED
        transport = self._transports.get(target)
        return transport.status if transport is not None else ConnectionStatus.DISCONNECTED

    def active_connections(self) -> list[str]:
        return [
            url
            for url, transport in self._transports.items()
            if transport.status is ConnectionStatus.CONNECTED
        ]
