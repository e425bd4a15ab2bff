"""Socket to byte-stream bridge.

A message-oriented socket is presented as two independent byte streams:

- WritableSocketStream: each write becomes one outbound frame, sent only
  while the socket is open. Writes at any other time are dropped.
- ReadableSocketStream: each inbound frame becomes one chunk. Text frames
  get a trailing newline so line-based JSON-RPC framing always sees a
  terminator.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any, NamedTuple, Protocol

from websockets.exceptions import ConnectionClosed, ConnectionClosedOK
from websockets.protocol import State

from acp_bridge.errors import TransportError
from acp_bridge.logging import TRACE, get_logger

log = get_logger("transport")


class Socket(Protocol):
    """Minimal message socket the bridge needs."""

    @property
    def is_open(self) -> bool: ...

    async def send(self, data: bytes | str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> AsyncIterator[str | bytes]: ...


class WebSocketSocket:
    """Adapts a websockets client connection to the Socket protocol."""

    def __init__(self, connection: Any, url: str | None = None) -> None:
        self.connection = connection
        self.url = url

    @property
    def is_open(self) -> bool:
        return self.connection.state is State.OPEN

    async def send(self, data: bytes | str) -> None:
        try:
            await self.connection.send(data)
        except ConnectionClosed:
            log.log(TRACE, "Send on closed socket dropped")

    async def close(self) -> None:
        await self.connection.close()

    async def __aiter__(self) -> AsyncIterator[str | bytes]:
        try:
            async for frame in self.connection:
                yield frame
        except ConnectionClosedOK:
            return
        except ConnectionClosed as e:
            raise TransportError(f"Connection closed abnormally: {e}", self.url) from e


def frame_to_bytes(frame: str | bytes | bytearray | memoryview) -> bytes:
    """Convert one inbound frame to a chunk.

    Binary frames pass through unchanged, text frames are UTF-8 encoded with
    a newline appended.
    """
    if isinstance(frame, str):
        return f"{frame}\n".encode()
    return bytes(frame)


class ReadableSocketStream:
    """Inbound half of the bridge.

    Chunks are delivered in arrival order to a single reader. ``read()``
    blocks on a condition until a chunk arrives or the stream ends, and
    returns None at end of stream. A socket error is raised from the read
    that would otherwise have reported end of stream.
    """

    def __init__(self, on_cancel: Callable[[], Awaitable[None]] | None = None) -> None:
        self._chunks: deque[bytes] = deque()
        self._done = False
        self._error: BaseException | None = None
        self._cond = asyncio.Condition()
        self._on_cancel = on_cancel

    @property
    def done(self) -> bool:
        return self._done

    async def feed(self, frame: str | bytes) -> None:
        """Enqueue one inbound frame."""
        async with self._cond:
            if self._done:
                return
            self._chunks.append(frame_to_bytes(frame))
            self._cond.notify_all()

    async def finish(self) -> None:
        """Mark a clean end of stream."""
        async with self._cond:
            self._done = True
            self._cond.notify_all()

    async def fail(self, error: BaseException) -> None:
        """End the stream with an error."""
        async with self._cond:
            if self._done:
                return
            self._error = error
            self._done = True
            self._cond.notify_all()

    async def read(self) -> bytes | None:
        """Return the next chunk, or None once the stream has ended."""
        async with self._cond:
            await self._cond.wait_for(lambda: bool(self._chunks) or self._done)
            if self._chunks:
                return self._chunks.popleft()
            if self._error is not None:
                raise self._error
            return None

    async def cancel(self) -> None:
        """Discard buffered chunks, end the stream and close the socket."""
        async with self._cond:
            self._chunks.clear()
            self._done = True
            self._cond.notify_all()
        if self._on_cancel is not None:
            await self._on_cancel()

    async def __aiter__(self) -> AsyncIterator[bytes]:
        while (chunk := await self.read()) is not None:
            yield chunk


class WritableSocketStream:
    """Outbound half of the bridge. Fire-and-forget, no queuing."""

    def __init__(self, socket: Socket) -> None:
        self._socket = socket

    async def write(self, chunk: bytes) -> None:
        if not self._socket.is_open:
            log.log(TRACE, "Dropping %d byte write, socket not open", len(chunk))
            return
        await self._socket.send(chunk)

    async def close(self) -> None:
        await self._socket.close()

    async def abort(self) -> None:
        await self._socket.close()


class StreamPair(NamedTuple):
    """The two halves handed to the JSON-RPC layer."""

    readable: ReadableSocketStream
    writable: WritableSocketStream


class SocketBridge:
    """Owns a socket and the task pumping its frames into a readable stream.

    ``on_closed`` is called exactly once when the socket stops producing
    frames, with the error that ended it or None for a clean close.
    """

    def __init__(
        self,
        socket: Socket,
        on_closed: Callable[[BaseException | None], None] | None = None,
    ) -> None:
        self.socket = socket
        self.readable = ReadableSocketStream(on_cancel=socket.close)
        self.writable = WritableSocketStream(socket)
        self._on_closed = on_closed
        self._closed = asyncio.Event()
        self._pump_task = asyncio.create_task(self._pump())

    @property
    def streams(self) -> StreamPair:
        return StreamPair(self.readable, self.writable)

    @property
    def is_closed(self) -> bool:
        return self._closed.is_set()

    async def _pump(self) -> None:
        error: BaseException | None = None
        try:
            async for frame in self.socket:
                await self.readable.feed(frame)
        except asyncio.CancelledError:
            await self.readable.finish()
            raise
        except Exception as e:
            error = e
            log.debug("Socket error: %s", e)
            await self.readable.fail(e)
        else:
            await self.readable.finish()
        finally:
            self._closed.set()
            if self._on_closed is not None:
                try:
                    self._on_closed(error)
                except Exception:
                    log.exception("Socket close observer failed")

    async def close(self) -> None:
        """Close the socket and wait for the pump to finish."""
        await self.socket.close()
        await self.wait_closed()

    async def wait_closed(self) -> None:
        await self._closed.wait()
