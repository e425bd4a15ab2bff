"""Newline-delimited JSON-RPC 2.0 over a byte stream pair."""

from __future__ import annotations

import asyncio
import itertools
import json
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from acp_bridge.errors import (
    ConnectionClosedError,
    JsonRpcError,
    to_json_rpc_error,
)
from acp_bridge.logging import TRACE, get_logger
from acp_bridge.transport.streams import ReadableSocketStream, WritableSocketStream

log = get_logger("jsonrpc")

# handler(method, params, is_notification) -> result
MessageHandler = Callable[[str, Any, bool], Awaitable[Any]]


@dataclass
class JsonRpcMessage:
    """Parsed JSON-RPC message."""

    jsonrpc: str = "2.0"
    id: int | str | None = None
    method: str | None = None
    params: Any = None
    result: Any = None
    error: dict[str, Any] | None = None

    def is_request(self) -> bool:
        """Check if this is a request (has method and id)."""
        return self.method is not None and self.id is not None

    def is_notification(self) -> bool:
        """Check if this is a notification (has method but no id)."""
        return self.method is not None and self.id is None

    def is_response(self) -> bool:
        """Check if this is a response (no method, has id)."""
        return self.method is None and self.id is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        d: dict[str, Any] = {"jsonrpc": self.jsonrpc}
        if self.method is not None:
            if self.id is not None:
                d["id"] = self.id
            d["method"] = self.method
            if self.params is not None:
                d["params"] = self.params
            return d
        d["id"] = self.id
        if self.error is not None:
            d["error"] = self.error
        else:
            d["result"] = self.result
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JsonRpcMessage:
        """Parse from dictionary."""
        return cls(
            jsonrpc=data.get("jsonrpc", "2.0"),
            id=data.get("id"),
            method=data.get("method"),
            params=data.get("params"),
            result=data.get("result"),
            error=data.get("error"),
        )


class JsonRpcConnection:
    """Bidirectional JSON-RPC endpoint.

    Outbound requests are correlated to responses through pending futures.
    Inbound requests run as separate tasks so a slow handler (a permission
    prompt waiting on the user) does not block the read loop. Inbound
    notifications are handled inline to keep their order.
    """

    def __init__(
        self,
        readable: ReadableSocketStream,
        writable: WritableSocketStream,
        handler: MessageHandler,
    ) -> None:
        self._readable = readable
        self._writable = writable
        self._handler = handler
        self._ids = itertools.count()
        self._pending: dict[int | str, asyncio.Future[Any]] = {}
        self._tasks: set[asyncio.Task[None]] = set()
        self._write_lock = asyncio.Lock()
        self._closed = False
        self._receive_task = asyncio.create_task(self._receive_loop())

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def send_request(self, method: str, params: Any = None) -> Any:
        """Send a request and wait for its result.

        Raises:
            JsonRpcError: The peer answered with an error.
            ConnectionClosedError: The stream ended before the answer.
        """
        if self._closed:
            raise ConnectionClosedError(f"Connection closed, cannot send {method}")
        request_id = next(self._ids)
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._write(JsonRpcMessage(id=request_id, method=method, params=params))
            return await future
        finally:
            self._pending.pop(request_id, None)

    async def send_notification(self, method: str, params: Any = None) -> None:
        if self._closed:
            raise ConnectionClosedError(f"Connection closed, cannot send {method}")
        await self._write(JsonRpcMessage(method=method, params=params))

    async def _write(self, msg: JsonRpcMessage) -> None:
        data = json.dumps(msg.to_dict(), separators=(",", ":"))
        log.log(TRACE, "-> %s", data)
        async with self._write_lock:
            await self._writable.write(f"{data}\n".encode())

    async def _receive_loop(self) -> None:
        buffer = b""
        error: BaseException | None = None
        try:
            async for chunk in self._readable:
                buffer += chunk
                while b"\n" in buffer:
                    line, buffer = buffer.split(b"\n", 1)
                    if line.strip():
                        await self._process_line(line)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            error = e
            log.debug("Receive loop ended with error: %s", e)
        finally:
            self._shutdown(error)

    async def _process_line(self, line: bytes) -> None:
        log.log(TRACE, "<- %s", line.decode("utf-8", errors="replace"))
        try:
            data = json.loads(line.decode("utf-8"))
            if not isinstance(data, dict):
                raise ValueError("message is not an object")
        except ValueError as e:
            log.warning("Discarding malformed message: %s", e)
            await self._write_error(JsonRpcError.parse_error(str(e)), None)
            return

        msg = JsonRpcMessage.from_dict(data)
        if msg.is_response():
            self._handle_response(msg)
        elif msg.is_request():
            task = asyncio.create_task(self._handle_request(msg))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        elif msg.is_notification():
            await self._handle_notification(msg)
        else:
            await self._write_error(JsonRpcError.invalid_request(data), None)

    def _handle_response(self, msg: JsonRpcMessage) -> None:
        future = self._pending.get(msg.id)  # type: ignore[arg-type]
        if future is None or future.done():
            log.debug("Response for unknown request id %r", msg.id)
            return
        if msg.error is not None:
            future.set_exception(JsonRpcError.from_error_obj(msg.error, msg.id))
        else:
            future.set_result(msg.result)

    async def _handle_request(self, msg: JsonRpcMessage) -> None:
        assert msg.method is not None
        try:
            result = await self._handler(msg.method, msg.params, False)
        except Exception as e:
            error = to_json_rpc_error(e) or JsonRpcError.internal_error(str(e))
            log.warning("Request %s failed: %s", msg.method, error)
            await self._write_error(error, msg.id)
            return
        await self._write(JsonRpcMessage(id=msg.id, result=result))

    async def _handle_notification(self, msg: JsonRpcMessage) -> None:
        assert msg.method is not None
        try:
            await self._handler(msg.method, msg.params, True)
        except Exception:
            log.exception("Notification handler failed for %s", msg.method)

    async def _write_error(self, error: JsonRpcError, request_id: int | str | None) -> None:
        await self._write(JsonRpcMessage(id=request_id, error=error.to_error_obj()))

    def _shutdown(self, error: BaseException | None) -> None:
        if self._closed:
            return
        self._closed = True
        reason = f"Connection closed: {error}" if error is not None else "Connection closed"
        for future in self._pending.values():
            if not future.done():
                future.set_exception(ConnectionClosedError(reason))
        self._pending.clear()

    async def close(self) -> None:
        """Stop reading and fail everything still pending."""
        self._receive_task.cancel()
        for task in list(self._tasks):
            task.cancel()
        try:
            await self._receive_task
        except asyncio.CancelledError:
            pass
        self._shutdown(None)
