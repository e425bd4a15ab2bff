"""Shared test utilities: in-memory sockets and a scripted ACP agent."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from typing import Any

from acp_bridge.errors import JsonRpcError

_CLOSE = object()


class FakeSocket:
    """In-memory message socket.

    Frames pushed with ``push`` are yielded by async iteration. Everything
    the code under test sends lands in ``sent`` and on the ``outbox`` queue.
    """

    def __init__(self) -> None:
        self.open = True
        self.sent: list[bytes | str] = []
        self.outbox: asyncio.Queue[bytes | str] = asyncio.Queue()
        self.close_calls = 0
        self._frames: asyncio.Queue[Any] = asyncio.Queue()

    @property
    def is_open(self) -> bool:
        return self.open

    async def send(self, data: bytes | str) -> None:
        self.sent.append(data)
        self.outbox.put_nowait(data)

    async def close(self) -> None:
        self.close_calls += 1
        if self.open:
            self.open = False
            self._frames.put_nowait(_CLOSE)

    def push(self, frame: str | bytes) -> None:
        """Deliver an inbound frame."""
        self._frames.put_nowait(frame)

    def push_json(self, message: dict[str, Any]) -> None:
        self.push(json.dumps(message))

    def remote_close(self) -> None:
        """Simulate the peer closing the socket."""
        if self.open:
            self.open = False
            self._frames.put_nowait(_CLOSE)

    def remote_fail(self, error: Exception) -> None:
        """Simulate an abnormal close."""
        self.open = False
        self._frames.put_nowait(error)

    async def next_sent(self, timeout: float = 1.0) -> dict[str, Any]:
        """Wait for the next outbound frame and decode it as JSON."""
        return json.loads(await asyncio.wait_for(self.outbox.get(), timeout))

    async def __aiter__(self) -> AsyncIterator[str | bytes]:
        while True:
            item = await self._frames.get()
            if item is _CLOSE:
                return
            if isinstance(item, BaseException):
                raise item
            yield item


class FakeConnector:
    """Connector that hands out FakeSockets, failing the first ``fail_times`` calls.

    ``fail_times=None`` fails every call.
    """

    def __init__(self, fail_times: int | None = 0) -> None:
        self.fail_times = fail_times
        self.calls = 0
        self.urls: list[str] = []
        self.sockets: list[FakeSocket] = []

    async def __call__(self, url: str) -> FakeSocket:
        self.calls += 1
        self.urls.append(url)
        if self.fail_times is None or self.calls <= self.fail_times:
            raise OSError("Connection refused")
        socket = FakeSocket()
        self.sockets.append(socket)
        return socket

    @property
    def last(self) -> FakeSocket:
        return self.sockets[-1]


class FakeAgentPeer:
    """Answers requests arriving on a FakeSocket like a minimal ACP agent.

    ``results`` maps method names to a result value, a JsonRpcError to answer
    with, or a callable taking the request and returning either.
    Responses the client sends to agent-initiated requests land in
    ``replies``; notifications in ``notifications``.
    """

    def __init__(self, socket: FakeSocket, results: dict[str, Any] | None = None) -> None:
        self.socket = socket
        self.results = results or {}
        self.requests: list[dict[str, Any]] = []
        self.notifications: list[dict[str, Any]] = []
        self.replies: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._next_id = 1000
        self._task = asyncio.create_task(self._run())

    async def _run(self) -> None:
        while True:
            msg = json.loads(await self.socket.outbox.get())
            if "method" not in msg:
                self.replies.put_nowait(msg)
                continue
            if "id" not in msg:
                self.notifications.append(msg)
                continue
            self.requests.append(msg)
            result = self.results.get(msg["method"], {})
            if callable(result):
                result = result(msg)
            if isinstance(result, JsonRpcError):
                self.socket.push_json(
                    {"jsonrpc": "2.0", "id": msg["id"], "error": result.to_error_obj()}
                )
            else:
                self.socket.push_json({"jsonrpc": "2.0", "id": msg["id"], "result": result})

    def notify(self, method: str, params: dict[str, Any]) -> None:
        self.socket.push_json({"jsonrpc": "2.0", "method": method, "params": params})

    def request(self, method: str, params: dict[str, Any]) -> int:
        self._next_id += 1
        self.socket.push_json(
            {"jsonrpc": "2.0", "id": self._next_id, "method": method, "params": params}
        )
        return self._next_id

    async def next_reply(self, timeout: float = 1.0) -> dict[str, Any]:
        return await asyncio.wait_for(self.replies.get(), timeout)

    async def stop(self) -> None:
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Poll ``predicate`` on the loop until it holds or ``timeout`` passes."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.005)


def session_update(session_id: str, kind: str, **fields: Any) -> dict[str, Any]:
    """Build session/update params."""
    return {"sessionId": session_id, "update": {"sessionUpdate": kind, **fields}}
