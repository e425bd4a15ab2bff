"""Inbound half of ACP: what the agent may ask of the client."""

from __future__ import annotations

import itertools
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from acp_bridge.deferred import Deferred
from acp_bridge.errors import HandlerNotImplemented
from acp_bridge.logging import get_logger
from acp_bridge.types.notifications import SessionNotification
from acp_bridge.types.requests import (
    IdentifiedPermissionRequest,
    ReadTextFileRequest,
    RequestPermissionRequest,
    WriteTextFileRequest,
)
from acp_bridge.types.responses import (
    ReadTextFileResponse,
    RequestPermissionResponse,
    WriteTextFileResponse,
)

log = get_logger("client")

ReadTextFileHandler = Callable[[ReadTextFileRequest], Awaitable[ReadTextFileResponse]]
WriteTextFileHandler = Callable[[WriteTextFileRequest], Awaitable[WriteTextFileResponse]]


def _ignore_permission(request: IdentifiedPermissionRequest) -> None:
    pass


def _ignore_notification(notification: SessionNotification) -> None:
    pass


@dataclass
class AcpClientOptions:
    """Sinks and handlers the client forwards to."""

    on_request_permission: Callable[[IdentifiedPermissionRequest], None] = _ignore_permission
    on_session_notification: Callable[[SessionNotification], None] = _ignore_notification
    read_text_file: ReadTextFileHandler | None = None
    write_text_file: WriteTextFileHandler | None = None


class AcpClient:
    """Handles agent -> client calls.

    Permission requests are parked as Deferreds keyed by a correlation id and
    handed to ``on_request_permission``. The agent's call stays open until the
    UI calls ``resolve_permission`` or ``reject_permission`` with that id.

    Usage:
        client = AcpClient(AcpClientOptions(on_request_permission=show_dialog))
        ...
        client.resolve_permission(req.deferred_id, RequestPermissionResponse.selected("allow"))
    """

    def __init__(self, options: AcpClientOptions | None = None) -> None:
        self.options = options or AcpClientOptions()
        self._pending: dict[str, tuple[str, Deferred[RequestPermissionResponse]]] = {}
        self._ids = itertools.count(1)

    @property
    def pending_permission_ids(self) -> list[str]:
        return list(self._pending)

    def _next_permission_id(self) -> str:
        return f"{int(time.time() * 1000)}-{next(self._ids)}"

    async def session_update(self, params: SessionNotification) -> None:
        self.options.on_session_notification(params)

    async def read_text_file(self, params: ReadTextFileRequest) -> ReadTextFileResponse:
        if self.options.read_text_file is None:
            raise HandlerNotImplemented("Read text file")
        return await self.options.read_text_file(params)

    async def write_text_file(self, params: WriteTextFileRequest) -> WriteTextFileResponse:
        if self.options.write_text_file is None:
            raise HandlerNotImplemented("Write text file")
        return await self.options.write_text_file(params)

    async def request_permission(
        self, params: RequestPermissionRequest
    ) -> RequestPermissionResponse:
        """Park the request until it is resolved from outside."""
        permission_id = self._next_permission_id()
        deferred: Deferred[RequestPermissionResponse] = Deferred()
        self._pending[permission_id] = (params.session_id, deferred)
        log.debug("Permission request %s: %s", permission_id, params.tool_call.title)

        request = IdentifiedPermissionRequest.model_validate(
            {**params.to_wire(), "deferredId": permission_id}
        )
        try:
            self.options.on_request_permission(request)
        except Exception:
            self._pending.pop(permission_id, None)
            raise

        try:
            return await deferred
        finally:
            self._pending.pop(permission_id, None)

    def resolve_permission(self, permission_id: str, response: RequestPermissionResponse) -> None:
        entry = self._pending.pop(permission_id, None)
        if entry is not None:
            entry[1].resolve(response)

    def reject_permission(self, permission_id: str, error: BaseException) -> None:
        entry = self._pending.pop(permission_id, None)
        if entry is not None:
            entry[1].reject(error)

    def cancel_pending_permissions(self, session_id: str | None = None) -> int:
        """Answer pending requests with the ``cancelled`` outcome.

        Returns the number of requests cancelled.
        """
        ids = [
            pid
            for pid, (sid, _) in self._pending.items()
            if session_id is None or sid == session_id
        ]
        for pid in ids:
            self.resolve_permission(pid, RequestPermissionResponse.cancelled())
        return len(ids)
