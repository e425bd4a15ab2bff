"""ACP over a JSON-RPC connection: typed outbound calls, inbound dispatch."""

from __future__ import annotations

from typing import Any, Protocol

from pydantic import BaseModel, ValidationError

from acp_bridge.errors import HandlerNotImplemented, JsonRpcError
from acp_bridge.logging import get_logger
from acp_bridge.transport.jsonrpc import JsonRpcConnection
from acp_bridge.transport.streams import StreamPair
from acp_bridge.types.notifications import CancelNotification, SessionNotification
from acp_bridge.types.requests import (
    AuthenticateRequest,
    InitializeRequest,
    LoadSessionRequest,
    NewSessionRequest,
    PromptRequest,
    ReadTextFileRequest,
    RequestPermissionRequest,
    SetSessionModelRequest,
    SetSessionModeRequest,
    WriteTextFileRequest,
)
from acp_bridge.types.responses import (
    AuthenticateResponse,
    InitializeResponse,
    LoadSessionResponse,
    NewSessionResponse,
    PromptResponse,
    SetSessionModelResponse,
    SetSessionModeResponse,
)

log = get_logger("client")

# Wire method -> (params type, client handler name)
CLIENT_METHODS: dict[str, tuple[type[BaseModel], str]] = {
    "session/request_permission": (RequestPermissionRequest, "request_permission"),
    "fs/read_text_file": (ReadTextFileRequest, "read_text_file"),
    "fs/write_text_file": (WriteTextFileRequest, "write_text_file"),
}

CLIENT_NOTIFICATIONS: dict[str, tuple[type[BaseModel], str]] = {
    "session/update": (SessionNotification, "session_update"),
}


class Agent(Protocol):
    """Outbound ACP surface (client -> agent)."""

    async def initialize(self, params: InitializeRequest) -> InitializeResponse: ...

    async def new_session(self, params: NewSessionRequest) -> NewSessionResponse: ...

    async def load_session(self, params: LoadSessionRequest) -> LoadSessionResponse: ...

    async def authenticate(self, params: AuthenticateRequest) -> AuthenticateResponse: ...

    async def prompt(self, params: PromptRequest) -> PromptResponse: ...

    async def cancel(self, params: CancelNotification) -> None: ...

    async def set_session_mode(self, params: SetSessionModeRequest) -> SetSessionModeResponse: ...

    async def set_session_model(
        self, params: SetSessionModelRequest
    ) -> SetSessionModelResponse: ...

    async def ext_method(self, method: str, params: dict[str, Any]) -> dict[str, Any]: ...

    async def ext_notification(self, method: str, params: dict[str, Any]) -> None: ...


def ext_method_name(method: str) -> str:
    """Extension methods travel with a leading underscore."""
    return method if method.startswith("_") else f"_{method}"


class AgentConnection:
    """Typed client -> agent calls over a JSON-RPC connection."""

    def __init__(self, rpc: JsonRpcConnection) -> None:
        self.rpc = rpc

    async def _request(self, method: str, params: BaseModel, response_type: type[Any]) -> Any:
        wire = params.model_dump(by_alias=True, exclude_none=True, mode="json")
        result = await self.rpc.send_request(method, wire)
        return response_type.model_validate(result or {})

    async def initialize(self, params: InitializeRequest) -> InitializeResponse:
        return await self._request("initialize", params, InitializeResponse)

    async def new_session(self, params: NewSessionRequest) -> NewSessionResponse:
        return await self._request("session/new", params, NewSessionResponse)

    async def load_session(self, params: LoadSessionRequest) -> LoadSessionResponse:
        return await self._request("session/load", params, LoadSessionResponse)

    async def authenticate(self, params: AuthenticateRequest) -> AuthenticateResponse:
        return await self._request("authenticate", params, AuthenticateResponse)

    async def prompt(self, params: PromptRequest) -> PromptResponse:
        return await self._request("session/prompt", params, PromptResponse)

    async def cancel(self, params: CancelNotification) -> None:
        await self.rpc.send_notification(
            "session/cancel", params.model_dump(by_alias=True, exclude_none=True, mode="json")
        )

    async def set_session_mode(self, params: SetSessionModeRequest) -> SetSessionModeResponse:
        return await self._request("session/set_mode", params, SetSessionModeResponse)

    async def set_session_model(self, params: SetSessionModelRequest) -> SetSessionModelResponse:
        return await self._request("session/set_model", params, SetSessionModelResponse)

    async def ext_method(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        result = await self.rpc.send_request(ext_method_name(method), params)
        return result if isinstance(result, dict) else {}

    async def ext_notification(self, method: str, params: dict[str, Any]) -> None:
        await self.rpc.send_notification(ext_method_name(method), params)


class ClientSideConnection:
    """Client end of an ACP connection.

    Inbound agent calls are validated against their wire types and routed to
    the matching method on ``client``. Outbound calls go through ``agent``.
    """

    def __init__(self, client: Any, streams: StreamPair) -> None:
        self.client = client
        self.rpc = JsonRpcConnection(streams.readable, streams.writable, self._dispatch)
        self.agent = AgentConnection(self.rpc)

    async def _dispatch(self, method: str, params: Any, is_notification: bool) -> Any:
        table = CLIENT_NOTIFICATIONS if is_notification else CLIENT_METHODS
        entry = table.get(method)
        if entry is None:
            log.debug("Unhandled %s %s", "notification" if is_notification else "request", method)
            raise JsonRpcError.method_not_found(method)

        params_type, handler_name = entry
        try:
            request = params_type.model_validate(params or {})
        except ValidationError as e:
            raise JsonRpcError.invalid_params({"details": str(e)}) from e

        handler = getattr(self.client, handler_name)
        try:
            result = await handler(request)
        except HandlerNotImplemented as e:
            raise JsonRpcError.method_not_found(method) from e

        if isinstance(result, BaseModel):
            return result.model_dump(by_alias=True, exclude_none=True, mode="json")
        return result

    async def close(self) -> None:
        await self.rpc.close()
