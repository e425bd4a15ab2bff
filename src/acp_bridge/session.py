"""Session controller: one endpoint wired into an ``AcpState``.

Connection changes, transport errors, RPC errors and session updates all
land in the active session's notification log. Session and mode changes made
through ``agent`` are mirrored into the state as their responses arrive.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from acp_bridge.client.acp_client import (
    AcpClient,
    AcpClientOptions,
    ReadTextFileHandler,
    WriteTextFileHandler,
)
from acp_bridge.client.connection import ClientSideConnection
from acp_bridge.client.instrumented import AgentMethod, CallHooks, InstrumentedAgent
from acp_bridge.errors import JsonRpcError
from acp_bridge.logging import get_logger
from acp_bridge.state.events import (
    ConnectionState,
    ConnectionStatus,
    NotificationEvent,
    NotificationKind,
)
from acp_bridge.state.store import AcpState
from acp_bridge.transport.streams import StreamPair
from acp_bridge.transport.websocket import (
    DEFAULT_RECONNECT_ATTEMPTS,
    DEFAULT_RECONNECT_DELAY,
    Connector,
    WebSocketTransport,
    open_websocket,
)
from acp_bridge.types.notifications import SessionNotification, SessionUpdate, SessionUpdateKind
from acp_bridge.types.requests import (
    IdentifiedPermissionRequest,
    LoadSessionRequest,
    PromptRequest,
    SetSessionModeRequest,
)
from acp_bridge.types.responses import (
    InitializeResponse,
    LoadSessionResponse,
    NewSessionResponse,
    RequestPermissionResponse,
)

log = get_logger("session")


class AcpSessionClient:
    """Connects to one agent endpoint and keeps ``state`` up to date.

    Usage:
        session = AcpSessionClient("ws://localhost:8080", on_request_permission=ask_user)
        await session.connect()
        await session.agent.initialize(InitializeRequest())
        await session.agent.new_session(NewSessionRequest(cwd="."))
    """

    def __init__(
        self,
        url: str,
        state: AcpState | None = None,
        reconnect_attempts: int = DEFAULT_RECONNECT_ATTEMPTS,
        reconnect_delay: float = DEFAULT_RECONNECT_DELAY,
        connector: Connector = open_websocket,
        read_text_file: ReadTextFileHandler | None = None,
        write_text_file: WriteTextFileHandler | None = None,
        on_request_permission: Callable[[IdentifiedPermissionRequest], None] | None = None,
        initial_session_id: str | None = None,
    ) -> None:
        self.url = url
        self.state = state if state is not None else AcpState()
        self.reconnect_attempts = reconnect_attempts
        self.reconnect_delay = reconnect_delay
        self._connector = connector
        self._read_text_file = read_text_file
        self._write_text_file = write_text_file
        self._on_request_permission = on_request_permission

        self._transport: WebSocketTransport | None = None
        self._connection: ClientSideConnection | None = None
        self._client: AcpClient | None = None
        self._streams: StreamPair | None = None
        self.agent: InstrumentedAgent | None = None
        self.pending_permission: IdentifiedPermissionRequest | None = None
        self._retiring: set[asyncio.Task[None]] = set()

        if initial_session_id:
            self.state.set_active_session_id(initial_session_id)

    # --- Connection ---

    @property
    def connection_state(self) -> ConnectionState:
        return self.state.connection_state

    @property
    def client(self) -> AcpClient | None:
        return self._client

    async def connect(self) -> None:
        """Open the endpoint. Does nothing when already connecting or connected."""
        status = self.state.connection_state.status
        if self._transport is not None or status in (
            ConnectionStatus.CONNECTING,
            ConnectionStatus.CONNECTED,
        ):
            return

        self.state.set_active_connection(self.url)
        transport = WebSocketTransport(
            self.url,
            on_state_change=self._handle_connection_state,
            on_error=self._handle_error,
            reconnect_attempts=self.reconnect_attempts,
            reconnect_delay=self.reconnect_delay,
            connector=self._connector,
        )
        self._transport = transport
        try:
            streams = await transport.connect()
        except BaseException:
            # The caller decides whether to retry
            await transport.disconnect()
            self._transport = None
            raise
        self._attach(streams)

    def _attach(self, streams: StreamPair) -> None:
        self._retire()
        self._streams = streams
        self._client = AcpClient(
            AcpClientOptions(
                on_request_permission=self._handle_request_permission,
                on_session_notification=self._handle_session_notification,
                read_text_file=self._read_text_file,
                write_text_file=self._write_text_file,
            )
        )
        self._connection = ClientSideConnection(self._client, streams)
        self.agent = InstrumentedAgent(self._connection.agent, self._build_hooks())
        self.pending_permission = None
        log.debug("Attached ACP connection to %s", self.url)

    def _retire(self) -> None:
        """Settle what the previous connection still owes and close it."""
        if self._client is not None:
            cancelled = self._client.cancel_pending_permissions()
            if cancelled:
                log.info("Cancelled %d permission request(s) from the lost connection", cancelled)
        if self._connection is not None:
            task = asyncio.create_task(self._connection.close())
            self._retiring.add(task)
            task.add_done_callback(self._retiring.discard)

    async def disconnect(self) -> None:
        """Cancel pending permissions and close the connection."""
        if self._client is not None:
            self._client.cancel_pending_permissions()
        if self._connection is not None:
            await self._connection.close()
        transport, self._transport = self._transport, None
        if transport is not None:
            await transport.disconnect()
        if self._retiring:
            await asyncio.gather(*list(self._retiring))
        self._connection = None
        self._client = None
        self._streams = None
        self.agent = None
        self.pending_permission = None

    # --- Notifications ---

    @property
    def notifications(self) -> tuple[NotificationEvent, ...]:
        return self.state.active_notifications()

    def clear_notifications(self, session_id: str | None = None) -> None:
        self.state.clear_notifications(session_id)

    # --- Permissions ---

    def resolve_permission(self, response: RequestPermissionResponse) -> None:
        pending, self.pending_permission = self.pending_permission, None
        if pending is not None and self._client is not None:
            self._client.resolve_permission(pending.deferred_id, response)

    def reject_permission(self, error: BaseException) -> None:
        pending, self.pending_permission = self.pending_permission, None
        if pending is not None and self._client is not None:
            self._client.reject_permission(pending.deferred_id, error)

    # --- Sinks ---

    def _handle_connection_state(self, state: ConnectionState) -> None:
        self.state.set_connection_state(state)
        self.state.add_notification(NotificationKind.CONNECTION_CHANGE, state)

        transport = self._transport
        if (
            state.status is ConnectionStatus.CONNECTED
            and self._connection is not None
            and transport is not None
            and transport.streams is not None
            and transport.streams is not self._streams
        ):
            # Auto-reconnect produced a fresh socket; the agent must be
            # initialized again on it.
            log.info("Reconnected to %s", self.url)
            self._attach(transport.streams)

    def _handle_error(self, error: Exception) -> None:
        self.state.add_notification(NotificationKind.ERROR, error)

    def _handle_session_notification(self, notification: SessionNotification) -> None:
        self.state.add_notification(NotificationKind.SESSION_NOTIFICATION, notification)
        update = notification.update
        if update.session_update == SessionUpdateKind.CURRENT_MODE.value and update.current_mode_id:
            self.state.set_active_mode_id(notification.session_id, update.current_mode_id)

    def _handle_request_permission(self, request: IdentifiedPermissionRequest) -> None:
        self.pending_permission = request
        if self._on_request_permission is not None:
            self._on_request_permission(request)

    # --- Hooks ---

    def _build_hooks(self) -> CallHooks:
        return (
            CallHooks(on_rpc_error=self._on_rpc_error)
            .on(AgentMethod.INITIALIZE, response=self._on_initialize)
            .on(AgentMethod.NEW_SESSION, response=self._on_new_session)
            .on(AgentMethod.LOAD_SESSION, response=self._on_load_session)
            .on(AgentMethod.SET_SESSION_MODE, response=self._on_set_session_mode)
            .on(AgentMethod.PROMPT, start=self._on_prompt_start)
        )

    def _on_rpc_error(self, error: JsonRpcError) -> None:
        self.state.add_notification(NotificationKind.ERROR, error)

    def _on_initialize(self, response: InitializeResponse, request: Any) -> None:
        self.state.set_agent_capabilities(response.agent_capabilities)

    def _on_new_session(self, response: NewSessionResponse, request: Any) -> None:
        self.state.set_active_session_id(response.session_id)
        self.state.set_mode_state(response.session_id, response.modes)

    def _on_load_session(self, response: LoadSessionResponse, request: LoadSessionRequest) -> None:
        self.state.set_active_session_id(request.session_id)
        self.state.set_mode_state(request.session_id, response.modes)

    def _on_set_session_mode(self, response: Any, request: SetSessionModeRequest) -> None:
        self.state.set_active_mode_id(request.session_id, request.mode_id)

    def _on_prompt_start(self, request: PromptRequest) -> None:
        for block in request.prompt:
            self.state.add_notification(
                NotificationKind.SESSION_NOTIFICATION,
                SessionNotification(
                    session_id=request.session_id,
                    update=SessionUpdate(
                        session_update=SessionUpdateKind.USER_MESSAGE_CHUNK.value,
                        content=block,
                    ),
                ),
            )
