"""In-memory state container for connections, sessions and notifications."""

from __future__ import annotations

from dataclasses import dataclass

from acp_bridge.state.events import (
    ConnectionState,
    NotificationData,
    NotificationEvent,
    NotificationKind,
)
from acp_bridge.types.common import AgentCapabilities, SessionModeState


@dataclass(frozen=True)
class Connection:
    """Per-endpoint record."""

    url: str
    state: ConnectionState
    capabilities: AgentCapabilities | None = None


class AcpState:
    """Connection, session and notification state.

    Not a singleton: create one per UI (or per test) and pass it around.
    Notification logs are tuples replaced on every append, so a reader
    holding a log never sees it change underneath.

    ``connection_state`` and ``agent_capabilities`` mirror the active
    connection for single-connection callers.
    """

    def __init__(self) -> None:
        self.connections: dict[str, Connection] = {}
        self.active_connection_url: str | None = None
        self.connection_state = ConnectionState()
        self.agent_capabilities: AgentCapabilities | None = None
        self.active_session_id: str | None = None
        self.notifications: dict[str, tuple[NotificationEvent, ...]] = {}
        self.session_modes: dict[str, SessionModeState | None] = {}

    # --- Connections ---

    def set_connection(
        self,
        url: str,
        state: ConnectionState,
        capabilities: AgentCapabilities | None = None,
    ) -> None:
        previous = self.connections.get(url)
        if capabilities is None and previous is not None:
            capabilities = previous.capabilities
        self.connections = {**self.connections, url: Connection(url, state, capabilities)}
        if self.active_connection_url == url:
            self.connection_state = state
            self.agent_capabilities = capabilities

    def set_active_connection(self, url: str | None) -> None:
        self.active_connection_url = url
        active = self.connections.get(url) if url is not None else None
        self.connection_state = active.state if active is not None else ConnectionState()
        self.agent_capabilities = active.capabilities if active is not None else None

    def remove_connection(self, url: str) -> None:
        self.connections = {k: v for k, v in self.connections.items() if k != url}
        if self.active_connection_url == url:
            self.active_connection_url = None
        self.set_active_connection(self.active_connection_url)

    def set_connection_state(self, state: ConnectionState) -> None:
        self.connection_state = state
        if self.active_connection_url is not None:
            self.set_connection(self.active_connection_url, state)

    def set_agent_capabilities(self, capabilities: AgentCapabilities | None) -> None:
        self.agent_capabilities = capabilities
        if self.active_connection_url is not None:
            self.set_connection(self.active_connection_url, self.connection_state, capabilities)

    def active_connection(self) -> Connection | None:
        if self.active_connection_url is None:
            return None
        return self.connections.get(self.active_connection_url)

    def get_connection(self, url: str) -> Connection:
        return self.connections.get(url) or Connection(url, ConnectionState())

    # --- Sessions ---

    def set_active_session_id(self, session_id: str | None) -> None:
        self.active_session_id = session_id

    def set_active_mode_id(self, session_id: str, mode_id: str | None) -> None:
        previous = self.session_modes.get(session_id)
        if previous is None:
            modes = SessionModeState(current_mode_id=mode_id)
        else:
            modes = previous.model_copy(update={"current_mode_id": mode_id})
        self.session_modes = {**self.session_modes, session_id: modes}

    def set_mode_state(self, session_id: str, state: SessionModeState | None) -> None:
        self.session_modes = {**self.session_modes, session_id: state}

    def mode_state(self, session_id: str | None = None) -> SessionModeState | None:
        session_id = session_id or self.active_session_id
        return self.session_modes.get(session_id) if session_id is not None else None

    # --- Notifications ---

    def add_notification(
        self, kind: NotificationKind, data: NotificationData
    ) -> NotificationEvent | None:
        """Append an event to the active session's log.

        Returns the new event, or None when there is no active session.
        """
        session_id = self.active_session_id
        if session_id is None:
            return None
        event = NotificationEvent(kind=kind, data=data)
        log = self.notifications.get(session_id, ())
        self.notifications = {**self.notifications, session_id: (*log, event)}
        return event

    def clear_notifications(self, session_id: str | None = None) -> None:
        if session_id is None:
            self.notifications = {}
        else:
            self.notifications = {
                k: v for k, v in self.notifications.items() if k != session_id
            }

    def active_notifications(self) -> tuple[NotificationEvent, ...]:
        if self.active_session_id is None:
            return ()
        return self.notifications.get(self.active_session_id, ())

