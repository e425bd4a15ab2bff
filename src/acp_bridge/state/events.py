"""Connection state and notification event records."""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from acp_bridge.types.notifications import SessionNotification

_event_ids = itertools.count(1)


def next_event_id() -> str:
    """Return ``"<epoch-ms>-<n>"``, unique within this process."""
    return f"{int(time.time() * 1000)}-{next(_event_ids)}"


class ConnectionStatus(str, Enum):
    """Lifecycle status of one endpoint."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    ERROR = "error"


@dataclass(frozen=True)
class ConnectionState:
    """Snapshot of an endpoint's connection status."""

    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    error: str | None = None
    url: str | None = None


class NotificationKind(str, Enum):
    """Coarse kind of a logged event."""

    SESSION_NOTIFICATION = "session_notification"
    CONNECTION_CHANGE = "connection_change"
    ERROR = "error"


NotificationData = Union[SessionNotification, ConnectionState, BaseException]


@dataclass(frozen=True)
class NotificationEvent:
    """One entry in a session's notification log. Never mutated."""

    kind: NotificationKind
    data: NotificationData
    id: str = field(default_factory=next_event_id)
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    @property
    def session_update(self) -> str | None:
        """The update subtype for session notifications, else None."""
        if self.kind is NotificationKind.SESSION_NOTIFICATION and isinstance(
            self.data, SessionNotification
        ):
            return self.data.update.session_update
        return None
