"""Connection, session and notification state."""

from acp_bridge.state.aggregate import (
    InvariantError,
    group_notifications,
    merge_tool_calls,
    tool_call_updates,
)
from acp_bridge.state.events import (
    ConnectionState,
    ConnectionStatus,
    NotificationEvent,
    NotificationKind,
)
from acp_bridge.state.store import AcpState, Connection

__all__ = [
    "AcpState",
    "Connection",
    "ConnectionState",
    "ConnectionStatus",
    "InvariantError",
    "NotificationEvent",
    "NotificationKind",
    "group_notifications",
    "merge_tool_calls",
    "tool_call_updates",
]
