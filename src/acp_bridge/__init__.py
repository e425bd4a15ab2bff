"""acp-bridge - Agent Client Protocol client over WebSocket."""

from acp_bridge.client.acp_client import AcpClient, AcpClientOptions
from acp_bridge.client.instrumented import AgentMethod, CallHooks, InstrumentedAgent
from acp_bridge.deferred import Deferred
from acp_bridge.errors import JsonRpcError, to_json_rpc_error
from acp_bridge.session import AcpSessionClient
from acp_bridge.state.aggregate import group_notifications, merge_tool_calls
from acp_bridge.state.store import AcpState
from acp_bridge.transport.websocket import MultiWebSocketTransport, WebSocketTransport

__all__ = [
    "AcpClient",
    "AcpClientOptions",
    "AcpSessionClient",
    "AcpState",
    "AgentMethod",
    "CallHooks",
    "Deferred",
    "InstrumentedAgent",
    "JsonRpcError",
    "MultiWebSocketTransport",
    "WebSocketTransport",
    "group_notifications",
    "merge_tool_calls",
    "to_json_rpc_error",
]

__version__ = "0.1.0"
