"""Transport layer: socket bridge, reconnecting WebSocket, JSON-RPC framing."""

from acp_bridge.transport.jsonrpc import JsonRpcConnection, JsonRpcMessage
from acp_bridge.transport.streams import (
    ReadableSocketStream,
    Socket,
    SocketBridge,
    StreamPair,
    WebSocketSocket,
    WritableSocketStream,
)
from acp_bridge.transport.websocket import (
    MultiWebSocketTransport,
    WebSocketTransport,
    open_websocket,
)

__all__ = [
    "JsonRpcConnection",
    "JsonRpcMessage",
    "MultiWebSocketTransport",
    "ReadableSocketStream",
    "Socket",
    "SocketBridge",
    "StreamPair",
    "WebSocketSocket",
    "WebSocketTransport",
    "WritableSocketStream",
    "open_websocket",
]
