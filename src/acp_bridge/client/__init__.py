"""ACP client side: inbound handlers, outbound connection, instrumentation."""

from acp_bridge.client.acp_client import AcpClient, AcpClientOptions
from acp_bridge.client.connection import AgentConnection, ClientSideConnection
from acp_bridge.client.fs import LocalFileSystem
from acp_bridge.client.instrumented import (
    AgentMethod,
    CallHooks,
    ExtRequest,
    InstrumentedAgent,
    MethodHooks,
)

__all__ = [
    "AcpClient",
    "AcpClientOptions",
    "AgentConnection",
    "AgentMethod",
    "CallHooks",
    "ClientSideConnection",
    "ExtRequest",
    "InstrumentedAgent",
    "LocalFileSystem",
    "MethodHooks",
]
