"""ACP request types (Client → Agent and Agent → Client)."""

from __future__ import annotations

from pydantic import Field

from acp_bridge.types.common import (
    AcpModel,
    ClientCapabilities,
    ContentBlock,
    Implementation,
    McpServer,
    PermissionOption,
    ToolCall,
)

PROTOCOL_VERSION = 1

# === Agent Methods (Client → Agent) ===


class InitializeRequest(AcpModel):
    """Initialize request from client to agent."""

    protocol_version: int = Field(default=PROTOCOL_VERSION, alias="protocolVersion")
    client_capabilities: ClientCapabilities = Field(
        default_factory=ClientCapabilities, alias="clientCapabilities"
    )
    client_info: Implementation | None = Field(default=None, alias="clientInfo")


class AuthenticateRequest(AcpModel):
    """Authenticate using one of the agent's advertised methods."""

    method_id: str = Field(alias="methodId")


class NewSessionRequest(AcpModel):
    """Create new session request."""

    cwd: str
    mcp_servers: list[McpServer] = Field(default_factory=list, alias="mcpServers")


class LoadSessionRequest(AcpModel):
    """Resume an existing session."""

    session_id: str = Field(alias="sessionId")
    cwd: str
    mcp_servers: list[McpServer] = Field(default_factory=list, alias="mcpServers")


class PromptRequest(AcpModel):
    """Send prompt to agent."""

    session_id: str = Field(alias="sessionId")
    prompt: list[ContentBlock]


class SetSessionModeRequest(AcpModel):
    """Set session mode request."""

    session_id: str = Field(alias="sessionId")
    mode_id: str = Field(alias="modeId")


class SetSessionModelRequest(AcpModel):
    """Set session model request."""

    session_id: str = Field(alias="sessionId")
    model_id: str = Field(alias="modelId")


# === Client Methods (Agent → Client) ===


class RequestPermissionRequest(AcpModel):
    """Request permission from the user."""

    session_id: str = Field(alias="sessionId")
    tool_call: ToolCall = Field(alias="toolCall")
    options: list[PermissionOption]


class IdentifiedPermissionRequest(RequestPermissionRequest):
    """Permission request tagged with the local correlation id."""

    deferred_id: str = Field(alias="deferredId")


class ReadTextFileRequest(AcpModel):
    """Read file content request."""

    session_id: str = Field(alias="sessionId")
    path: str
    line: int | None = None
    limit: int | None = None


class WriteTextFileRequest(AcpModel):
    """Write file content request."""

    session_id: str = Field(alias="sessionId")
    path: str
    content: str
