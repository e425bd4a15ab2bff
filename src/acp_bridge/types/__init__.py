"""Pydantic models for the ACP wire format."""

from acp_bridge.types.common import (
    AcpModel,
    AgentCapabilities,
    ClientCapabilities,
    ContentBlock,
    FileSystemCapability,
    Implementation,
    PermissionOption,
    PermissionOptionKind,
    SessionModeState,
    TextContent,
    ToolCall,
    ToolCallLocation,
    ToolCallStatus,
)
from acp_bridge.types.notifications import (
    CancelNotification,
    SessionNotification,
    SessionUpdate,
    SessionUpdateKind,
)
from acp_bridge.types.requests import (
    PROTOCOL_VERSION,
    AuthenticateRequest,
    IdentifiedPermissionRequest,
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
    PermissionOutcome,
    PromptResponse,
    ReadTextFileResponse,
    RequestPermissionResponse,
    SetSessionModelResponse,
    SetSessionModeResponse,
    StopReason,
    WriteTextFileResponse,
)

__all__ = [
    "PROTOCOL_VERSION",
    "AcpModel",
    "AgentCapabilities",
    "AuthenticateRequest",
    "AuthenticateResponse",
    "CancelNotification",
    "ClientCapabilities",
    "ContentBlock",
    "FileSystemCapability",
    "IdentifiedPermissionRequest",
    "Implementation",
    "InitializeRequest",
    "InitializeResponse",
    "LoadSessionRequest",
    "LoadSessionResponse",
    "NewSessionRequest",
    "NewSessionResponse",
    "PermissionOption",
    "PermissionOptionKind",
    "PermissionOutcome",
    "PromptRequest",
    "PromptResponse",
    "ReadTextFileRequest",
    "ReadTextFileResponse",
    "RequestPermissionRequest",
    "RequestPermissionResponse",
    "SessionModeState",
    "SessionNotification",
    "SessionUpdate",
    "SessionUpdateKind",
    "SetSessionModeRequest",
    "SetSessionModeResponse",
    "SetSessionModelRequest",
    "SetSessionModelResponse",
    "StopReason",
    "TextContent",
    "ToolCall",
    "ToolCallLocation",
    "ToolCallStatus",
    "WriteTextFileRequest",
    "WriteTextFileResponse",
]
