"""ACP response types."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import Field

from acp_bridge.types.common import (
    AcpModel,
    AgentCapabilities,
    AuthMethod,
    Implementation,
    SessionModelState,
    SessionModeState,
)

# === Agent Method Responses ===


class InitializeResponse(AcpModel):
    """Initialize response from agent."""

    protocol_version: int = Field(alias="protocolVersion")
    agent_capabilities: AgentCapabilities = Field(
        default_factory=AgentCapabilities, alias="agentCapabilities"
    )
    agent_info: Implementation | None = Field(default=None, alias="agentInfo")
    auth_methods: list[AuthMethod] = Field(default_factory=list, alias="authMethods")


class AuthenticateResponse(AcpModel):
    """Authenticate response (empty on success)."""


class NewSessionResponse(AcpModel):
    """New session response."""

    session_id: str = Field(alias="sessionId")
    modes: SessionModeState | None = None
    models: SessionModelState | None = None


class LoadSessionResponse(AcpModel):
    """Load session response.

    The session id is the one that was requested; agents do not echo it.
    """

    modes: SessionModeState | None = None
    models: SessionModelState | None = None


class StopReason(str, Enum):
    """Prompt stop reasons."""

    END_TURN = "end_turn"
    MAX_TOKENS = "max_tokens"
    MAX_TURN_REQUESTS = "max_turn_requests"
    REFUSAL = "refusal"
    CANCELLED = "cancelled"


class PromptResponse(AcpModel):
    """Prompt response."""

    stop_reason: StopReason = Field(alias="stopReason")


class SetSessionModeResponse(AcpModel):
    """Set mode response (empty on success)."""


class SetSessionModelResponse(AcpModel):
    """Set model response (empty on success)."""


# === Client Method Responses ===


class PermissionOutcome(AcpModel):
    """Permission decision outcome."""

    outcome: Literal["selected", "cancelled"]
    option_id: str | None = Field(default=None, alias="optionId")


class RequestPermissionResponse(AcpModel):
    """Permission response from client."""

    outcome: PermissionOutcome

    @classmethod
    def selected(cls, option_id: str) -> RequestPermissionResponse:
        return cls(outcome=PermissionOutcome(outcome="selected", option_id=option_id))

    @classmethod
    def cancelled(cls) -> RequestPermissionResponse:
        return cls(outcome=PermissionOutcome(outcome="cancelled"))


class ReadTextFileResponse(AcpModel):
    """Read file response."""

    content: str


class WriteTextFileResponse(AcpModel):
    """Write file response (empty on success)."""
