"""ACP notification types."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from acp_bridge.types.common import (
    AcpModel,
    AvailableCommand,
    ContentBlock,
    PlanEntry,
    ToolCallLocation,
    ToolCallStatus,
)


class CancelNotification(AcpModel):
    """Cancel in-progress prompt notification."""

    session_id: str = Field(alias="sessionId")


class SessionUpdateKind(str, Enum):
    """Session update discriminator values."""

    USER_MESSAGE_CHUNK = "user_message_chunk"
    AGENT_MESSAGE_CHUNK = "agent_message_chunk"
    AGENT_THOUGHT_CHUNK = "agent_thought_chunk"
    TOOL_CALL = "tool_call"
    TOOL_CALL_UPDATE = "tool_call_update"
    PLAN = "plan"
    AVAILABLE_COMMANDS = "available_commands_update"
    CURRENT_MODE = "current_mode_update"


TOOL_CALL_KINDS = frozenset(
    {SessionUpdateKind.TOOL_CALL.value, SessionUpdateKind.TOOL_CALL_UPDATE.value}
)


class SessionUpdate(AcpModel):
    """Session update payload (polymorphic based on session_update field).

    Kept as a plain string discriminator so update kinds added by newer
    agents still parse.
    """

    session_update: str = Field(alias="sessionUpdate")

    # *_message_chunk / agent_thought_chunk carry one block; tool calls a list
    content: ContentBlock | list[dict[str, Any]] | None = None

    # tool_call / tool_call_update
    tool_call_id: str | None = Field(default=None, alias="toolCallId")
    title: str | None = None
    kind: str | None = None
    status: ToolCallStatus | None = None
    locations: list[ToolCallLocation] | None = None
    raw_input: Any = Field(default=None, alias="rawInput")
    raw_output: Any = Field(default=None, alias="rawOutput")

    # plan
    entries: list[PlanEntry] | None = None

    # current_mode_update
    current_mode_id: str | None = Field(default=None, alias="currentModeId")

    # available_commands_update
    available_commands: list[AvailableCommand] | None = Field(
        default=None, alias="availableCommands"
    )

    @property
    def is_tool_call(self) -> bool:
        return self.session_update in TOOL_CALL_KINDS


class SessionNotification(AcpModel):
    """session/update notification params."""

    session_id: str = Field(alias="sessionId")
    update: SessionUpdate
