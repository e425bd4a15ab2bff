"""Common ACP types shared across requests, responses and notifications."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class AcpModel(BaseModel):
    """Base model for ACP types.

    Fields are snake_case in Python and camelCase on the wire. Unknown fields
    are kept so newer agents round-trip without loss.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def to_wire(self) -> dict[str, Any]:
        """Serialize with wire (camelCase) names, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class TextContent(AcpModel):
    """Text content block."""

    type: Literal["text"] = "text"
    text: str


class ImageContent(AcpModel):
    """Base64 image content block."""

    type: Literal["image"] = "image"
    data: str
    mime_type: str = Field(alias="mimeType")
    uri: str | None = None


class ResourceLink(AcpModel):
    """Reference to a resource the agent can fetch."""

    type: Literal["resource_link"] = "resource_link"
    uri: str
    name: str
    mime_type: str | None = Field(default=None, alias="mimeType")


ContentBlock = TextContent | ImageContent | ResourceLink | dict[str, Any]


class FileSystemCapability(AcpModel):
    """Filesystem capabilities offered by the client."""

    read_text_file: bool = Field(default=False, alias="readTextFile")
    write_text_file: bool = Field(default=False, alias="writeTextFile")


class ClientCapabilities(AcpModel):
    """Client capabilities sent during initialization."""

    fs: FileSystemCapability = Field(default_factory=FileSystemCapability)
    terminal: bool = False


class PromptCapabilities(AcpModel):
    """Prompt content capabilities."""

    image: bool = False
    audio: bool = False
    embedded_context: bool = Field(default=False, alias="embeddedContext")


class McpCapabilities(AcpModel):
    """MCP transports the agent can connect to."""

    http: bool = False
    sse: bool = False


class AgentCapabilities(AcpModel):
    """Agent capabilities advertised during initialization."""

    load_session: bool = Field(default=False, alias="loadSession")
    prompt_capabilities: PromptCapabilities = Field(
        default_factory=PromptCapabilities, alias="promptCapabilities"
    )
    mcp_capabilities: McpCapabilities = Field(
        default_factory=McpCapabilities, alias="mcpCapabilities"
    )


class Implementation(AcpModel):
    """Client or agent identification."""

    name: str
    title: str | None = None
    version: str | None = None


class AuthMethod(AcpModel):
    """Authentication method advertised by the agent."""

    id: str
    name: str
    description: str | None = None


class SessionMode(AcpModel):
    """Operating mode information."""

    id: str
    name: str
    description: str | None = None


class SessionModeState(AcpModel):
    """Available modes and the one currently active."""

    current_mode_id: str | None = Field(default=None, alias="currentModeId")
    available_modes: list[SessionMode] = Field(default_factory=list, alias="availableModes")


class ModelInfo(AcpModel):
    """Model information."""

    model_id: str = Field(alias="modelId")
    name: str
    description: str | None = None


class SessionModelState(AcpModel):
    """Available models and the one currently selected."""

    current_model_id: str | None = Field(default=None, alias="currentModelId")
    available_models: list[ModelInfo] = Field(default_factory=list, alias="availableModels")


class ToolCallStatus(str, Enum):
    """Status of a tool call."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class ToolCallLocation(AcpModel):
    """File location a tool call touches."""

    path: str
    line: int | None = None


class ToolCall(AcpModel):
    """Tool call information attached to permission requests."""

    tool_call_id: str = Field(alias="toolCallId")
    title: str | None = None
    kind: str | None = None
    status: ToolCallStatus | None = None
    content: list[dict[str, Any]] | None = None
    locations: list[ToolCallLocation] | None = None
    raw_input: Any = Field(default=None, alias="rawInput")
    raw_output: Any = Field(default=None, alias="rawOutput")


class PermissionOptionKind(str, Enum):
    """Permission option kinds."""

    ALLOW_ONCE = "allow_once"
    ALLOW_ALWAYS = "allow_always"
    REJECT_ONCE = "reject_once"
    REJECT_ALWAYS = "reject_always"


class PermissionOption(AcpModel):
    """Permission option presented to the user."""

    option_id: str = Field(alias="optionId")
    kind: PermissionOptionKind
    name: str


class PlanEntry(AcpModel):
    """Entry in an execution plan."""

    content: str
    priority: str | None = None
    status: str | None = None


class AvailableCommand(AcpModel):
    """Slash command advertised by the agent."""

    name: str
    description: str | None = None


class McpServer(AcpModel):
    """MCP server the agent should connect to for a session."""

    name: str
    command: str | None = None
    args: list[str] = Field(default_factory=list)
    env: list[dict[str, str]] = Field(default_factory=list)
    url: str | None = None
    headers: list[dict[str, str]] = Field(default_factory=list)
