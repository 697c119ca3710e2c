"""
mcpagent.mcp.models - Tool Orchestration Data Models

Core data models shared by the provider client, the extractor and the
conversation engine: provider descriptors, tools, tool-call requests,
provider results and the per-call state machine.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from mcpagent.exceptions import InvalidToolCallTransition


class TransportKind(str, Enum):
    """Transport used to reach a tool provider."""

    STDIO = "stdio"
    SSE = "sse"
    STREAMABLE_HTTP = "streamableHttp"


class ReconnectPolicy(BaseModel):
    """Connect retry policy for a provider."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    enabled: bool = Field(default=False, description="Whether failed connects are retried")
    max_attempts: int = Field(
        default=3, ge=0, alias="maxAttempts", description="Retries after the first attempt"
    )
    delay_ms: int = Field(
        default=1000, ge=0, alias="delayMs", description="Initial delay between attempts"
    )


class ProviderDescriptor(BaseModel):
    """
    Typed, immutable connection descriptor for one tool provider.

    Example:
        >>> descriptor = ProviderDescriptor(
        ...     id="server-0",
        ...     name="MCP Server 1",
        ...     transport=TransportKind.STREAMABLE_HTTP,
        ...     url="http://localhost:8000/mcp",
        ... )
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Provider identifier, unique per session")
    name: str = Field(..., description="Human-readable provider name")
    transport: TransportKind

    # stdio
    command: str | None = None
    args: list[str] = Field(default_factory=list)
    env: dict[str, str] | None = None

    # sse / streamableHttp
    url: str | None = None
    headers: dict[str, str] | None = None

    reconnect: ReconnectPolicy = Field(default_factory=ReconnectPolicy)

    @property
    def endpoint(self) -> str:
        """Human-readable location of the provider (url or command)."""
        if self.transport == TransportKind.STDIO:
            return " ".join([self.command or "", *self.args]).strip()
        return self.url or self.id


class Tool(BaseModel):
    """
    A callable capability exposed by a connected provider.

    ``id`` is unique across all providers of a session and is the name the
    model must use in a tool-use block.
    """

    id: str = Field(..., description="Globally unique tool id ('{provider_id}.{name}')")
    name: str = Field(..., description="Tool name as known to its provider")
    provider_id: str
    provider_name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict)


class ToolCallRequest(BaseModel):
    """A tool invocation extracted from model output."""

    id: str = Field(..., description="Sequence id for correlating with its state")
    tool: Tool
    arguments: Any = Field(
        default=None, description="Parsed JSON arguments, or the raw string if unparsable"
    )
    raw_text: str = Field(default="", description="The full matched tool-use block")

    @property
    def tool_id(self) -> str:
        return self.tool.id


class ToolResultContent(BaseModel):
    """One content item of a provider's tool result."""

    type: str = "text"
    text: str | None = None
    data: str | None = None
    mime_type: str | None = None


class ToolCallResult(BaseModel):
    """A provider's reply to a tool call."""

    content: list[ToolResultContent] = Field(default_factory=list)
    is_error: bool = False

    @property
    def text_items(self) -> list[str]:
        return [item.text for item in self.content if item.type == "text" and item.text]


class ToolCallStatus(str, Enum):
    """Lifecycle of a single tool call within a turn."""

    PENDING = "pending"
    INVOKING = "invoking"
    DONE = "done"
    ERROR = "error"


_ALLOWED_TRANSITIONS = {
    ToolCallStatus.PENDING: {ToolCallStatus.INVOKING},
    ToolCallStatus.INVOKING: {ToolCallStatus.DONE, ToolCallStatus.ERROR},
    ToolCallStatus.DONE: set(),
    ToolCallStatus.ERROR: set(),
}


class ToolCallState(BaseModel):
    """
    State of one extracted tool call: pending -> invoking -> done | error.

    A list of these is "this turn's tool activity" and is what progress
    observers receive.
    """

    id: str
    tool: Tool
    arguments: Any = None
    status: ToolCallStatus = ToolCallStatus.PENDING
    result: str | None = None
    error: str | None = None
    response: ToolCallResult | None = None

    @classmethod
    def from_request(cls, request: ToolCallRequest) -> "ToolCallState":
        return cls(id=request.id, tool=request.tool, arguments=request.arguments)

    @property
    def is_settled(self) -> bool:
        return self.status in (ToolCallStatus.DONE, ToolCallStatus.ERROR)

    def _transition(self, target: ToolCallStatus) -> None:
        if target not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidToolCallTransition(
                f"Tool call {self.id}: cannot move from {self.status.value} to {target.value}"
            )
        self.status = target

    def mark_invoking(self) -> None:
        self._transition(ToolCallStatus.INVOKING)

    def mark_done(self, result: str) -> None:
        self._transition(ToolCallStatus.DONE)
        self.result = result
        self.response = ToolCallResult(content=[ToolResultContent(type="text", text=result)])

    def mark_error(self, message: str) -> None:
        self._transition(ToolCallStatus.ERROR)
        self.error = message
        self.response = ToolCallResult(
            content=[ToolResultContent(type="text", text=message)],
            is_error=True,
        )
