"""
mcpagent.skill.models - Skill input, configuration and result models.
"""

from pydantic import BaseModel, Field

from mcpagent.llm.models import Message


class SkillConfig(BaseModel):
    """Per-invocation configuration of the MCP agent skill."""

    mcp_server_urls: str = Field(
        default="", description="Comma-separated list of MCP server endpoints"
    )
    auto_connect: bool = Field(
        default=True, description="Connect to the configured servers on each invocation"
    )
    model_temperature: float = Field(
        default=0.2, ge=0.0, le=1.0, description="Sampling temperature for model calls"
    )


class SkillInput(BaseModel):
    """A user query with optional images and context."""

    query: str = Field(..., min_length=1)
    images: list[str] = Field(default_factory=list, description="Image URLs")
    context: str | None = None


class ConnectionSummary(BaseModel):
    """Outcome of connecting a session's providers."""

    total: int = 0
    connected: int = 0
    failed: int = 0
    tool_count: int = 0
    connected_providers: list[str] = Field(default_factory=list)
    failed_providers: list[str] = Field(default_factory=list)


class SkillResult(BaseModel):
    """Answer produced by one skill invocation."""

    session_id: str
    answer: str
    used_tools: bool = False
    fallback_reason: str | None = Field(
        default=None, description="Why the direct-answer path ran, if it did"
    )
    connection: ConnectionSummary | None = None
    messages: list[Message] = Field(
        default_factory=list, description="Final tool-loop history when tools were used"
    )
