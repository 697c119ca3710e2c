"""
mcpagent.settings - Centralized Configuration

Single source of truth for all mcpagent configuration.
Loads from .env files and environment variables using pydantic-settings.

Usage:
    >>> from mcpagent.settings import get_settings
    >>> settings = get_settings()
    >>> settings.mcp_tool_timeout_seconds
    60.0

    >>> llm_config = settings.build_llm_config()
    >>> skill_config = settings.build_skill_config()
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from mcpagent.llm.config import LLMConfig
from mcpagent.skill.models import SkillConfig


class MCPAgentSettings(BaseSettings):
    """Centralized mcpagent configuration loaded from .env / environment variables.

    All MCPAGENT_* prefixed env vars are loaded automatically.
    API keys use standard names (no prefix) via aliases.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MCPAGENT_",
        extra="ignore",
        populate_by_name=True,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- LLM Defaults ----------------------------------------------------------
    llm_primary_model: str = "claude-sonnet-4"
    llm_fallback_model: str | None = "gpt-4o"
    llm_temperature: float = 0.7
    llm_max_tokens: int = 4096
    llm_timeout_seconds: int = 60
    llm_enable_cost_tracking: bool = True

    # -- API Keys (standard names via alias, no MCPAGENT_ prefix) --------------
    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")

    # -- Tool orchestration ----------------------------------------------------
    # Comma-separated list of MCP server endpoints
    mcp_server_urls: str = ""
    mcp_auto_connect: bool = True
    mcp_model_temperature: float = Field(default=0.2, ge=0.0, le=1.0)

    # Per-operation timeouts
    mcp_connect_timeout_seconds: float = 30.0
    mcp_tool_timeout_seconds: float = 60.0
    mcp_model_timeout_seconds: float = 120.0

    # Capacity of the progress event channel
    progress_queue_size: int = 100

    # -- Helpers ---------------------------------------------------------------

    def has_llm_credentials(self) -> bool:
        """Return True if at least one LLM provider is configured."""
        return bool(self.anthropic_api_key or self.openai_api_key)

    def build_llm_config(self) -> LLMConfig:
        """Build an LLMConfig from server-level settings."""
        return LLMConfig(
            primary_model=self.llm_primary_model,
            fallback_model=self.llm_fallback_model,
            anthropic_api_key=self.anthropic_api_key,
            openai_api_key=self.openai_api_key,
            temperature=self.llm_temperature,
            max_tokens=self.llm_max_tokens,
            timeout_seconds=self.llm_timeout_seconds,
            enable_cost_tracking=self.llm_enable_cost_tracking,
        )

    def build_skill_config(self) -> SkillConfig:
        """Build the default per-invocation skill configuration."""
        return SkillConfig(
            mcp_server_urls=self.mcp_server_urls,
            auto_connect=self.mcp_auto_connect,
            model_temperature=self.mcp_model_temperature,
        )


# ---------------------------------------------------------------------------
# Singleton accessor
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_settings() -> MCPAgentSettings:
    """Return the cached MCPAgentSettings singleton."""
    return MCPAgentSettings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for tests)."""
    get_settings.cache_clear()
