"""
Model routing configuration for the LLM service.

Models are named either by a short alias from ``MODELS`` or by a raw provider
model id (``claude-*`` routes to Anthropic, ``gpt-*`` / ``o1*`` / ``o3*`` /
``o4*`` to OpenAI).
"""

from pydantic import BaseModel, Field

from mcpagent.llm.models import LLMProvider, ModelSpec

# Known aliases with pricing
MODELS: dict[str, ModelSpec] = {
    "claude-sonnet-4": ModelSpec(
        provider=LLMProvider.ANTHROPIC,
        model_id="claude-sonnet-4-20250514",
        input_cost_per_1m=3.00,
        output_cost_per_1m=15.00,
    ),
    "gpt-4o": ModelSpec(
        provider=LLMProvider.OPENAI,
        model_id="gpt-4o",
        input_cost_per_1m=2.50,
        output_cost_per_1m=10.00,
    ),
    "gpt-4o-mini": ModelSpec(
        provider=LLMProvider.OPENAI,
        model_id="gpt-4o-mini",
        input_cost_per_1m=0.15,
        output_cost_per_1m=0.60,
    ),
}

_OPENAI_PREFIXES = ("gpt-", "o1", "o3", "o4")


def resolve_model(name: str) -> ModelSpec:
    """
    Resolve a configured model name to a ``ModelSpec``.

    Raises:
        ValueError: If the name is neither a known alias nor a recognizable model id
    """
    if name in MODELS:
        return MODELS[name]
    if name.startswith("claude-"):
        return ModelSpec(provider=LLMProvider.ANTHROPIC, model_id=name)
    if name.startswith(_OPENAI_PREFIXES):
        return ModelSpec(provider=LLMProvider.OPENAI, model_id=name)
    raise ValueError(
        f"Unknown model: {name}. Use one of {', '.join(MODELS)} or a claude-*/gpt-* model id"
    )


class LLMConfig(BaseModel):
    """Models, credentials and call defaults for the LLM service."""

    primary_model: str = "claude-sonnet-4"
    # Different provider for redundancy
    fallback_model: str | None = "gpt-4o"

    anthropic_api_key: str | None = Field(default=None, exclude=True)
    openai_api_key: str | None = Field(default=None, exclude=True)

    temperature: float = 0.7
    max_tokens: int = 4096
    timeout_seconds: int = 60

    enable_cost_tracking: bool = True

    def api_key_for(self, provider: LLMProvider) -> str | None:
        if provider == LLMProvider.ANTHROPIC:
            return self.anthropic_api_key
        return self.openai_api_key
