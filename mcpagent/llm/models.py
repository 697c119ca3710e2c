"""
Chat models shared by the providers, the LLM service and the conversation engine.

The engine keeps its history as a list of ``Message``; providers turn that list
into an ``LLMResponse`` whose ``content`` is the raw completion text.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict


class LLMProvider(str, Enum):
    """Supported LLM providers."""

    ANTHROPIC = "anthropic"
    OPENAI = "openai"


class Message(BaseModel):
    """One turn of the conversation history."""

    role: Literal["system", "user", "assistant"]
    content: str


class TokenUsage(BaseModel):
    """Token counts reported by a provider."""

    input_tokens: int
    output_tokens: int
    total_tokens: int


class ModelSpec(BaseModel):
    """
    A chat model the service can route to.

    Prices are USD per million tokens and default to zero for models
    without a known price, which disables their cost accounting.
    """

    model_config = ConfigDict(frozen=True)

    provider: LLMProvider
    model_id: str
    input_cost_per_1m: float = 0.0
    output_cost_per_1m: float = 0.0

    @property
    def priced(self) -> bool:
        return self.input_cost_per_1m > 0 or self.output_cost_per_1m > 0

    def cost(self, usage: TokenUsage) -> float:
        """USD cost of one call."""
        return (
            usage.input_tokens * self.input_cost_per_1m
            + usage.output_tokens * self.output_cost_per_1m
        ) / 1_000_000


class LLMResponse(BaseModel):
    """Completion returned for one chat call."""

    content: str
    model: str
    usage: TokenUsage
    finish_reason: str | None = None
