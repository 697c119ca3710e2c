"""
Chat providers: one ``chat(messages)`` call per model turn.

Each provider maps the engine's ``Message`` history onto its SDK and returns
the completion text with token usage.
"""

from abc import ABC, abstractmethod
from typing import Any

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from mcpagent.llm.config import LLMConfig
from mcpagent.llm.models import LLMProvider, LLMResponse, Message, ModelSpec, TokenUsage


class ChatProvider(ABC):
    """A model endpoint that completes a conversation history."""

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id

    @abstractmethod
    async def chat(
        self, messages: list[Message], *, max_tokens: int, temperature: float
    ) -> LLMResponse:
        """Return the next assistant turn for ``messages``."""


class AnthropicChatProvider(ChatProvider):
    """Anthropic Messages API."""

    def __init__(self, api_key: str | None, model_id: str, timeout: float | None = None) -> None:
        super().__init__(model_id)
        self.client = AsyncAnthropic(api_key=api_key, timeout=timeout)

    async def chat(
        self, messages: list[Message], *, max_tokens: int, temperature: float
    ) -> LLMResponse:
        # The system prompt is a top-level parameter; consecutive user turns
        # (tool results) are merged server-side.
        system = "\n\n".join(m.content for m in messages if m.role == "system")
        turns = [{"role": m.role, "content": m.content} for m in messages if m.role != "system"]

        kwargs: dict[str, Any] = {}
        if system:
            kwargs["system"] = system

        response = await self.client.messages.create(
            model=self.model_id,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=turns,
            **kwargs,
        )

        input_tokens = response.usage.input_tokens
        output_tokens = response.usage.output_tokens
        return LLMResponse(
            content="".join(getattr(block, "text", "") for block in response.content),
            model=response.model,
            usage=TokenUsage(
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
            ),
            finish_reason=response.stop_reason,
        )


class OpenAIChatProvider(ChatProvider):
    """OpenAI Chat Completions API."""

    def __init__(self, api_key: str | None, model_id: str, timeout: float | None = None) -> None:
        super().__init__(model_id)
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout)

    async def chat(
        self, messages: list[Message], *, max_tokens: int, temperature: float
    ) -> LLMResponse:
        response = await self.client.chat.completions.create(
            model=self.model_id,
            messages=[m.model_dump() for m in messages],
            max_tokens=max_tokens,
            temperature=temperature,
        )

        choice = response.choices[0]
        usage = response.usage
        return LLMResponse(
            content=choice.message.content or "",
            model=response.model,
            usage=TokenUsage(
                input_tokens=usage.prompt_tokens if usage else 0,
                output_tokens=usage.completion_tokens if usage else 0,
                total_tokens=usage.total_tokens if usage else 0,
            ),
            finish_reason=choice.finish_reason,
        )


_PROVIDERS: dict[LLMProvider, type[ChatProvider]] = {
    LLMProvider.ANTHROPIC: AnthropicChatProvider,
    LLMProvider.OPENAI: OpenAIChatProvider,
}


def create_provider(spec: ModelSpec, config: LLMConfig) -> ChatProvider:
    """Build the provider that serves ``spec`` with the credentials in ``config``."""
    provider_cls = _PROVIDERS[spec.provider]
    return provider_cls(
        api_key=config.api_key_for(spec.provider),
        model_id=spec.model_id,
        timeout=config.timeout_seconds,
    )
