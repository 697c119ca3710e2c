"""
mcpagent.llm - Model calls for the tool loop and the direct-answer path.

``LLMService`` routes each chat call to a primary model, retries it once on a
fallback model from another provider, and keeps a running cost total.

Example:
    >>> config = LLMConfig(
    ...     primary_model="claude-sonnet-4",
    ...     fallback_model="gpt-4o",
    ...     anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
    ...     openai_api_key=os.getenv("OPENAI_API_KEY"),
    ... )
    >>> llm = LLMService(config)
    >>> response = await llm.chat([Message(role="user", content="Hello")])
    >>> response = await llm.generate("What's 2+2?", system="Be brief.")
"""

import logging

from mcpagent.llm.config import MODELS, LLMConfig, resolve_model
from mcpagent.llm.models import LLMResponse, Message, ModelSpec
from mcpagent.llm.providers import ChatProvider, create_provider

logger = logging.getLogger(__name__)


class LLMService:
    """
    Chat service with provider failover and cost tracking.

    Attributes:
        config: LLM configuration
        primary: Provider for the primary model
        fallback: Provider for the fallback model, if one is configured
        total_cost: USD spent on priced models so far
        requests_count: Number of successful calls counted toward ``total_cost``
    """

    def __init__(self, config: LLMConfig):
        self.config = config

        self.primary_spec = resolve_model(config.primary_model)
        self.primary: ChatProvider = create_provider(self.primary_spec, config)

        self.fallback_spec: ModelSpec | None = None
        self.fallback: ChatProvider | None = None
        if config.fallback_model:
            self.fallback_spec = resolve_model(config.fallback_model)
            self.fallback = create_provider(self.fallback_spec, config)

        self.total_cost = 0.0
        self.requests_count = 0

    async def chat(
        self,
        messages: list[Message],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """
        Complete a conversation history.

        Args:
            messages: Ordered history, system message first if any
            max_tokens: Defaults to ``config.max_tokens``
            temperature: Defaults to ``config.temperature``

        Raises:
            Exception: The fallback's error when both models fail, or the
                primary's when there is no fallback
        """
        history = list(messages)
        max_tokens = max_tokens if max_tokens is not None else self.config.max_tokens
        temperature = temperature if temperature is not None else self.config.temperature

        try:
            response = await self.primary.chat(
                history, max_tokens=max_tokens, temperature=temperature
            )
        except Exception as e:
            if self.fallback is None:
                raise
            logger.warning(
                f"Primary model {self.primary_spec.model_id} failed, using fallback: {e}",
                extra={"fallback_model": self.fallback_spec.model_id},
            )
            response = await self.fallback.chat(
                history, max_tokens=max_tokens, temperature=temperature
            )
            self._track_cost(response, self.fallback_spec)
            return response

        self._track_cost(response, self.primary_spec)
        return response

    async def generate(
        self,
        prompt: str,
        system: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """Single-turn completion of ``prompt`` under an optional system message."""
        messages = []
        if system:
            messages.append(Message(role="system", content=system))
        messages.append(Message(role="user", content=prompt))
        return await self.chat(messages, max_tokens=max_tokens, temperature=temperature)

    def _track_cost(self, response: LLMResponse, spec: ModelSpec) -> None:
        if not self.config.enable_cost_tracking or not spec.priced:
            return

        cost = spec.cost(response.usage)
        self.total_cost += cost
        self.requests_count += 1
        logger.debug(
            f"LLM call cost: ${cost:.4f} "
            f"(total: ${self.total_cost:.2f}, requests: {self.requests_count})"
        )

    def get_cost_summary(self) -> dict:
        return {
            "total_cost": self.total_cost,
            "requests_count": self.requests_count,
            "average_cost_per_request": (
                self.total_cost / self.requests_count if self.requests_count > 0 else 0.0
            ),
        }


__all__ = [
    "MODELS",
    "LLMConfig",
    "LLMResponse",
    "LLMService",
    "Message",
    "resolve_model",
]
