"""
mcpagent.skill.fallback - Direct-answer policy

Answers a query with a single model call when tool orchestration is not
possible: no providers configured, none reachable, or the tool loop failed.
"""

import logging

from mcpagent.exceptions import DirectAnswerError
from mcpagent.llm import LLMService

logger = logging.getLogger(__name__)

DIRECT_ANSWER_SYSTEM_PROMPT = (
    "You are a helpful assistant. Answer the user query based on your knowledge "
    "and the provided context if any."
)


def build_direct_prompt(
    query: str, context: str | None = None, images: list[str] | None = None
) -> str:
    """Compose the user prompt: context block, then image references, then the query."""
    parts = []
    if context:
        parts.append(f"Context:\n{context}")
    if images:
        parts.append("Images:\n" + "\n".join(f"- {url}" for url in images))
    parts.append(f"Query: {query}" if parts else query)
    return "\n\n".join(parts)


class DirectAnswerPolicy:
    """
    Single-turn answer without tools.

    Example:
        >>> policy = DirectAnswerPolicy(llm)
        >>> answer = await policy.answer("What's 2+2?", temperature=0.2)
    """

    def __init__(self, llm: LLMService, system_prompt: str = DIRECT_ANSWER_SYSTEM_PROMPT):
        self.llm = llm
        self.system_prompt = system_prompt

    async def answer(
        self,
        query: str,
        context: str | None = None,
        images: list[str] | None = None,
        temperature: float | None = None,
    ) -> str:
        """
        Answer the query with one model call.

        Raises:
            DirectAnswerError: If the model call fails
        """
        prompt = build_direct_prompt(query, context, images)
        try:
            response = await self.llm.generate(
                prompt, system=self.system_prompt, temperature=temperature
            )
        except Exception as e:
            logger.error(f"Direct answer failed: {e}", exc_info=True)
            raise DirectAnswerError(f"Failed to answer query directly: {e}") from e

        return response.content
