"""
mcpagent.skill.agent - MCP Agent Skill

Entry point for answering a user query with tools from MCP servers.

Per invocation the skill:
- Creates a session with its own Conversation Engine
- Connects every configured server, tolerating partial failure
- Runs the tool loop when at least one server connected
- Falls back to a direct answer otherwise, or when the tool loop fails
- Releases the session's connections before returning

Example:
    >>> skill = MCPAgentSkill(llm)
    >>> result = await skill.invoke(
    ...     SkillInput(query="What's the weather in Paris?"),
    ...     SkillConfig(mcp_server_urls="http://localhost:8000/mcp"),
    ... )
    >>> print(result.answer)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from mcpagent.exceptions import ProviderNotFoundError
from mcpagent.llm import LLMService
from mcpagent.llm.models import Message
from mcpagent.mcp.assistant import MCPAssistant
from mcpagent.mcp.client import MCPProviderClient, ProviderClient
from mcpagent.mcp.events import (
    EVENT_CONNECTING,
    EVENT_CONNECTION_SUMMARY,
    EVENT_NO_SERVERS,
    EVENT_PROCESSING_ERROR,
    ProgressChannel,
    ProgressEvent,
)
from mcpagent.mcp.models import ProviderDescriptor
from mcpagent.mcp.registry import parse_server_urls
from mcpagent.skill.fallback import DirectAnswerPolicy
from mcpagent.skill.models import ConnectionSummary, SkillConfig, SkillInput, SkillResult
from mcpagent.skill.sessions import (
    DescriptorCache,
    Session,
    SessionRegistry,
    generate_session_id,
)

if TYPE_CHECKING:
    from mcpagent.settings import MCPAgentSettings

logger = logging.getLogger(__name__)

# Reasons reported in SkillResult.fallback_reason
FALLBACK_AUTO_CONNECT_DISABLED = "auto_connect_disabled"
FALLBACK_NO_SERVERS = "no_servers_configured"
FALLBACK_NO_CONNECTIONS = "no_servers_connected"
FALLBACK_PROCESSING_ERROR = "processing_error"


class LLMModelCall:
    """
    Model call handed to the Conversation Engine.

    Carries the session's temperature explicitly instead of mutating a
    shared model.
    """

    def __init__(self, llm: LLMService, temperature: float, max_tokens: int | None = None):
        self.llm = llm
        self.temperature = temperature
        self.max_tokens = max_tokens

    async def __call__(self, messages: list[Message]) -> str:
        response = await self.llm.chat(
            messages, max_tokens=self.max_tokens, temperature=self.temperature
        )
        logger.debug(
            f"Model returned {len(response.content)} chars",
            extra={"model": response.model, "message_count": len(messages)},
        )
        return response.content


class MCPAgentSkill:
    """
    Answers queries through MCP tools, with a direct-answer fallback.

    The session registry and descriptor cache belong to the skill instance;
    concurrent invocations each get their own session.
    """

    def __init__(
        self,
        llm: LLMService | None = None,
        *,
        settings: MCPAgentSettings | None = None,
        client_factory: Callable[[], ProviderClient] | None = None,
        fallback: DirectAnswerPolicy | None = None,
        custom_system_prompt: str | None = None,
    ) -> None:
        """
        Create the skill.

        Args:
            llm: LLM service (defaults to one built from settings)
            settings: Configuration (defaults to get_settings())
            client_factory: Builds a fresh provider client per session
            fallback: Direct-answer policy (defaults to one using llm)
            custom_system_prompt: Extra instructions for the tool loop
        """
        if settings is None:
            from mcpagent.settings import get_settings

            settings = get_settings()

        self.settings = settings
        self.llm = llm if llm is not None else LLMService(settings.build_llm_config())
        self.fallback = fallback if fallback is not None else DirectAnswerPolicy(self.llm)
        self.custom_system_prompt = custom_system_prompt
        self._client_factory = client_factory or self._default_client
        self.sessions = SessionRegistry()
        self.descriptors = DescriptorCache()

    def _default_client(self) -> ProviderClient:
        return MCPProviderClient(connect_timeout=self.settings.mcp_connect_timeout_seconds)

    def _create_assistant(
        self, config: SkillConfig, events: ProgressChannel | None
    ) -> MCPAssistant:
        return MCPAssistant(
            LLMModelCall(self.llm, temperature=config.model_temperature),
            self._client_factory(),
            custom_system_prompt=self.custom_system_prompt,
            auto_inject_tools=True,
            progress=events,
            tool_timeout_seconds=self.settings.mcp_tool_timeout_seconds,
            model_timeout_seconds=self.settings.mcp_model_timeout_seconds,
        )

    async def invoke(
        self,
        skill_input: SkillInput,
        config: SkillConfig | None = None,
        events: ProgressChannel | None = None,
    ) -> SkillResult:
        """
        Answer one query.

        Args:
            skill_input: Query, optional images and context
            config: Per-invocation configuration (defaults to settings)
            events: Channel receiving progress events

        Returns:
            SkillResult with the answer and how it was produced

        Raises:
            DirectAnswerError: If the fallback path itself fails
            ProviderNotFoundError: If a tool outlived its provider (defect)
        """
        config = config or self.settings.build_skill_config()
        session_id = generate_session_id()
        urls = parse_server_urls(config.mcp_server_urls)

        if not config.auto_connect:
            return await self._direct_answer(
                skill_input, config, session_id, FALLBACK_AUTO_CONNECT_DISABLED
            )
        if not urls:
            return await self._direct_answer(skill_input, config, session_id, FALLBACK_NO_SERVERS)

        session = await self.sessions.get_or_create(
            session_id, lambda: self._create_assistant(config, events)
        )
        summary: ConnectionSummary | None = None

        try:
            descriptors = await self.descriptors.resolve(urls)
            summary = await self._connect_providers(session, descriptors, events)

            if summary.connected == 0:
                await _publish(events, ProgressEvent.log(EVENT_NO_SERVERS))
                fallback_reason = FALLBACK_NO_CONNECTIONS
            else:
                answer = await session.assistant.run(skill_input.query)
                return SkillResult(
                    session_id=session_id,
                    answer=answer,
                    used_tools=True,
                    connection=summary,
                    messages=session.assistant.messages,
                )
        except ProviderNotFoundError:
            raise
        except Exception as e:
            logger.error(
                f"Error in MCP assistant processing: {e}",
                exc_info=True,
                extra={"session_id": session_id},
            )
            await _publish(events, ProgressEvent.log(EVENT_PROCESSING_ERROR, error=str(e)))
            fallback_reason = FALLBACK_PROCESSING_ERROR
        finally:
            await self._release(session_id)

        return await self._direct_answer(
            skill_input, config, session_id, fallback_reason, summary
        )

    async def _connect_providers(
        self,
        session: Session,
        descriptors: list[ProviderDescriptor],
        events: ProgressChannel | None,
    ) -> ConnectionSummary:
        """Connect every descriptor; one failure never stops the others."""
        await _publish(events, ProgressEvent.log(EVENT_CONNECTING, count=len(descriptors)))

        connected: list[str] = []
        failed: list[str] = []
        for descriptor in descriptors:
            try:
                await session.assistant.add_server(descriptor)
            except Exception as e:
                failed.append(descriptor.endpoint)
                logger.error(
                    f"Failed to connect to MCP server {descriptor.endpoint}: {e}",
                    extra={"session_id": session.session_id, "provider_id": descriptor.id},
                )
            else:
                connected.append(descriptor.endpoint)
                logger.info(
                    f"Connected to MCP server: {descriptor.endpoint}",
                    extra={"session_id": session.session_id, "provider_id": descriptor.id},
                )

        if failed:
            logger.warning(
                f"Failed to connect to {len(failed)} MCP server(s): {', '.join(failed)}",
                extra={"session_id": session.session_id},
            )

        summary = ConnectionSummary(
            total=len(descriptors),
            connected=len(connected),
            failed=len(failed),
            tool_count=len(session.assistant.tools),
            connected_providers=connected,
            failed_providers=failed,
        )
        await _publish(
            events,
            ProgressEvent.log(
                EVENT_CONNECTION_SUMMARY,
                total=summary.total,
                connected=summary.connected,
                failed=summary.failed,
                tool_count=summary.tool_count,
                failed_providers=summary.failed_providers,
            ),
        )
        logger.info(
            f"Connected to {summary.connected}/{summary.total} MCP server(s)",
            extra={"session_id": session.session_id, "tool_count": summary.tool_count},
        )
        return summary

    async def _direct_answer(
        self,
        skill_input: SkillInput,
        config: SkillConfig,
        session_id: str,
        reason: str,
        summary: ConnectionSummary | None = None,
    ) -> SkillResult:
        logger.info(
            f"Answering directly ({reason})",
            extra={"session_id": session_id, "fallback_reason": reason},
        )
        answer = await self.fallback.answer(
            skill_input.query,
            context=skill_input.context,
            images=skill_input.images,
            temperature=config.model_temperature,
        )
        return SkillResult(
            session_id=session_id,
            answer=answer,
            used_tools=False,
            fallback_reason=reason,
            connection=summary,
        )

    async def _release(self, session_id: str) -> None:
        try:
            await self.sessions.close(session_id)
        except Exception as e:
            logger.warning(
                f"Error closing MCP assistant: {e}",
                extra={"session_id": session_id},
            )

    async def cleanup_sessions(self) -> None:
        """Close every live session (used on shutdown)."""
        closed = await self.sessions.close_all()
        if closed:
            logger.info(f"Closed {closed} MCP session(s)")


async def _publish(events: ProgressChannel | None, event: ProgressEvent) -> None:
    if events is not None:
        await events.publish(event)
