"""
mcpagent.skill.sessions - Live session bookkeeping

SessionRegistry maps session ids to their Conversation Engine and
DescriptorCache keeps provider ids stable across invocations. Both are
owned by a skill instance and guarded by an asyncio.Lock.
"""

import asyncio
import logging
import secrets
import time
from collections.abc import Callable
from dataclasses import dataclass

from mcpagent.mcp.assistant import MCPAssistant
from mcpagent.mcp.models import ProviderDescriptor
from mcpagent.mcp.registry import descriptor_from_url

logger = logging.getLogger(__name__)


def generate_session_id() -> str:
    """Return a fresh 'session-{epoch_ms}-{suffix}' id."""
    return f"session-{int(time.time() * 1000)}-{secrets.token_hex(4)}"


@dataclass
class Session:
    """One orchestration session and its engine."""

    session_id: str
    assistant: MCPAssistant


class SessionRegistry:
    """
    Live sessions keyed by id.

    get_or_create() returns the existing session on a repeat id, so a
    session never ends up with two engines.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    async def get_or_create(
        self, session_id: str, factory: Callable[[], MCPAssistant]
    ) -> Session:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = Session(session_id=session_id, assistant=factory())
                self._sessions[session_id] = session
                logger.debug("Session created", extra={"session_id": session_id})
            return session

    async def get(self, session_id: str) -> Session | None:
        async with self._lock:
            return self._sessions.get(session_id)

    async def remove(self, session_id: str) -> Session | None:
        async with self._lock:
            return self._sessions.pop(session_id, None)

    async def close(self, session_id: str) -> None:
        """Close a session's engine and forget it. Unknown ids are ignored."""
        session = await self.remove(session_id)
        if session is not None:
            await session.assistant.close()
            logger.debug("Session closed", extra={"session_id": session_id})

    async def close_all(self) -> int:
        """Close every live session; returns how many were closed."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()

        for session in sessions:
            try:
                await session.assistant.close()
            except Exception as e:
                logger.warning(
                    f"Error closing session {session.session_id}: {e}",
                    extra={"session_id": session.session_id},
                )
        return len(sessions)


class DescriptorCache:
    """
    Provider descriptors cached by endpoint.

    Each endpoint gets 'server-{n}' where n is the order in which the cache
    first saw it, so reordering the configured list keeps ids stable.
    """

    def __init__(self) -> None:
        self._descriptors: dict[str, ProviderDescriptor] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._descriptors)

    async def resolve(self, urls: list[str]) -> list[ProviderDescriptor]:
        """Descriptors for the given endpoints, in the given order."""
        async with self._lock:
            descriptors = []
            for url in urls:
                descriptor = self._descriptors.get(url)
                if descriptor is None:
                    descriptor = descriptor_from_url(url, len(self._descriptors))
                    self._descriptors[url] = descriptor
                descriptors.append(descriptor)
            return descriptors
