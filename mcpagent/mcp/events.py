"""
mcpagent.mcp.events - Progress Event Channel

Bounded channel through which the conversation engine and the skill layer
report progress: raw assistant text, tool-call state snapshots and log
events. The consumer drives backpressure by how fast it iterates.

Example:
    >>> channel = ProgressChannel(maxsize=100)
    >>> async def consume():
    ...     async for event in channel:
    ...         print(event.type, event.text or event.key)
    >>> consumer = asyncio.create_task(consume())
    >>> await skill.invoke(SkillInput(query="..."), events=channel)
    >>> channel.close()
    >>> await consumer
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from mcpagent.mcp.models import ToolCallState

logger = logging.getLogger(__name__)

# Well-known log event keys emitted by the skill layer.
#
# connecting_mcp_servers:  count
# mcp_connection_summary:  total, connected, failed, tool_count, failed_providers
# no_mcp_servers:          (none)
# mcp_processing_error:    error
EVENT_CONNECTING = "connecting_mcp_servers"
EVENT_CONNECTION_SUMMARY = "mcp_connection_summary"
EVENT_NO_SERVERS = "no_mcp_servers"
EVENT_PROCESSING_ERROR = "mcp_processing_error"


class ProgressEventType(str, Enum):
    TEXT = "text"
    TOOL_CALLS = "tool_calls"
    LOG = "log"


class ProgressEvent(BaseModel):
    """A single progress notification."""

    type: ProgressEventType
    text: str | None = None
    tool_calls: list[ToolCallState] = Field(default_factory=list)
    key: str | None = None
    args: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def assistant_text(cls, text: str) -> "ProgressEvent":
        return cls(type=ProgressEventType.TEXT, text=text)

    @classmethod
    def tool_activity(cls, states: Iterable[ToolCallState]) -> "ProgressEvent":
        # Snapshot: later transitions must not leak into an already published event
        return cls(
            type=ProgressEventType.TOOL_CALLS,
            tool_calls=[state.model_copy(deep=True) for state in states],
        )

    @classmethod
    def log(cls, key: str, **args: Any) -> "ProgressEvent":
        return cls(type=ProgressEventType.LOG, key=key, args=args)


_CLOSED = object()


class ProgressChannel:
    """
    Bounded async channel of ProgressEvents.

    publish() waits while the channel is full. close() ends iteration once
    queued events are drained; events published after close are dropped.
    """

    def __init__(self, maxsize: int = 100) -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=maxsize)
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def publish(self, event: ProgressEvent) -> None:
        """Queue an event, waiting for room if the channel is full."""
        if self._closed:
            logger.debug(f"Dropping {event.type.value} event published after close")
            return
        await self._queue.put(event)

    def close(self) -> None:
        """Mark the end of the stream."""
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # Consumer will see the flag after draining
            pass

    def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[ProgressEvent]:
        while True:
            if self._closed and self._queue.empty():
                return
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item
