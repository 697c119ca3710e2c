"""
Shared fixtures: in-memory provider client and scripted model calls.

No test talks to a real MCP server or LLM API.
"""

from collections.abc import Awaitable, Callable
from typing import Any

import pytest

from mcpagent.exceptions import ProviderConnectionError, ProviderNotFoundError
from mcpagent.llm.models import Message
from mcpagent.mcp.models import (
    ProviderDescriptor,
    Tool,
    ToolCallResult,
    ToolResultContent,
    TransportKind,
)

ToolHandler = Callable[[Any], Awaitable[ToolCallResult]]


def text_result(text: str, is_error: bool = False) -> ToolCallResult:
    return ToolCallResult(content=[ToolResultContent(type="text", text=text)], is_error=is_error)


class FakeProviderClient:
    """
    ProviderClient double.

    tools maps provider id -> tool names; handlers maps tool name -> async
    handler. Providers listed in failing refuse to connect; providers listed
    in listing_fails connect but fail tools/list.
    """

    def __init__(
        self,
        tools: dict[str, list[str]] | None = None,
        handlers: dict[str, ToolHandler] | None = None,
        failing: set[str] | None = None,
        listing_fails: set[str] | None = None,
    ) -> None:
        self.tools = tools or {}
        self.handlers = handlers or {}
        self.failing = failing or set()
        self.listing_fails = listing_fails or set()
        self.connected: list[str] = []
        self.disconnected: list[str] = []
        self.connected_history: list[str] = []
        self.calls: list[tuple[str, str, Any]] = []
        self.cleanup_count = 0

    async def connect(self, descriptor: ProviderDescriptor) -> None:
        if descriptor.id in self.failing:
            raise ProviderConnectionError(
                f"Failed to connect to provider {descriptor.id}", provider_id=descriptor.id
            )
        self.connected.append(descriptor.id)
        self.connected_history.append(descriptor.id)

    async def list_tools(self, descriptor: ProviderDescriptor) -> list[Tool]:
        if descriptor.id not in self.connected:
            raise ProviderNotFoundError(descriptor.id)
        if descriptor.id in self.listing_fails:
            raise RuntimeError("tools/list failed")
        return [
            Tool(
                id=f"{descriptor.id}.{name}",
                name=name,
                provider_id=descriptor.id,
                provider_name=descriptor.name,
                description=f"{name} tool",
                input_schema={"type": "object", "properties": {}},
            )
            for name in self.tools.get(descriptor.id, [])
        ]

    async def call_tool(
        self, descriptor: ProviderDescriptor, name: str, arguments: Any
    ) -> ToolCallResult:
        self.calls.append((descriptor.id, name, arguments))
        handler = self.handlers.get(name)
        if handler is None:
            return text_result(f"{name} ok")
        return await handler(arguments)

    async def disconnect(self, provider_id: str) -> None:
        if provider_id in self.connected:
            self.connected.remove(provider_id)
            self.disconnected.append(provider_id)

    async def cleanup(self) -> None:
        self.cleanup_count += 1
        self.connected.clear()


class ScriptedModel:
    """Model call returning canned replies in order; records every history it sees."""

    def __init__(self, replies: list[str] | None = None, error: Exception | None = None) -> None:
        self.replies = list(replies or [])
        self.error = error
        self.seen: list[list[Message]] = []

    @property
    def call_count(self) -> int:
        return len(self.seen)

    async def __call__(self, messages: list[Message]) -> str:
        self.seen.append(list(messages))
        if self.error is not None:
            raise self.error
        if not self.replies:
            return "done"
        return self.replies.pop(0)


def tool_use(tool_id: str, arguments: str = "{}") -> str:
    return f"<tool_use>\n  <name>{tool_id}</name>\n  <arguments>{arguments}</arguments>\n</tool_use>"


def http_descriptor(provider_id: str, url: str | None = None) -> ProviderDescriptor:
    return ProviderDescriptor(
        id=provider_id,
        name=provider_id,
        transport=TransportKind.STREAMABLE_HTTP,
        url=url or f"http://localhost:8000/{provider_id}/mcp",
    )


@pytest.fixture
def fake_client_cls():
    return FakeProviderClient


@pytest.fixture
def scripted_model_cls():
    return ScriptedModel


@pytest.fixture
def make_tool_use():
    return tool_use


@pytest.fixture
def make_descriptor():
    return http_descriptor


@pytest.fixture
def make_text_result():
    return text_result

