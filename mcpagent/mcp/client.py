"""
mcpagent.mcp.client - MCP Provider Client

Manages live connections to external MCP (Model Context Protocol) servers,
discovers their tools and forwards tool calls, keyed by provider id.

Each provider's transport and ClientSession live on their own
AsyncExitStack, so one provider can be closed without touching the others.

Tools appear as "{provider_id}.{tool_name}", avoiding name collisions
between providers.

Example:
    >>> client = MCPProviderClient(connect_timeout=30)
    >>> await client.connect(descriptor)
    >>> tools = await client.list_tools(descriptor)
    >>> result = await client.call_tool(descriptor, "search", {"query": "mcp"})
    >>> await client.cleanup()
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import Any, Protocol

from mcpagent.exceptions import ProviderConnectionError, ProviderNotFoundError
from mcpagent.mcp.models import (
    ProviderDescriptor,
    Tool,
    ToolCallResult,
    ToolResultContent,
    TransportKind,
)

logger = logging.getLogger(__name__)


class ProviderClient(Protocol):
    """
    Capability interface for reaching tool providers.

    This is a Protocol (structural subtyping) so the conversation engine can
    run against the MCP SDK client in production and fakes in tests.
    """

    async def connect(self, descriptor: ProviderDescriptor) -> None:
        """Open a connection; raise ProviderConnectionError on failure."""
        ...

    async def list_tools(self, descriptor: ProviderDescriptor) -> list[Tool]:
        """List the tools of a connected provider."""
        ...

    async def call_tool(
        self, descriptor: ProviderDescriptor, name: str, arguments: Any
    ) -> ToolCallResult:
        """Invoke a tool on a connected provider."""
        ...

    async def disconnect(self, provider_id: str) -> None:
        """Close one provider's connection. Unknown ids are ignored."""
        ...

    async def cleanup(self) -> None:
        """Close all connections. Must be safe to call repeatedly."""
        ...


def _convert_content(block: Any) -> ToolResultContent:
    """Convert an MCP content block (TextContent, ImageContent, ...) to ToolResultContent."""
    block_type = getattr(block, "type", "text")
    text = getattr(block, "text", None)
    if text is None and block_type == "resource":
        resource = getattr(block, "resource", None)
        text = getattr(resource, "text", None)
    return ToolResultContent(
        type=block_type,
        text=text,
        data=getattr(block, "data", None),
        mime_type=getattr(block, "mimeType", None),
    )


def _convert_tool(descriptor: ProviderDescriptor, mcp_tool: Any) -> Tool:
    input_schema = {}
    if getattr(mcp_tool, "inputSchema", None):
        input_schema = mcp_tool.inputSchema
    elif getattr(mcp_tool, "input_schema", None):
        input_schema = mcp_tool.input_schema

    return Tool(
        id=f"{descriptor.id}.{mcp_tool.name}",
        name=mcp_tool.name,
        provider_id=descriptor.id,
        provider_name=descriptor.name,
        description=mcp_tool.description or f"MCP tool: {mcp_tool.name}",
        input_schema=input_schema,
    )


class MCPProviderClient:
    """
    ProviderClient backed by the official MCP Python SDK.

    Supports stdio, SSE and streamable HTTP transports. A failed connect is
    retried according to the descriptor's reconnect policy, with exponential
    backoff starting at the policy's delay.
    """

    def __init__(self, connect_timeout: float = 30.0, backoff_multiplier: float = 2.0) -> None:
        self.connect_timeout = connect_timeout
        self.backoff_multiplier = backoff_multiplier
        # provider_id -> (session, exit stack)
        self._connections: dict[str, tuple[Any, AsyncExitStack]] = {}

    @property
    def connected_providers(self) -> list[str]:
        """Ids of currently connected providers."""
        return list(self._connections.keys())

    async def connect(self, descriptor: ProviderDescriptor) -> None:
        """Connect to a provider, retrying per its reconnect policy.

        Args:
            descriptor: Provider connection descriptor

        Raises:
            ProviderConnectionError: If every attempt fails
        """
        if descriptor.id in self._connections:
            logger.warning(
                f"Already connected to MCP provider: {descriptor.id}",
                extra={"provider_id": descriptor.id},
            )
            return

        policy = descriptor.reconnect
        attempts = 1 + (policy.max_attempts if policy.enabled else 0)
        delay_ms = float(policy.delay_ms)
        last_error: Exception | None = None

        for attempt in range(attempts):
            if attempt > 0:
                logger.info(
                    f"Retrying connection to {descriptor.id} (attempt {attempt + 1}/{attempts})",
                    extra={"provider_id": descriptor.id, "attempt": attempt + 1},
                )
                await asyncio.sleep(delay_ms / 1000)
                delay_ms *= self.backoff_multiplier
            try:
                await self._open(descriptor)
                return
            except Exception as e:
                last_error = e
                logger.warning(
                    f"Connection attempt to MCP provider {descriptor.id} failed: {e}",
                    extra={"provider_id": descriptor.id, "attempt": attempt + 1},
                )

        raise ProviderConnectionError(
            f"Failed to connect to provider {descriptor.id} ({descriptor.endpoint}): {last_error}",
            provider_id=descriptor.id,
        ) from last_error

    async def _open(self, descriptor: ProviderDescriptor) -> None:
        from mcp import ClientSession

        stack = AsyncExitStack()
        try:
            read_stream, write_stream = await self._open_transport(descriptor, stack)
            session = await stack.enter_async_context(ClientSession(read_stream, write_stream))
            await asyncio.wait_for(session.initialize(), timeout=self.connect_timeout)
        except BaseException:
            await stack.aclose()
            raise

        self._connections[descriptor.id] = (session, stack)
        logger.info(
            f"Connected to MCP provider '{descriptor.name}' via {descriptor.transport.value}",
            extra={"provider_id": descriptor.id, "transport": descriptor.transport.value},
        )

    async def _open_transport(
        self, descriptor: ProviderDescriptor, stack: AsyncExitStack
    ) -> tuple[Any, Any]:
        """Enter the transport context for the descriptor's kind and return its streams."""
        if descriptor.transport == TransportKind.STDIO:
            from mcp import StdioServerParameters
            from mcp.client.stdio import stdio_client

            if not descriptor.command:
                raise ValueError("stdio transport requires 'command'")
            params = StdioServerParameters(
                command=descriptor.command,
                args=list(descriptor.args),
                env=dict(descriptor.env) if descriptor.env else None,
            )
            read_stream, write_stream = await stack.enter_async_context(stdio_client(params))
            return read_stream, write_stream

        if not descriptor.url:
            raise ValueError(f"{descriptor.transport.value} transport requires 'url'")

        if descriptor.transport == TransportKind.SSE:
            from mcp.client.sse import sse_client

            read_stream, write_stream = await stack.enter_async_context(
                sse_client(descriptor.url, headers=descriptor.headers)
            )
            return read_stream, write_stream

        from mcp.client.streamable_http import streamablehttp_client

        read_stream, write_stream, _ = await stack.enter_async_context(
            streamablehttp_client(descriptor.url, headers=descriptor.headers)
        )
        return read_stream, write_stream

    def _session(self, descriptor: ProviderDescriptor) -> Any:
        conn = self._connections.get(descriptor.id)
        if conn is None:
            raise ProviderNotFoundError(f"Provider {descriptor.id} is not connected")
        return conn[0]

    async def list_tools(self, descriptor: ProviderDescriptor) -> list[Tool]:
        """Discover the tools of a connected provider.

        Args:
            descriptor: Connected provider

        Returns:
            Tools with ids prefixed by the provider id
        """
        session = self._session(descriptor)
        tools_result = await session.list_tools()
        return [_convert_tool(descriptor, mcp_tool) for mcp_tool in tools_result.tools]

    async def call_tool(
        self, descriptor: ProviderDescriptor, name: str, arguments: Any
    ) -> ToolCallResult:
        """Invoke a tool and convert the SDK result.

        Args:
            descriptor: Connected provider owning the tool
            name: Tool name as known to the provider (not the prefixed id)
            arguments: Tool arguments, passed through unchanged

        Returns:
            ToolCallResult with the provider's content and error flag
        """
        session = self._session(descriptor)
        result = await session.call_tool(name, arguments=arguments)
        return ToolCallResult(
            content=[_convert_content(block) for block in (result.content or [])],
            is_error=bool(getattr(result, "isError", False)),
        )

    async def disconnect(self, provider_id: str) -> None:
        """Close one provider's connection. Unknown ids are ignored."""
        conn = self._connections.pop(provider_id, None)
        if conn is None:
            return

        _, stack = conn
        try:
            await stack.aclose()
        except Exception:
            logger.warning(
                f"Error closing MCP session for {provider_id}",
                exc_info=True,
                extra={"provider_id": provider_id},
            )
        else:
            logger.info(
                f"Disconnected from MCP provider: {provider_id}",
                extra={"provider_id": provider_id},
            )

    async def cleanup(self) -> None:
        """Disconnect from all providers."""
        for provider_id in list(self._connections.keys()):
            await self.disconnect(provider_id)
