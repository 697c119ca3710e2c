"""
Tests for mcpagent.mcp.client - MCP provider client.

Tests use mocks since actual MCP servers require external processes.
"""

from contextlib import AsyncExitStack
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mcpagent.exceptions import ProviderConnectionError, ProviderNotFoundError
from mcpagent.mcp.client import MCPProviderClient, _convert_content
from mcpagent.mcp.models import ProviderDescriptor, ReconnectPolicy, TransportKind


@pytest.fixture
def descriptor():
    return ProviderDescriptor(
        id="server-0",
        name="MCP Server 1",
        transport=TransportKind.STREAMABLE_HTTP,
        url="http://localhost:8000/mcp",
    )


@pytest.fixture
def client():
    return MCPProviderClient(connect_timeout=1.0)


def _attach(client, descriptor, session):
    """Register a pre-built session as if connect() had succeeded."""
    stack = MagicMock(spec=AsyncExitStack)
    stack.aclose = AsyncMock()
    client._connections[descriptor.id] = (session, stack)
    return stack


# ============================================================================
# Connection management
# ============================================================================


class TestConnect:
    def test_init(self, client):
        assert client.connected_providers == []

    async def test_connect_failure_without_reconnect(self, client, descriptor):
        with patch.object(client, "_open", AsyncMock(side_effect=OSError("refused"))) as mock_open:
            with pytest.raises(ProviderConnectionError, match="refused") as exc_info:
                await client.connect(descriptor)

        assert mock_open.await_count == 1
        assert exc_info.value.provider_id == "server-0"

    async def test_connect_retries_per_policy(self, client):
        descriptor = ProviderDescriptor(
            id="server-0",
            name="MCP Server 1",
            transport=TransportKind.SSE,
            url="http://localhost:8000/sse",
            reconnect=ReconnectPolicy(enabled=True, max_attempts=2, delay_ms=0),
        )
        side_effect = [OSError("refused"), None]
        with patch.object(client, "_open", AsyncMock(side_effect=side_effect)) as mock_open:
            await client.connect(descriptor)

        assert mock_open.await_count == 2

    async def test_connect_gives_up_after_max_attempts(self, client):
        descriptor = ProviderDescriptor(
            id="server-0",
            name="MCP Server 1",
            transport=TransportKind.SSE,
            url="http://localhost:8000/sse",
            reconnect=ReconnectPolicy(enabled=True, max_attempts=2, delay_ms=0),
        )
        with patch.object(client, "_open", AsyncMock(side_effect=OSError("refused"))) as mock_open:
            with pytest.raises(ProviderConnectionError):
                await client.connect(descriptor)

        assert mock_open.await_count == 3

    async def test_connect_stdio_missing_command(self, client):
        descriptor = ProviderDescriptor(id="fs", name="fs", transport=TransportKind.STDIO)

        with pytest.raises(ProviderConnectionError, match="requires 'command'"):
            await client.connect(descriptor)

        assert client.connected_providers == []

    async def test_connect_already_connected_is_noop(self, client, descriptor):
        _attach(client, descriptor, AsyncMock())

        with patch.object(client, "_open", AsyncMock()) as mock_open:
            await client.connect(descriptor)

        mock_open.assert_not_awaited()

    async def test_disconnect_closes_stack(self, client, descriptor):
        stack = _attach(client, descriptor, AsyncMock())

        await client.disconnect("server-0")

        stack.aclose.assert_awaited_once()
        assert client.connected_providers == []

    async def test_disconnect_unknown_provider(self, client):
        # Should not raise
        await client.disconnect("nonexistent")

    async def test_disconnect_tolerates_close_error(self, client, descriptor):
        stack = _attach(client, descriptor, AsyncMock())
        stack.aclose.side_effect = RuntimeError("already closed")

        await client.disconnect("server-0")

        assert client.connected_providers == []

    async def test_cleanup_is_idempotent(self, client, descriptor):
        stack = _attach(client, descriptor, AsyncMock())

        await client.cleanup()
        await client.cleanup()

        stack.aclose.assert_awaited_once()


# ============================================================================
# Tool discovery and invocation
# ============================================================================


class TestTools:
    async def test_list_tools_prefixes_ids(self, client, descriptor):
        mcp_tool = MagicMock()
        mcp_tool.name = "search"
        mcp_tool.description = "Search the web"
        mcp_tool.inputSchema = {"type": "object", "properties": {"query": {"type": "string"}}}

        session = AsyncMock()
        session.list_tools = AsyncMock(return_value=MagicMock(tools=[mcp_tool]))
        _attach(client, descriptor, session)

        tools = await client.list_tools(descriptor)

        assert len(tools) == 1
        assert tools[0].id == "server-0.search"
        assert tools[0].name == "search"
        assert tools[0].provider_id == "server-0"
        assert tools[0].provider_name == "MCP Server 1"
        assert tools[0].input_schema["properties"]["query"]["type"] == "string"

    async def test_list_tools_default_description(self, client, descriptor):
        mcp_tool = MagicMock()
        mcp_tool.name = "ping"
        mcp_tool.description = None
        mcp_tool.inputSchema = None
        mcp_tool.input_schema = None

        session = AsyncMock()
        session.list_tools = AsyncMock(return_value=MagicMock(tools=[mcp_tool]))
        _attach(client, descriptor, session)

        tools = await client.list_tools(descriptor)

        assert tools[0].description == "MCP tool: ping"
        assert tools[0].input_schema == {}

    async def test_list_tools_not_connected(self, client, descriptor):
        with pytest.raises(ProviderNotFoundError):
            await client.list_tools(descriptor)

    async def test_call_tool_converts_result(self, client, descriptor):
        text_block = MagicMock(type="text", text="result here", data=None, mimeType=None)
        image_block = MagicMock(type="image", text=None, data="aGVsbG8=", mimeType="image/png")
        mcp_result = MagicMock(content=[text_block, image_block], isError=False)

        session = AsyncMock()
        session.call_tool = AsyncMock(return_value=mcp_result)
        _attach(client, descriptor, session)

        result = await client.call_tool(descriptor, "search", {"query": "mcp"})

        session.call_tool.assert_awaited_once_with("search", arguments={"query": "mcp"})
        assert result.is_error is False
        assert result.text_items == ["result here"]
        assert result.content[1].type == "image"
        assert result.content[1].mime_type == "image/png"

    async def test_call_tool_error_flag(self, client, descriptor):
        block = MagicMock(type="text", text="bad input", data=None, mimeType=None)
        session = AsyncMock()
        session.call_tool = AsyncMock(return_value=MagicMock(content=[block], isError=True))
        _attach(client, descriptor, session)

        result = await client.call_tool(descriptor, "search", {})

        assert result.is_error is True
        assert result.text_items == ["bad input"]


def test_convert_embedded_resource_text():
    resource = MagicMock(text="file contents")
    block = MagicMock(type="resource", text=None, data=None, mimeType=None, resource=resource)

    content = _convert_content(block)

    assert content.type == "resource"
    assert content.text == "file contents"
