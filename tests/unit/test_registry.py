"""
Unit tests for mcpagent.mcp.registry - raw provider records to descriptors.
"""

import pytest

from mcpagent.exceptions import DescriptorError
from mcpagent.mcp.models import TransportKind
from mcpagent.mcp.registry import (
    build_provider_descriptor,
    build_provider_descriptors,
    descriptor_from_url,
    parse_server_urls,
)


class TestBuildProviderDescriptor:
    def test_sse_record(self):
        descriptor = build_provider_descriptor(
            {"id": "search", "name": "Search", "type": "sse", "url": "http://localhost:8000/sse"}
        )

        assert descriptor.id == "search"
        assert descriptor.name == "Search"
        assert descriptor.transport == TransportKind.SSE
        assert descriptor.url == "http://localhost:8000/sse"
        assert descriptor.reconnect.enabled is False

    def test_id_defaults_to_name(self):
        descriptor = build_provider_descriptor(
            {"name": "Search", "type": "streamableHttp", "url": "http://localhost:8000/mcp"}
        )

        assert descriptor.id == "Search"

    def test_streamable_alias(self):
        descriptor = build_provider_descriptor(
            {"name": "s", "type": "streamable", "url": "http://localhost:8000/mcp"}
        )

        assert descriptor.transport == TransportKind.STREAMABLE_HTTP

    def test_base_url_accepted(self):
        descriptor = build_provider_descriptor(
            {"name": "s", "type": "sse", "baseUrl": "http://localhost:8000/sse"}
        )

        assert descriptor.url == "http://localhost:8000/sse"

    def test_json_string_fields_decoded(self):
        descriptor = build_provider_descriptor(
            {
                "name": "s",
                "type": "streamableHttp",
                "url": "http://localhost:8000/mcp",
                "headers": '{"Authorization": "Bearer abc"}',
                "reconnect": '{"enabled": true, "maxAttempts": 5, "delayMs": 250}',
            }
        )

        assert descriptor.headers == {"Authorization": "Bearer abc"}
        assert descriptor.reconnect.enabled is True
        assert descriptor.reconnect.max_attempts == 5
        assert descriptor.reconnect.delay_ms == 250

    def test_stdio_env_merged_over_process_env(self, monkeypatch):
        monkeypatch.setenv("MCPAGENT_TEST_INHERITED", "from-process")
        monkeypatch.setenv("MCPAGENT_TEST_OVERRIDDEN", "from-process")

        descriptor = build_provider_descriptor(
            {
                "name": "fs",
                "type": "stdio",
                "command": "npx",
                "args": ["-y", "fs-server"],
                "env": '{"MCPAGENT_TEST_OVERRIDDEN": "from-record"}',
            }
        )

        assert descriptor.command == "npx"
        assert descriptor.args == ["-y", "fs-server"]
        assert descriptor.env["MCPAGENT_TEST_INHERITED"] == "from-process"
        assert descriptor.env["MCPAGENT_TEST_OVERRIDDEN"] == "from-record"

    @pytest.mark.parametrize(
        "record, message",
        [
            ({"type": "sse", "url": "http://x"}, "no name"),
            ({"name": "s", "type": "websocket", "url": "ws://x"}, "unknown transport"),
            ({"name": "s", "type": "sse"}, "requires 'url'"),
            ({"name": "s", "type": "stdio"}, "requires 'command'"),
            ({"name": "s", "type": "sse", "url": "http://x", "headers": "{bad"}, "not valid JSON"),
            ({"name": "s", "type": "sse", "url": "http://x", "reconnect": "[1]"}, "must be an object"),
        ],
    )
    def test_invalid_records(self, record, message):
        with pytest.raises(DescriptorError, match=message):
            build_provider_descriptor(record)


class TestBuildProviderDescriptors:
    def test_skips_nameless_and_invalid_records(self):
        descriptors = build_provider_descriptors(
            [
                {"name": "good", "type": "sse", "url": "http://localhost:8000/sse"},
                {"type": "sse", "url": "http://localhost:8001/sse"},
                {"name": "bad", "type": "sse"},
                {"name": "files", "type": "stdio", "command": "npx"},
            ]
        )

        assert list(descriptors) == ["good", "files"]

    def test_empty_input(self):
        assert build_provider_descriptors([]) == {}


class TestServerUrls:
    def test_parse_trims_and_drops_blanks(self):
        assert parse_server_urls(" http://a/mcp , ,http://b/sse,") == ["http://a/mcp", "http://b/sse"]

    def test_parse_empty(self):
        assert parse_server_urls("") == []
        assert parse_server_urls(None) == []

    def test_descriptor_from_url_transport(self):
        sse = descriptor_from_url("http://localhost:8000/sse", 0)
        http = descriptor_from_url("http://localhost:8000/mcp", 1)

        assert sse.transport == TransportKind.SSE
        assert sse.id == "server-0"
        assert sse.name == "MCP Server 1"
        assert http.transport == TransportKind.STREAMABLE_HTTP
        assert http.id == "server-1"
        assert http.name == "MCP Server 2"
