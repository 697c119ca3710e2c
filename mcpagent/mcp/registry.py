"""
mcpagent.mcp.registry - Provider Registry Adapter

Converts raw provider records (as stored by a settings UI or passed on the
command line) into typed ProviderDescriptors. Pure transformation, no I/O.

Raw records may carry ``headers``, ``env`` and ``reconnect`` as
JSON-encoded strings; they are decoded here. For stdio providers the
record's env is merged over the current process environment.

Example:
    >>> descriptors = build_provider_descriptors([
    ...     {"name": "search", "type": "sse", "url": "http://localhost:8000/sse"},
    ...     {"name": "files", "type": "stdio", "command": "npx", "args": ["fs-server"]},
    ... ])
    >>> sorted(descriptors)
    ['files', 'search']
"""

import json
import logging
import os
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from mcpagent.exceptions import DescriptorError
from mcpagent.mcp.models import ProviderDescriptor, ReconnectPolicy, TransportKind

logger = logging.getLogger(__name__)

# Accepted spellings of each transport kind
_TRANSPORT_ALIASES = {
    "stdio": TransportKind.STDIO,
    "sse": TransportKind.SSE,
    "streamableHttp": TransportKind.STREAMABLE_HTTP,
    "streamable": TransportKind.STREAMABLE_HTTP,
    "streamable_http": TransportKind.STREAMABLE_HTTP,
}


def _decode_json_field(value: Any, field: str, provider: str) -> Any:
    """Decode a field that may arrive either as JSON text or already decoded."""
    if not isinstance(value, str):
        return value
    if not value.strip():
        return None
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise DescriptorError(f"Provider '{provider}': field '{field}' is not valid JSON: {e}") from e


def _parse_reconnect(value: Any, provider: str) -> ReconnectPolicy:
    decoded = _decode_json_field(value, "reconnect", provider)
    if decoded is None:
        return ReconnectPolicy()
    if not isinstance(decoded, Mapping):
        raise DescriptorError(f"Provider '{provider}': 'reconnect' must be an object")
    try:
        return ReconnectPolicy.model_validate(dict(decoded))
    except ValidationError as e:
        raise DescriptorError(f"Provider '{provider}': invalid reconnect policy: {e}") from e


def _parse_string_map(value: Any, field: str, provider: str) -> dict[str, str] | None:
    decoded = _decode_json_field(value, field, provider)
    if decoded is None:
        return None
    if not isinstance(decoded, Mapping):
        raise DescriptorError(f"Provider '{provider}': '{field}' must be an object")
    return {str(k): str(v) for k, v in decoded.items()}


def build_provider_descriptor(record: Mapping[str, Any]) -> ProviderDescriptor:
    """
    Build a descriptor from one raw provider record.

    Args:
        record: Raw provider parameters (id, name, type, url, command,
            args, env, headers, reconnect)

    Returns:
        Typed, immutable ProviderDescriptor

    Raises:
        DescriptorError: If the record is missing required fields, names an
            unknown transport or carries malformed JSON
    """
    name = record.get("name")
    if not name:
        raise DescriptorError("Provider record has no name")

    raw_type = record.get("type") or ""
    transport = _TRANSPORT_ALIASES.get(raw_type)
    if transport is None:
        raise DescriptorError(
            f"Provider '{name}': unknown transport '{raw_type}'. "
            "Use 'stdio', 'sse' or 'streamableHttp'."
        )

    provider_id = record.get("id") or name
    reconnect = _parse_reconnect(record.get("reconnect"), name)

    if transport == TransportKind.STDIO:
        command = record.get("command")
        if not command:
            raise DescriptorError(f"Provider '{name}': stdio transport requires 'command'")
        env = _parse_string_map(record.get("env"), "env", name) or {}
        return ProviderDescriptor(
            id=provider_id,
            name=name,
            transport=transport,
            command=command,
            args=list(record.get("args") or []),
            env={**os.environ, **env},
            reconnect=reconnect,
        )

    url = record.get("url") or record.get("baseUrl")
    if not url:
        raise DescriptorError(f"Provider '{name}': {transport.value} transport requires 'url'")
    return ProviderDescriptor(
        id=provider_id,
        name=name,
        transport=transport,
        url=url,
        headers=_parse_string_map(record.get("headers"), "headers", name),
        reconnect=reconnect,
    )


def build_provider_descriptors(
    records: Iterable[Mapping[str, Any]],
) -> dict[str, ProviderDescriptor]:
    """
    Build descriptors for a batch of provider records.

    Records without a name or with invalid parameters are logged and skipped.

    Args:
        records: Raw provider records

    Returns:
        Mapping of provider id -> descriptor, in input order
    """
    descriptors: dict[str, ProviderDescriptor] = {}

    for record in records:
        if not record.get("name"):
            continue
        try:
            descriptor = build_provider_descriptor(record)
        except DescriptorError as e:
            logger.warning(
                f"Skipping provider record: {e}",
                extra={"provider_name": record.get("name")},
            )
            continue

        if descriptor.id in descriptors:
            logger.warning(
                f"Duplicate provider id '{descriptor.id}', keeping the last record",
                extra={"provider_id": descriptor.id},
            )
        descriptors[descriptor.id] = descriptor

    return descriptors


def descriptor_from_url(url: str, index: int) -> ProviderDescriptor:
    """
    Build a descriptor for a bare endpoint URL.

    URLs containing '/sse' use the SSE transport; everything else is
    treated as streamable HTTP.

    Args:
        url: Provider endpoint
        index: Stable position used for the id and display name

    Returns:
        ProviderDescriptor with id 'server-{index}'
    """
    transport = TransportKind.SSE if "/sse" in url else TransportKind.STREAMABLE_HTTP
    return ProviderDescriptor(
        id=f"server-{index}",
        name=f"MCP Server {index + 1}",
        transport=transport,
        url=url,
    )


def parse_server_urls(value: str | None) -> list[str]:
    """Split a comma-separated endpoint list, dropping blanks."""
    if not value:
        return []
    return [url.strip() for url in value.split(",") if url.strip()]
