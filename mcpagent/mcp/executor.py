"""
mcpagent.mcp.executor - Tool Execution

Executes a single tool call against its owning provider and turns the
provider's reply into text suitable for embedding in the conversation.
"""

import asyncio
import logging
from collections.abc import Mapping
from time import time
from typing import Any

from mcpagent.exceptions import ProviderNotFoundError, ToolCallTimeoutError, ToolExecutionError
from mcpagent.mcp.client import ProviderClient
from mcpagent.mcp.models import ProviderDescriptor, Tool, ToolCallResult

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "Unknown error"


def format_result_content(result: ToolCallResult) -> str:
    """Join all text content items with newlines; other content types are ignored."""
    return "\n".join(result.text_items)


class ToolExecutor:
    """
    Executes tools on connected providers with a per-call timeout.

    Unlike a fire-and-forget runner, execute() raises on failure: the
    conversation engine decides how failures are fed back to the model.

    Example:
        >>> executor = ToolExecutor(client, providers, timeout_seconds=60)
        >>> text = await executor.execute(tool, {"query": "mcp"})
    """

    def __init__(
        self,
        client: ProviderClient,
        providers: Mapping[str, ProviderDescriptor],
        timeout_seconds: float | None = 60.0,
    ):
        """
        Initialize tool executor.

        Args:
            client: Provider client holding the live connections
            providers: Live view of connected providers, keyed by id
            timeout_seconds: Per-call timeout (None disables it)
        """
        self.client = client
        self.providers = providers
        self.timeout_seconds = timeout_seconds

    async def execute(self, tool: Tool, arguments: Any) -> str:
        """
        Execute one tool call.

        Args:
            tool: Resolved tool from the engine's active tool set
            arguments: Parsed arguments, or the raw string when they were not JSON

        Returns:
            Text content of the provider's result

        Raises:
            ProviderNotFoundError: If the tool's provider is not connected
            ToolCallTimeoutError: If the provider does not answer in time
            ToolExecutionError: If the provider reports an error
        """
        provider = self.providers.get(tool.provider_id)
        if provider is None:
            raise ProviderNotFoundError(
                f"Provider {tool.provider_id} for tool {tool.id} is not connected"
            )

        start_time = time()
        try:
            response = await asyncio.wait_for(
                self.client.call_tool(provider, tool.name, arguments),
                timeout=self.timeout_seconds,
            )
        except TimeoutError as e:
            raise ToolCallTimeoutError(
                f"Tool call timed out after {self.timeout_seconds}s",
                tool_id=tool.id,
            ) from e

        duration_ms = (time() - start_time) * 1000

        if response.is_error:
            items = response.text_items
            message = items[0] if items else UNKNOWN_ERROR
            logger.warning(
                f"Tool {tool.id} reported an error: {message}",
                extra={"tool_id": tool.id, "duration_ms": duration_ms},
            )
            raise ToolExecutionError(message, tool_id=tool.id, payload=response)

        logger.info(
            f"Tool {tool.id} executed successfully",
            extra={"tool_id": tool.id, "duration_ms": duration_ms},
        )
        return format_result_content(response)
