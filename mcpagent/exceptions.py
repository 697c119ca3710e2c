"""
mcpagent.exceptions - Custom exceptions for tool orchestration

Provides a hierarchy of domain-specific exceptions so callers can tell
recoverable runtime conditions (connection and tool failures) apart from
programming-invariant violations.

Example:
    >>> from mcpagent.exceptions import ProviderConnectionError
    >>>
    >>> try:
    ...     await assistant.add_server(descriptor)
    ... except ProviderConnectionError as e:
    ...     logger.warning(f"Provider unavailable: {e}")
"""

from typing import Any


class MCPAgentError(Exception):
    """Base exception for all mcpagent errors."""


class DescriptorError(MCPAgentError):
    """
    Raised when a raw provider record cannot be turned into a descriptor.

    This can occur due to:
    - Unknown transport type
    - Missing url (sse / streamableHttp) or command (stdio)
    - Malformed JSON in headers, env or reconnect fields
    """


class ProviderConnectionError(MCPAgentError):
    """Raised when connecting to a tool provider fails."""

    def __init__(self, message: str, provider_id: str | None = None) -> None:
        super().__init__(message)
        self.provider_id = provider_id


class ProviderNotFoundError(MCPAgentError):
    """
    Raised when a tool references a provider that is not connected.

    This is an invariant violation (a tool outlived its provider's
    connection), not an expected runtime condition. It is never converted
    into a tool result.
    """


class ToolExecutionError(MCPAgentError):
    """
    Raised when a tool call fails.

    Carries the provider's own error payload when one is available.
    """

    def __init__(
        self,
        message: str,
        tool_id: str | None = None,
        payload: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.tool_id = tool_id
        self.payload = payload


class ToolCallTimeoutError(ToolExecutionError):
    """Raised when a provider does not answer a tool call in time."""


class InvalidToolCallTransition(MCPAgentError):
    """Raised on a tool-call state change outside pending -> invoking -> done|error."""


class ModelInvocationError(MCPAgentError):
    """
    Raised when the language model call fails or times out.

    Not recoverable inside the conversation engine; the skill layer
    falls back to a direct answer.
    """


class DirectAnswerError(MCPAgentError):
    """
    Raised when the direct (toolless) answer fails.

    This is the answer of last resort and is not retried.
    """


__all__ = [
    "DescriptorError",
    "DirectAnswerError",
    "InvalidToolCallTransition",
    "MCPAgentError",
    "ModelInvocationError",
    "ProviderConnectionError",
    "ProviderNotFoundError",
    "ToolCallTimeoutError",
    "ToolExecutionError",
]
