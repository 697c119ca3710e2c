"""
mcpagent.mcp.assistant - Conversation Engine

MCPAssistant owns one conversation: the message history, the active tool
set and the turn loop that lets a language model use tools from connected
MCP providers.

Turn loop:
    1. Call the model with the full history (hard stop past MAX_TOOL_CALL_DEPTH)
    2. Extract tool-use blocks from the reply
    3. No blocks: the reply is the final answer
    4. Otherwise run every call of the turn concurrently
    5. Feed each result (or error) back as a user message, in extraction order
    6. Recurse

Tool failures are fed back to the model rather than raised, so it can
retry with different arguments or pick another tool.

Example:
    >>> assistant = MCPAssistant(model_call=my_model, client=MCPProviderClient())
    >>> await assistant.add_server(descriptor)
    >>> answer = await assistant.run("What's the weather in Paris?")
    >>> await assistant.close()
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from mcpagent.exceptions import (
    ModelInvocationError,
    ProviderConnectionError,
    ProviderNotFoundError,
)
from mcpagent.llm.models import Message
from mcpagent.mcp.client import MCPProviderClient, ProviderClient
from mcpagent.mcp.events import ProgressChannel, ProgressEvent
from mcpagent.mcp.executor import ToolExecutor
from mcpagent.mcp.extractor import ToolCallExtractor, format_tool_result
from mcpagent.mcp.models import ProviderDescriptor, Tool, ToolCallState
from mcpagent.mcp.prompt import build_system_prompt

logger = logging.getLogger(__name__)

MAX_TOOL_CALL_DEPTH = 10
DEPTH_EXCEEDED_MESSAGE = "Maximum tool call depth reached. Please continue the conversation."

# Model call capability: ordered message list -> completion text
ModelCall = Callable[[list[Message]], Awaitable[str]]


class MCPAssistant:
    """
    Conversation engine driving a model through tool use.

    One instance belongs to exactly one session. run() must not be called
    concurrently on the same instance.
    """

    def __init__(
        self,
        model_call: ModelCall,
        client: ProviderClient | None = None,
        *,
        custom_system_prompt: str | None = None,
        auto_inject_tools: bool = True,
        progress: ProgressChannel | None = None,
        extractor: ToolCallExtractor | None = None,
        tool_timeout_seconds: float | None = 60.0,
        model_timeout_seconds: float | None = 120.0,
    ) -> None:
        """
        Create an assistant.

        Args:
            model_call: Async callable producing the next assistant turn
            client: Provider client (defaults to a new MCPProviderClient)
            custom_system_prompt: Instructions appended to the tool protocol
            auto_inject_tools: Reload tools and rebuild the prompt on add_server
            progress: Channel receiving text and tool-call state events
            extractor: Tool-use parser (defaults to the XML-style protocol)
            tool_timeout_seconds: Timeout for each tool call
            model_timeout_seconds: Timeout for each model call
        """
        self.client: ProviderClient = client if client is not None else MCPProviderClient()
        self.custom_system_prompt = custom_system_prompt
        self.auto_inject_tools = auto_inject_tools
        self.progress = progress
        self.model_timeout_seconds = model_timeout_seconds

        self._model_call = model_call
        self._extractor = extractor or ToolCallExtractor()
        self._providers: dict[str, ProviderDescriptor] = {}
        self._tools: list[Tool] = []
        self._messages: list[Message] = []
        self._closed = False
        self._executor = ToolExecutor(self.client, self._providers, tool_timeout_seconds)

        self.reset()

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def messages(self) -> list[Message]:
        """Copy of the conversation history."""
        return list(self._messages)

    @property
    def tools(self) -> list[Tool]:
        """Copy of the active tool set."""
        return list(self._tools)

    @property
    def providers(self) -> list[ProviderDescriptor]:
        """Connected providers, in connection order."""
        return list(self._providers.values())

    # ------------------------------------------------------------------
    # History and system prompt
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Clear the history and reseed it with a fresh system prompt."""
        self._messages = [Message(role="system", content=self._build_system_prompt())]

    def _build_system_prompt(self) -> str:
        return build_system_prompt(self._tools, self.custom_system_prompt)

    def update_system_prompt(self) -> None:
        """Replace the system prompt at index 0 (or insert one if missing)."""
        system_message = Message(role="system", content=self._build_system_prompt())
        if self._messages and self._messages[0].role == "system":
            self._messages[0] = system_message
        else:
            self._messages.insert(0, system_message)

    def add_user_message(self, content: str) -> None:
        self._messages.append(Message(role="user", content=content))

    def add_assistant_message(self, content: str) -> None:
        self._messages.append(Message(role="assistant", content=content))

    # ------------------------------------------------------------------
    # Providers and tools
    # ------------------------------------------------------------------

    async def add_server(self, descriptor: ProviderDescriptor) -> list[Tool]:
        """
        Connect a provider and refresh the tool set.

        Args:
            descriptor: Provider to connect

        Returns:
            Full active tool set after the refresh

        Raises:
            ProviderConnectionError: If the provider cannot be connected or
                its tools cannot be listed. The provider is not kept in
                either case.
        """
        if descriptor.id in self._providers:
            logger.warning(
                f"Provider {descriptor.id} already added",
                extra={"provider_id": descriptor.id},
            )
            return self.tools

        try:
            await self.client.connect(descriptor)
        except ProviderConnectionError:
            raise
        except Exception as e:
            raise ProviderConnectionError(
                f"Failed to connect to server: {descriptor.id}: {e}",
                provider_id=descriptor.id,
            ) from e

        self._providers[descriptor.id] = descriptor

        if self.auto_inject_tools:
            previous_tools = self._tools
            try:
                await self.load_tools()
            except Exception as e:
                # Roll back so later providers reload without this one
                del self._providers[descriptor.id]
                self._tools = previous_tools
                await self.client.disconnect(descriptor.id)
                raise ProviderConnectionError(
                    f"Failed to load tools from server: {descriptor.id}: {e}",
                    provider_id=descriptor.id,
                ) from e
            self.update_system_prompt()

        return self.tools

    async def load_tools(self) -> list[Tool]:
        """Reload tools from every connected provider, in connection order."""
        tools: list[Tool] = []
        for descriptor in self._providers.values():
            tools.extend(await self.client.list_tools(descriptor))
        self._tools = tools

        logger.info(
            f"Loaded {len(tools)} tools from {len(self._providers)} providers",
            extra={"tool_count": len(tools), "provider_count": len(self._providers)},
        )
        return self.tools

    # ------------------------------------------------------------------
    # Turn loop
    # ------------------------------------------------------------------

    def parse_tool_use(self, content: str) -> list[ToolCallState]:
        """Extract tool calls from model output as pending states."""
        requests = self._extractor.extract(content, self._tools)
        return [ToolCallState.from_request(request) for request in requests]

    async def run(self, user_message: str) -> str:
        """
        Run the conversation for one user query.

        Args:
            user_message: The user's query

        Returns:
            The final assistant text, or DEPTH_EXCEEDED_MESSAGE

        Raises:
            ModelInvocationError: If the model call fails or times out
            ProviderNotFoundError: If a tool outlived its provider (defect)
        """
        self.add_user_message(user_message)
        return await self._process_conversation(0)

    async def _process_conversation(self, depth: int) -> str:
        if depth > MAX_TOOL_CALL_DEPTH:
            logger.warning(
                "Maximum recursion depth reached in conversation",
                extra={"depth": depth},
            )
            return DEPTH_EXCEEDED_MESSAGE

        assistant_response = await self._call_model()
        self.add_assistant_message(assistant_response)
        await self._publish(ProgressEvent.assistant_text(assistant_response))

        states = self.parse_tool_use(assistant_response)
        if not states:
            return assistant_response

        logger.info(
            f"Executing {len(states)} tool calls",
            extra={"depth": depth, "tool_ids": [s.tool.id for s in states]},
        )

        await self._publish(ProgressEvent.tool_activity(states))
        for state in states:
            state.mark_invoking()
        await self._publish(ProgressEvent.tool_activity(states))

        # Every call is scheduled before any is awaited
        outcomes = await asyncio.gather(
            *(self._execute_tool_call(state, states) for state in states),
            return_exceptions=True,
        )
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        # Results enter the history in extraction order, not completion order
        for formatted in outcomes:
            self.add_user_message(formatted)

        await self._publish(ProgressEvent.tool_activity(states))

        return await self._process_conversation(depth + 1)

    async def _call_model(self) -> str:
        try:
            return await asyncio.wait_for(
                self._model_call(self.messages), timeout=self.model_timeout_seconds
            )
        except TimeoutError as e:
            raise ModelInvocationError(
                f"Model call timed out after {self.model_timeout_seconds}s"
            ) from e
        except Exception as e:
            raise ModelInvocationError(f"Model call failed: {e}") from e

    async def _execute_tool_call(self, state: ToolCallState, states: list[ToolCallState]) -> str:
        """Run one call, settle its state and return the formatted result message."""
        try:
            result = await self._executor.execute(state.tool, state.arguments)
        except ProviderNotFoundError:
            raise
        except Exception as e:
            error_message = f"Error executing tool {state.tool.id}: {e}"
            logger.error(
                error_message,
                extra={"tool_id": state.tool.id, "tool_call_id": state.id},
            )
            state.mark_error(error_message)
            await self._publish(ProgressEvent.tool_activity(states))
            return format_tool_result(state.tool.id, error_message)

        state.mark_done(result)
        await self._publish(ProgressEvent.tool_activity(states))
        return format_tool_result(state.tool.id, result)

    async def _publish(self, event: ProgressEvent) -> None:
        if self.progress is not None:
            await self.progress.publish(event)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Release all provider connections. Later calls are no-ops."""
        if self._closed:
            return
        self._closed = True
        try:
            await self.client.cleanup()
        except Exception:
            logger.warning("Error closing provider connections", exc_info=True)
        self._providers.clear()

    def __repr__(self) -> str:
        return (
            f"MCPAssistant(providers={len(self._providers)}, tools={len(self._tools)}, "
            f"messages={len(self._messages)})"
        )
