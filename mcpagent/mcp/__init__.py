"""
mcpagent.mcp - Tool orchestration over MCP providers.

Provider descriptors, the MCP provider client, tool-call extraction and
execution, and the conversation engine that ties them together.
"""

from mcpagent.mcp.assistant import (
    DEPTH_EXCEEDED_MESSAGE,
    MAX_TOOL_CALL_DEPTH,
    MCPAssistant,
    ModelCall,
)
from mcpagent.mcp.client import MCPProviderClient, ProviderClient
from mcpagent.mcp.events import ProgressChannel, ProgressEvent, ProgressEventType
from mcpagent.mcp.executor import ToolExecutor
from mcpagent.mcp.extractor import ToolCallExtractor, format_tool_result
from mcpagent.mcp.models import (
    ProviderDescriptor,
    ReconnectPolicy,
    Tool,
    ToolCallRequest,
    ToolCallResult,
    ToolCallState,
    ToolCallStatus,
    ToolResultContent,
    TransportKind,
)
from mcpagent.mcp.prompt import build_system_prompt
from mcpagent.mcp.registry import (
    build_provider_descriptor,
    build_provider_descriptors,
    descriptor_from_url,
    parse_server_urls,
)

__all__ = [
    "DEPTH_EXCEEDED_MESSAGE",
    "MAX_TOOL_CALL_DEPTH",
    "MCPAssistant",
    "MCPProviderClient",
    "ModelCall",
    "ProgressChannel",
    "ProgressEvent",
    "ProgressEventType",
    "ProviderClient",
    "ProviderDescriptor",
    "ReconnectPolicy",
    "Tool",
    "ToolCallExtractor",
    "ToolCallRequest",
    "ToolCallResult",
    "ToolCallState",
    "ToolCallStatus",
    "ToolExecutor",
    "ToolResultContent",
    "TransportKind",
    "build_provider_descriptor",
    "build_provider_descriptors",
    "build_system_prompt",
    "descriptor_from_url",
    "format_tool_result",
    "parse_server_urls",
]
