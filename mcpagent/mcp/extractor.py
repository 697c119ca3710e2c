"""
mcpagent.mcp.extractor - Tool-Call Extractor

Parses free-form model output for tool-use blocks:

    <tool_use>
      <name>{tool_id}</name>
      <arguments>{json_arguments}</arguments>
    </tool_use>

and formats tool results with the matching envelope:

    <tool_use_result>
      <name>{tool_id}</name>
      <result>{result}</result>
    </tool_use_result>

The delimiter syntax lives only in this module; the conversation engine
talks to ToolCallExtractor and never sees the pattern.
"""

import json
import logging
import re
from collections.abc import Sequence
from typing import Any

from mcpagent.mcp.models import Tool, ToolCallRequest

logger = logging.getLogger(__name__)

TOOL_USE_PATTERN = re.compile(
    r"<tool_use>[\s\S]*?<name>(?P<name>[\s\S]*?)</name>"
    r"[\s\S]*?<arguments>(?P<arguments>[\s\S]*?)</arguments>"
    r"[\s\S]*?</tool_use>"
)


def format_tool_result(tool_id: str, result: str) -> str:
    """Wrap a tool result (or error text) in the result envelope."""
    return f"<tool_use_result>\n  <name>{tool_id}</name>\n  <result>{result}</result>\n</tool_use_result>"


class ToolCallExtractor:
    """
    Extracts ToolCallRequests from model output.

    The pattern must define the named groups ``name`` and ``arguments``.
    Scanning always advances, even when the pattern matches an empty
    string, so degenerate patterns cannot loop forever.

    Example:
        >>> extractor = ToolCallExtractor()
        >>> requests = extractor.extract(assistant_text, tools)
        >>> [r.id for r in requests]
        ['server-0.search-0', 'server-1.fetch-1']
    """

    def __init__(self, pattern: re.Pattern[str] = TOOL_USE_PATTERN) -> None:
        self._pattern = pattern

    def extract(self, content: str, known_tools: Sequence[Tool]) -> list[ToolCallRequest]:
        """
        Extract all tool calls naming a known tool, in document order.

        Args:
            content: Raw model output
            known_tools: Active tool set; names are matched against Tool.id

        Returns:
            One request per matched block whose name resolves to a known tool
        """
        if not content or not known_tools:
            return []

        tools_by_id = {tool.id: tool for tool in known_tools}
        requests: list[ToolCallRequest] = []
        pos = 0

        while pos <= len(content):
            match = self._pattern.search(content, pos)
            if match is None:
                break
            # Forward progress on zero-width matches
            pos = match.end() if match.end() > match.start() else match.end() + 1

            tool_name = (match.group("name") or "").strip()
            raw_args = (match.group("arguments") or "").strip()

            tool = tools_by_id.get(tool_name)
            if tool is None:
                logger.warning(
                    f"Tool '{tool_name}' not found in available tools",
                    extra={"tool_id": tool_name},
                )
                continue

            arguments: Any = {}
            if raw_args:
                try:
                    arguments = json.loads(raw_args)
                except json.JSONDecodeError:
                    logger.warning(
                        f"Failed to parse arguments for {tool_name} as JSON, passing raw text",
                        extra={"tool_id": tool_name},
                    )
                    arguments = raw_args

            requests.append(
                ToolCallRequest(
                    id=f"{tool.id}-{len(requests)}",
                    tool=tool,
                    arguments=arguments,
                    raw_text=match.group(0),
                )
            )

        return requests
