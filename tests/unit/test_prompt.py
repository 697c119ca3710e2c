"""
Unit tests for mcpagent.mcp.prompt - system prompt composition.
"""

from mcpagent.mcp.models import Tool
from mcpagent.mcp.prompt import DEFAULT_SYSTEM_PROMPT, build_system_prompt, format_available_tools


def _search_tool() -> Tool:
    return Tool(
        id="server-0.search",
        name="search",
        provider_id="server-0",
        provider_name="MCP Server 1",
        description="Search the web",
        input_schema={"type": "object", "required": ["query"]},
    )


def test_no_tools_no_custom_prompt_uses_default():
    assert build_system_prompt([]) == DEFAULT_SYSTEM_PROMPT


def test_tools_listed_by_id():
    prompt = build_system_prompt([_search_tool()])

    assert "<name>server-0.search</name>" in prompt
    assert "<description>Search the web</description>" in prompt
    assert '<arguments>{"type": "object", "required": ["query"]}</arguments>' in prompt
    assert "<tool_use>" in prompt


def test_custom_prompt_without_tools():
    prompt = build_system_prompt([], "Be concise.")

    assert "<tools></tools>" in prompt
    assert prompt.rstrip().endswith("Be concise.")


def test_format_available_tools_empty():
    assert format_available_tools([]) == "<tools></tools>"


def test_format_available_tools_wraps_each_tool():
    rendered = format_available_tools([_search_tool(), _search_tool()])

    assert rendered.startswith("<tools>\n")
    assert rendered.endswith("\n</tools>")
    assert rendered.count("<tool>") == 2


def test_protocol_example_braces_rendered():
    prompt = build_system_prompt([_search_tool()])

    assert '{"code": "5 + 3 + 1294.678"}' in prompt
    assert "{tool_name}" in prompt
