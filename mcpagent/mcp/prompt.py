"""
mcpagent.mcp.prompt - System Prompt Composition

Builds the system prompt that teaches the model the tool-use protocol and
lists the tools currently available. Rebuilt by the conversation engine
whenever the tool set changes.
"""

import json
from collections.abc import Sequence

from mcpagent.mcp.models import Tool

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant. Answer the user's questions to the best of your ability."
)

TOOL_USE_SYSTEM_PROMPT = """\
In this environment you have access to a set of tools you can use to answer the user's question. \
You can use one or more tools per message, and will receive the result of each tool use in the \
user's response. You use tools step-by-step to accomplish a given task, with each tool use \
informed by the result of the previous tool use.

## Tool Use Formatting

Tool use is formatted using XML-style tags. The tool name is enclosed in <name> tags and the \
arguments, a JSON object, in <arguments> tags:

<tool_use>
  <name>{{tool_name}}</name>
  <arguments>{{json_arguments}}</arguments>
</tool_use>

The tool name must be the exact name of a tool listed below. For example:

<tool_use>
  <name>python_interpreter</name>
  <arguments>{{"code": "5 + 3 + 1294.678"}}</arguments>
</tool_use>

The user will respond with the result of the tool use, formatted as follows:

<tool_use_result>
  <name>{{tool_name}}</name>
  <result>{{result}}</result>
</tool_use_result>

The result is a string. You can use it as input for the next action. If the result \
reports an error, fix the arguments or choose another tool instead of repeating the same call.

## Tool Use Example

User: What is the result of the following operation: 5 + 3 + 1294.678?

A: I can use the python_interpreter tool to calculate the result of the operation.
<tool_use>
  <name>python_interpreter</name>
  <arguments>{{"code": "5 + 3 + 1294.678"}}</arguments>
</tool_use>

User: <tool_use_result>
  <name>python_interpreter</name>
  <result>1302.678</result>
</tool_use_result>

A: The result of the operation is 1302.678.

## Available Tools

The example above used a notional tool that might not exist for you. You only have access to these tools:
{available_tools}

## Tool Use Rules

1. Always use the right arguments for the tools. Never use variable names as the action arguments, use the value instead.
2. Call a tool only when needed: if you can answer yourself, do so.
3. If no tool call is needed, answer the question directly without any <tool_use> block.
4. Never re-do a tool call that you previously did with the exact same arguments.
5. Always use the XML tag format shown above for tool use. Do not use any other format.

# User Instructions
{user_instructions}
"""


def format_available_tools(tools: Sequence[Tool]) -> str:
    """Render the tool list as the <tools> block embedded in the system prompt."""
    if not tools:
        return "<tools></tools>"

    entries = []
    for tool in tools:
        schema = json.dumps(tool.input_schema) if tool.input_schema else ""
        entries.append(
            "<tool>\n"
            f"  <name>{tool.id}</name>\n"
            f"  <description>{tool.description}</description>\n"
            f"  <arguments>{schema}</arguments>\n"
            "</tool>"
        )
    return "<tools>\n" + "\n".join(entries) + "\n</tools>"


def build_system_prompt(tools: Sequence[Tool], custom_prompt: str | None = None) -> str:
    """
    Compose the system prompt for the current tool set.

    With no tools and no custom prompt, the plain default prompt is used.

    Args:
        tools: Tools currently available to the model
        custom_prompt: Caller-provided instructions appended to the protocol

    Returns:
        System prompt text
    """
    if not tools and not custom_prompt:
        return DEFAULT_SYSTEM_PROMPT

    return TOOL_USE_SYSTEM_PROMPT.format(
        available_tools=format_available_tools(tools),
        user_instructions=custom_prompt or DEFAULT_SYSTEM_PROMPT,
    )
