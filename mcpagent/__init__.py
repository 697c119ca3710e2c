"""
mcpagent - Agent tool orchestration over MCP servers

Lets a language model answer a query by calling tools exposed by MCP
(Model Context Protocol) servers, falling back to a direct answer when no
tools are available.

This package provides:
1. Conversation engine (tool-use extraction, concurrent execution, bounded recursion)
2. MCP provider client (stdio, SSE and streamable HTTP transports)
3. Skill layer (per-query sessions, partial-failure connects, direct-answer fallback)
4. Multi-provider LLM service (Anthropic, OpenAI) and a CLI

Example:
    >>> from mcpagent.skill import MCPAgentSkill, SkillConfig, SkillInput
    >>> skill = MCPAgentSkill()
    >>> result = await skill.invoke(
    ...     SkillInput(query="What's the weather in Paris?"),
    ...     SkillConfig(mcp_server_urls="http://localhost:8000/mcp"),
    ... )
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = ["__version__"]
