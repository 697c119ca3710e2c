"""
mcpagent.skill - MCP agent skill

Session orchestration on top of the Conversation Engine: connects the
configured MCP servers per query, runs the tool loop and falls back to a
direct answer when tools are unavailable.
"""

from mcpagent.skill.agent import LLMModelCall, MCPAgentSkill
from mcpagent.skill.fallback import DirectAnswerPolicy
from mcpagent.skill.models import ConnectionSummary, SkillConfig, SkillInput, SkillResult
from mcpagent.skill.sessions import DescriptorCache, Session, SessionRegistry

__all__ = [
    "ConnectionSummary",
    "DescriptorCache",
    "DirectAnswerPolicy",
    "LLMModelCall",
    "MCPAgentSkill",
    "Session",
    "SessionRegistry",
    "SkillConfig",
    "SkillInput",
    "SkillResult",
]
