"""
mcpagent.cli - Command-Line Interface

Ask a question, letting the model use tools from MCP servers.

Usage:
    python -m mcpagent.cli ask "What's the weather in Paris?" --servers http://localhost:8000/mcp
    python -m mcpagent.cli ask "What's 2+2?" --no-auto-connect
    python -m mcpagent.cli ask "Summarize the repo" --servers URL --show-events
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from mcpagent.exceptions import MCPAgentError
from mcpagent.mcp.events import ProgressChannel
from mcpagent.settings import get_settings
from mcpagent.skill import MCPAgentSkill, SkillConfig, SkillInput

logger = logging.getLogger(__name__)


async def _print_events(channel: ProgressChannel) -> None:
    """Print each progress event as one JSON line."""
    async for event in channel:
        print(event.model_dump_json(exclude_none=True), flush=True)


async def _ask(args: argparse.Namespace) -> int:
    """Answer one query and print the result."""
    settings = get_settings()
    if not settings.has_llm_credentials():
        print("No LLM credentials: set ANTHROPIC_API_KEY or OPENAI_API_KEY", file=sys.stderr)
        return 1

    config = SkillConfig(
        mcp_server_urls=args.servers if args.servers is not None else settings.mcp_server_urls,
        auto_connect=settings.mcp_auto_connect and not args.no_auto_connect,
        model_temperature=(
            args.temperature if args.temperature is not None else settings.mcp_model_temperature
        ),
    )
    skill_input = SkillInput(query=args.query, images=args.image or [], context=args.context)

    skill = MCPAgentSkill(settings=settings)
    channel = ProgressChannel(maxsize=settings.progress_queue_size)
    consumer = asyncio.create_task(_print_events(channel)) if args.show_events else None

    try:
        result = await skill.invoke(
            skill_input, config, events=channel if consumer is not None else None
        )
    except MCPAgentError as e:
        logger.error(f"Query failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        channel.close()
        if consumer is not None:
            await consumer
        await skill.cleanup_sessions()

    print(result.answer)
    if result.fallback_reason:
        logger.info(f"Answered without tools ({result.fallback_reason})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="mcpagent",
        description="mcpagent - Answer questions with tools from MCP servers",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: MCPAGENT_LOG_LEVEL or INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ask
    ask_p = subparsers.add_parser("ask", help="Answer a query")
    ask_p.add_argument("query", help="User query")
    ask_p.add_argument(
        "--servers",
        default=None,
        help="Comma-separated MCP server URLs (default: MCPAGENT_MCP_SERVER_URLS)",
    )
    ask_p.add_argument(
        "--no-auto-connect",
        action="store_true",
        help="Answer directly without connecting to MCP servers",
    )
    ask_p.add_argument("--temperature", type=float, default=None, help="Model temperature (0-1)")
    ask_p.add_argument("--context", default=None, help="Extra context for the query")
    ask_p.add_argument(
        "--image", action="append", default=None, help="Image URL (repeatable)"
    )
    ask_p.add_argument(
        "--show-events",
        action="store_true",
        help="Print progress events as JSON lines",
    )
    ask_p.set_defaults(func=_ask)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    if not args.query.strip():
        parser.error("query must not be empty")
    if args.temperature is not None and not 0.0 <= args.temperature <= 1.0:
        parser.error("--temperature must be between 0 and 1")

    logging.basicConfig(
        level=getattr(logging, args.log_level or get_settings().log_level.upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        sys.exit(asyncio.run(args.func(args)))
    except KeyboardInterrupt:
        sys.exit(0)
