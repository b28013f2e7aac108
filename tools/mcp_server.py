# =============================================================================
# tools/mcp_server.py - FastMCP Tool Server (the dispatch boundary)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Registers one MCP tool per entry in core/registry.py.  Each tool is a
#   thin wrapper: it hands its arguments to CompletionAdapter.execute() and
#   turns the outcome into an MCP result.
#
# HOW IT WORKS (the flow):
#   1. The host (an AI assistant) lists tools → FastMCP answers from the
#      three registered descriptors
#   2. The host calls e.g. "perplexity_ask" with a messages array
#   3. FastMCP validates the arguments against the tool's input schema and
#      calls the wrapper below
#   4. ToolSuccess → the text is returned (isError: false)
#      ToolFailure → ToolError is raised, FastMCP answers isError: true
#
#   A failed call never stops the server; the next request is served
#   normally.
# =============================================================================

import logging
import sys
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from pydantic import Field

from core.completion import CompletionAdapter
from core.models import Message, ToolDescriptor, ToolFailure, ToolOutcome
from core.registry import TOOLS

# =============================================================================
# Logging Setup
# =============================================================================
# Logs go to STDERR.  STDOUT is the MCP transport; anything else written
# there corrupts the JSON-RPC stream.
#
# ANSI colours:
#   CYAN    incoming tool calls
#   GREEN   responses
#   YELLOW  status and errors
# =============================================================================

_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

logger = logging.getLogger("perplexity_mcp")


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with its parameters in CYAN."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
    logger.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    """Log an intermediate status message in YELLOW."""
    logger.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, outcome: ToolOutcome) -> ToolOutcome:
    """Log a one-line summary of the outcome in GREEN, then return it."""
    if isinstance(outcome, ToolFailure):
        _log_status(f"{tool_name} failed ({outcome.kind.value}): {outcome.message}")
    else:
        logger.info(f"{_GREEN}  ← {tool_name} response: {len(outcome.text)} chars{_RESET}")
    return outcome


# =============================================================================
# Server construction
# =============================================================================

SERVER_NAME = "perplexity-ask"

SERVER_INSTRUCTIONS = """
Perplexity tools for answering questions with live web search.
- perplexity_ask: quick conversational answers (sonar-pro).
- perplexity_research: slow, thorough multi-step research (sonar-deep-research).
- perplexity_reason: step-by-step reasoning (sonar-reasoning-pro).
Pass the conversation as `messages`; the last message must have role `user`.
Answers end with a numbered "Citations:" list when sources were used.
""".strip()


def _register_tool(mcp: FastMCP, adapter: CompletionAdapter, descriptor: ToolDescriptor) -> None:
    tool_name = descriptor.name

    async def call_perplexity(
        messages: Annotated[list[Message], Field(description="Array of conversation messages")],
    ) -> str:
        _log_request(tool_name, messages=len(messages), model=descriptor.model)
        outcome = _log_response(
            tool_name,
            await adapter.execute(
                tool_name,
                {"messages": [message.model_dump() for message in messages]},
            ),
        )
        if isinstance(outcome, ToolFailure):
            raise ToolError(outcome.display_text)
        return outcome.text

    call_perplexity.__name__ = tool_name
    tool = Tool.from_function(call_perplexity, name=tool_name, description=descriptor.description)
    # Advertise the registry's schema; arguments are still validated against
    # the signature above, which accepts the same shape.
    mcp.add_tool(tool.model_copy(update={"parameters": descriptor.input_schema}))


def build_server(adapter: CompletionAdapter) -> FastMCP:
    """Create the FastMCP server exposing every registered Perplexity tool."""
    mcp = FastMCP(SERVER_NAME, instructions=SERVER_INSTRUCTIONS)
    for descriptor in TOOLS:
        _register_tool(mcp, adapter, descriptor)
    return mcp
