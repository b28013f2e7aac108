# =============================================================================
# core/registry.py - The static tool registry
# =============================================================================
#
# Three tools, one input schema.  The only thing that differs between them
# is the model variant bound when the CompletionAdapter runs:
#
#   perplexity_ask       →  sonar-pro            (fast)
#   perplexity_research  →  sonar-deep-research  (deep, multi-step research)
#   perplexity_reason    →  sonar-reasoning-pro  (explicit reasoning)
#
# The descriptions are what the host LLM reads to pick a tool, so they spell
# out the input contract, including the "last message must be from the user"
# rule.
# =============================================================================

from typing import Optional

from core.models import ToolDescriptor

ASK_MODEL = "sonar-pro"
RESEARCH_MODEL = "sonar-deep-research"
REASON_MODEL = "sonar-reasoning-pro"

_INPUT_CONTRACT = (
    "Accepts an array of messages (each with a role and content) "
    "and the last message must have role `user`. "
)

PERPLEXITY_ASK_TOOL = ToolDescriptor(
    name="perplexity_ask",
    description=(
        "Engages in a conversation using the Sonar API. "
        + _INPUT_CONTRACT
        + "Returns an ask completion response from the Perplexity model."
    ),
    model=ASK_MODEL,
)

PERPLEXITY_RESEARCH_TOOL = ToolDescriptor(
    name="perplexity_research",
    description=(
        "Performs deep research using the Perplexity API. "
        + _INPUT_CONTRACT
        + "Returns a comprehensive research response with citations."
    ),
    model=RESEARCH_MODEL,
)

PERPLEXITY_REASON_TOOL = ToolDescriptor(
    name="perplexity_reason",
    description=(
        "Performs reasoning tasks using the Perplexity API. "
        + _INPUT_CONTRACT
        + "Returns a well-reasoned response using the sonar-reasoning-pro model."
    ),
    model=REASON_MODEL,
)

TOOLS: tuple[ToolDescriptor, ...] = (
    PERPLEXITY_ASK_TOOL,
    PERPLEXITY_RESEARCH_TOOL,
    PERPLEXITY_REASON_TOOL,
)

_BY_NAME: dict[str, ToolDescriptor] = {tool.name: tool for tool in TOOLS}


def get_tool(name: str) -> Optional[ToolDescriptor]:
    """Look up a descriptor by tool name; None if the name is not registered."""
    return _BY_NAME.get(name)


def model_for(name: str) -> str:
    """Return the model variant bound to a tool.  Raises KeyError if unknown."""
    return _BY_NAME[name].model
