# =============================================================================
# core/models.py - Data Models (the "nouns" of the system)
# =============================================================================
#
# Every value here is request-scoped: it is built for one tool call and
# thrown away afterwards.  Nothing is shared or mutated between calls.
#
# TWO KINDS OF MODELS:
#   - pydantic models for data that crosses a boundary and must be
#     validated (tool arguments coming in, API responses coming back).
#   - frozen dataclasses for values we build ourselves (requests, results,
#     tool descriptors, call outcomes).
# =============================================================================

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# -----------------------------------------------------------------------------
# Message / ToolArguments - what a tool call carries in
# -----------------------------------------------------------------------------
# All three tools share this input shape.  MESSAGES_INPUT_SCHEMA is the
# inputSchema advertised to MCP clients; ToolArguments validates against
# the same shape.  Keys beyond role/content are kept and forwarded.
# -----------------------------------------------------------------------------
MESSAGES_INPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "messages": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "role": {
                        "type": "string",
                        "description": "Role of the message (e.g., system, user, assistant)",
                    },
                    "content": {
                        "type": "string",
                        "description": "The content of the message",
                    },
                },
                "required": ["role", "content"],
            },
            "description": "Array of conversation messages",
        },
    },
    "required": ["messages"],
}


class Message(BaseModel):
    """One conversation turn."""

    model_config = ConfigDict(extra="allow")

    role: str = Field(description="Role of the message (e.g., system, user, assistant)")
    content: str = Field(description="The content of the message")


class ToolArguments(BaseModel):
    """Validated arguments for every Perplexity tool."""

    messages: list[Message] = Field(description="Array of conversation messages")


# -----------------------------------------------------------------------------
# CompletionRequest - the outbound body
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class CompletionRequest:
    """A chat-completion request bound to one model variant."""

    model: str                         # "sonar-pro", "sonar-deep-research", ...
    messages: tuple[Message, ...]      # Supplied order, unmodified

    def to_payload(self) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [message.model_dump() for message in self.messages],
        }


# -----------------------------------------------------------------------------
# CompletionResponse - the part of the API response we read
# -----------------------------------------------------------------------------
# The API returns many more fields (usage, id, search results...).  They are
# ignored; only the first choice's content and the citation list matter.
# -----------------------------------------------------------------------------
class ChoiceMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    content: str


class Choice(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: ChoiceMessage


class CompletionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    choices: list[Choice]
    citations: Optional[list[str]] = None


# -----------------------------------------------------------------------------
# CompletionResult - answer text plus citations
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class CompletionResult:
    """The answer text and the source URLs the API cited for it."""

    text: str
    citations: tuple[str, ...] = ()

    def render(self) -> str:
        """Return the text with citations appended as a numbered list.

        Example:
            Paris is the capital of France.

            Citations:
            [1] https://en.wikipedia.org/wiki/Paris
            [2] https://www.britannica.com/place/Paris
        """
        if not self.citations:
            return self.text
        lines = [f"[{index}] {url}\n" for index, url in enumerate(self.citations, start=1)]
        return self.text + "\n\nCitations:\n" + "".join(lines)


# -----------------------------------------------------------------------------
# ToolDescriptor - one entry of the tool registry
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class ToolDescriptor:
    """A tool as advertised to MCP clients, plus the model it is bound to."""

    name: str                          # "perplexity_ask"
    description: str                   # Read by the LLM to decide when to call
    model: str                         # Model variant used for completions
    input_schema: dict[str, Any] = field(
        default_factory=lambda: copy.deepcopy(MESSAGES_INPUT_SCHEMA),
        compare=False,
    )


# -----------------------------------------------------------------------------
# Call outcomes - success or a tagged failure
# -----------------------------------------------------------------------------
# CompletionAdapter.execute() never raises for a per-call problem.  It
# returns one of these two values and the MCP layer turns it into a result
# envelope (isError false / true).
# -----------------------------------------------------------------------------
class ErrorKind(str, Enum):
    INVALID_ARGUMENTS = "invalid_arguments"
    UNKNOWN_TOOL = "unknown_tool"
    UPSTREAM_STATUS = "upstream_status"      # API answered with non-2xx
    NO_RESPONSE = "no_response"              # Sent, but nothing came back
    REQUEST_SETUP = "request_setup"          # Could not build/send the request
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class ToolSuccess:
    text: str

    is_error = False


@dataclass(frozen=True)
class ToolFailure:
    kind: ErrorKind
    message: str

    is_error = True

    @property
    def display_text(self) -> str:
        """Text delivered to the MCP client inside the error envelope."""
        if self.kind is ErrorKind.UNKNOWN_TOOL:
            return self.message
        return f"Error: {self.message}"


ToolOutcome = Union[ToolSuccess, ToolFailure]
