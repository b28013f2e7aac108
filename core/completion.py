# =============================================================================
# core/completion.py - The Completion Adapter
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Turns one tool call into one POST to the Perplexity chat-completions
#   endpoint, and turns whatever happens into a ToolSuccess or ToolFailure.
#
# THE FLOW (CompletionAdapter.execute):
#   1. Look up the tool → unknown name is a ToolFailure, no HTTP call
#   2. Validate arguments with ToolArguments → bad input is a ToolFailure
#   3. Bind the tool's model and build a CompletionRequest
#   4. Pick a proxy (core/proxy.py) and POST the request with httpx
#   5. Render the first choice's content plus numbered citations
#
# ERROR MAPPING:
#   non-2xx status          →  UPSTREAM_STATUS  (status, reason, raw body)
#   client/URL/proxy setup  →  REQUEST_SETUP
#   sent, nothing came back →  NO_RESPONSE
#   anything else           →  UNEXPECTED
#
#   There are no retries.  Every failure is reported on the first attempt.
# =============================================================================

import json
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from core.config import ServerSettings
from core.models import (
    CompletionRequest,
    CompletionResponse,
    CompletionResult,
    ErrorKind,
    Message,
    ToolArguments,
    ToolFailure,
    ToolOutcome,
    ToolSuccess,
)
from core.proxy import resolve_proxy
from core.registry import get_tool

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Optional[str]], httpx.AsyncClient]

NO_RESPONSE_MESSAGE = "Network error while calling Perplexity API: No response received"


class RequestSetupError(Exception):
    """The HTTP client for a call could not be constructed."""


def default_client_factory(proxy_url: Optional[str]) -> httpx.AsyncClient:
    """Build a client that tunnels through proxy_url, or connects directly if None.

    trust_env is off so httpx never applies proxy variables on its own; the
    proxy decision is made by resolve_proxy().  Deep-research calls can run
    for several minutes, so there is no client-side timeout.  Redirects are
    followed; only the final response's status is checked.
    """
    return httpx.AsyncClient(
        proxy=proxy_url,
        timeout=None,
        trust_env=False,
        follow_redirects=True,
    )


def _field_path(loc: Sequence[Any]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def _describe_validation_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    loc = tuple(error["loc"])
    if loc in ((), ("messages",)):
        return "'messages' must be an array"
    return f"'{_field_path(loc)}' {error['msg'].lower()}"


def _response_body_text(response: httpx.Response) -> str:
    try:
        return json.dumps(response.json(), separators=(",", ":"), ensure_ascii=False)
    except ValueError:
        return response.text


def parse_arguments(tool_name: str, arguments: Optional[Mapping[str, Any]]) -> ToolArguments:
    """Validate raw tool arguments.

    Raises:
        ValueError: the arguments are missing or malformed.  The message
            names the tool and the offending field.
    """
    if arguments is None:
        raise ValueError(f"No arguments provided for {tool_name}")
    try:
        return ToolArguments.model_validate(arguments)
    except ValidationError as exc:
        raise ValueError(
            f"Invalid arguments for {tool_name}: {_describe_validation_error(exc)}"
        ) from exc


def _warn_unless_user_last(tool_name: str, messages: Sequence[Message]) -> None:
    # Documented precondition, not enforced: the request is sent regardless.
    if not messages:
        logger.warning("%s called with an empty messages array", tool_name)
    elif messages[-1].role != "user":
        logger.warning(
            "%s called with last message role %r; expected 'user'",
            tool_name,
            messages[-1].role,
        )


class CompletionAdapter:
    """Executes Perplexity tool calls against the chat-completions API.

    Stateless apart from the immutable settings it is built with, so one
    instance serves any number of concurrent calls.
    """

    def __init__(
        self,
        settings: ServerSettings,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory or default_client_factory

    async def execute(
        self,
        tool_name: str,
        arguments: Optional[Mapping[str, Any]],
    ) -> ToolOutcome:
        """Run one tool call and return its outcome.  Never raises for per-call errors."""
        tool = get_tool(tool_name)
        if tool is None:
            return ToolFailure(ErrorKind.UNKNOWN_TOOL, f"Unknown tool: {tool_name}")

        try:
            parsed = parse_arguments(tool_name, arguments)
        except ValueError as exc:
            return ToolFailure(ErrorKind.INVALID_ARGUMENTS, str(exc))

        request = CompletionRequest(model=tool.model, messages=tuple(parsed.messages))
        _warn_unless_user_last(tool_name, request.messages)

        try:
            result = await self.complete(request)
        except httpx.HTTPStatusError as exc:
            response = exc.response
            return ToolFailure(
                ErrorKind.UPSTREAM_STATUS,
                f"Perplexity API error: {response.status_code} {response.reason_phrase}\n"
                f"{_response_body_text(response)}",
            )
        except (
            RequestSetupError,
            httpx.InvalidURL,
            httpx.UnsupportedProtocol,
            httpx.ProxyError,
        ) as exc:
            return ToolFailure(
                ErrorKind.REQUEST_SETUP,
                f"Error setting up Perplexity API request: {exc}",
            )
        except httpx.TransportError as exc:
            logger.warning("No response from Perplexity API: %r", exc)
            return ToolFailure(ErrorKind.NO_RESPONSE, NO_RESPONSE_MESSAGE)
        except Exception as exc:
            logger.exception("Unexpected failure calling Perplexity API")
            return ToolFailure(
                ErrorKind.UNEXPECTED,
                f"Error while calling Perplexity API: {exc}",
            )

        return ToolSuccess(result.render())

    async def complete(self, request: CompletionRequest) -> CompletionResult:
        """POST one completion request and parse the answer.

        Raises:
            httpx.HTTPStatusError: the API answered with a non-2xx status.
            httpx.TransportError: the request failed on the wire.
            RequestSetupError: the HTTP client could not be built.
            ValueError: the response body is not a completion.
        """
        url = httpx.URL(self._settings.api_url)
        proxy_url = resolve_proxy(self._settings.proxy, url.host)
        try:
            client = self._client_factory(proxy_url)
        except ValueError as exc:
            raise RequestSetupError(str(exc)) from exc

        headers = {
            "Authorization": f"Bearer {self._settings.api_key}",
            "Content-Type": "application/json",
        }
        logger.info(
            "POST %s model=%s messages=%d",
            url,
            request.model,
            len(request.messages),
        )
        async with client:
            response = await client.post(url, json=request.to_payload(), headers=headers)
        response.raise_for_status()

        body = CompletionResponse.model_validate(response.json())
        if not body.choices:
            raise ValueError("Perplexity API response contained no choices")
        return CompletionResult(
            text=body.choices[0].message.content,
            citations=tuple(body.citations or ()),
        )
