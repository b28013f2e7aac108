"""Pytest configuration and fixtures.

Provides a fake Perplexity API (an ``httpx.MockTransport`` behind a client
factory) so adapter and server tests never touch the network, and keeps the
real environment's proxy and API-key variables out of every test.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from core.completion import CompletionAdapter
from core.config import ProxyConfig, ServerSettings

TEST_API_KEY = "pplx-test-key"

USER_MESSAGES = [
    {"role": "system", "content": "Be precise."},
    {"role": "user", "content": "What is the capital of France?"},
]

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class FakePerplexityAPI:
    """Stands in for the chat-completions endpoint.

    Records every request and the proxy each client was built with. Set
    ``error`` to make the transport raise instead of answering, or
    ``redirect_to`` to answer other paths with a 307 to that path.
    """

    status_code: int = 200
    body: Any = field(
        default_factory=lambda: {
            "choices": [{"message": {"role": "assistant", "content": "Paris."}}],
        }
    )
    error: Exception | None = None
    redirect_to: str | None = None
    requests: list[httpx.Request] = field(default_factory=list)
    proxies: list[str | None] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.redirect_to is not None and request.url.path != self.redirect_to:
            return httpx.Response(307, headers={"Location": self.redirect_to}, json={"moved": True})
        if isinstance(self.body, str):
            return httpx.Response(self.status_code, text=self.body)
        return httpx.Response(self.status_code, json=self.body)

    def client_factory(self, proxy_url: str | None) -> httpx.AsyncClient:
        self.proxies.append(proxy_url)
        return httpx.AsyncClient(
            transport=httpx.MockTransport(self.handler), follow_redirects=True
        )

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "PERPLEXITY_API_KEY",
        "HTTP_PROXY",
        "http_proxy",
        "HTTPS_PROXY",
        "https_proxy",
        "NO_PROXY",
        "no_proxy",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def fake_api() -> FakePerplexityAPI:
    return FakePerplexityAPI()


@pytest.fixture
def settings() -> ServerSettings:
    return ServerSettings(api_key=TEST_API_KEY, proxy=ProxyConfig())


@pytest.fixture
def adapter(settings: ServerSettings, fake_api: FakePerplexityAPI) -> CompletionAdapter:
    return CompletionAdapter(settings, client_factory=fake_api.client_factory)
