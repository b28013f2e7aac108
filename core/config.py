# =============================================================================
# core/config.py - Process-wide settings, read once at startup
# =============================================================================
#
# ENVIRONMENT VARIABLES:
#   PERPLEXITY_API_KEY        (required)  bearer token for the Perplexity API
#   HTTPS_PROXY / https_proxy (optional)  preferred forward proxy
#   HTTP_PROXY  / http_proxy  (optional)  fallback forward proxy
#   NO_PROXY    / no_proxy    (optional)  comma-separated bypass patterns
#
# The uppercase spelling wins when both spellings are set.  An empty value
# counts as unset.
#
# ServerSettings is immutable.  main.py builds it once and hands it to the
# CompletionAdapter; nothing on the call path looks at os.environ again.
# =============================================================================

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Optional

PERPLEXITY_API_URL = "https://api.perplexity.ai/chat/completions"


class ConfigurationError(Exception):
    """Startup configuration is missing or invalid.  Fatal, never per-call."""


def _first_set(environ: Mapping[str, str], *names: str) -> Optional[str]:
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


@dataclass(frozen=True)
class ProxyConfig:
    """Forward-proxy settings from the conventional proxy variables."""

    http_proxy: Optional[str] = None
    https_proxy: Optional[str] = None
    no_proxy: frozenset[str] = field(default_factory=frozenset)

    @property
    def proxy_url(self) -> Optional[str]:
        """The proxy to tunnel through: HTTPS_PROXY first, then HTTP_PROXY."""
        return self.https_proxy or self.http_proxy

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProxyConfig":
        env = os.environ if environ is None else environ
        raw_no_proxy = _first_set(env, "NO_PROXY", "no_proxy") or ""
        patterns = frozenset(
            item.strip() for item in raw_no_proxy.split(",") if item.strip()
        )
        return cls(
            http_proxy=_first_set(env, "HTTP_PROXY", "http_proxy"),
            https_proxy=_first_set(env, "HTTPS_PROXY", "https_proxy"),
            no_proxy=patterns,
        )


@dataclass(frozen=True)
class ServerSettings:
    """Everything the adapter needs, fixed for the life of the process."""

    api_key: str = field(repr=False)
    proxy: ProxyConfig = field(default_factory=ProxyConfig)
    api_url: str = PERPLEXITY_API_URL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerSettings":
        """Build settings from the environment.

        Raises:
            ConfigurationError: PERPLEXITY_API_KEY is missing or blank.
        """
        env = os.environ if environ is None else environ
        api_key = (env.get("PERPLEXITY_API_KEY") or "").strip()
        if not api_key:
            raise ConfigurationError("PERPLEXITY_API_KEY environment variable is required")
        return cls(api_key=api_key, proxy=ProxyConfig.from_env(env))
