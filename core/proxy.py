# =============================================================================
# core/proxy.py - Per-call proxy selection
# =============================================================================
#
# resolve_proxy() answers one question before every outbound call:
# "tunnel through the configured proxy, or connect directly?"
#
# NO_PROXY MATCHING RULES:
#   ".example.com"  matches "api.example.com" and "example.com"
#   "example.com"   matches only "example.com"
#   No wildcards, no ports, no CIDR ranges.
# =============================================================================

import logging
from collections.abc import Iterable
from typing import Optional

from core.config import ProxyConfig

logger = logging.getLogger(__name__)


def matches_no_proxy(hostname: str, patterns: Iterable[str]) -> bool:
    """Return True if any bypass pattern matches hostname."""
    for pattern in patterns:
        if pattern.startswith("."):
            if hostname.endswith(pattern) or hostname == pattern[1:]:
                return True
        elif hostname == pattern:
            return True
    return False


def resolve_proxy(config: ProxyConfig, hostname: str) -> Optional[str]:
    """Return the proxy URL to use for hostname, or None for a direct connection."""
    proxy_url = config.proxy_url
    if proxy_url is None:
        return None
    if config.no_proxy and matches_no_proxy(hostname, config.no_proxy):
        logger.info("%s matches NO_PROXY, bypassing proxy", hostname)
        return None
    logger.info("Routing request to %s through proxy %s", hostname, proxy_url)
    return proxy_url
