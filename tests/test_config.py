"""Startup configuration: API key and proxy variables."""

from __future__ import annotations

import pytest

from core.config import (
    PERPLEXITY_API_URL,
    ConfigurationError,
    ProxyConfig,
    ServerSettings,
)


def test_settings_require_an_api_key() -> None:
    with pytest.raises(ConfigurationError, match="PERPLEXITY_API_KEY"):
        ServerSettings.from_env({})


def test_blank_api_key_counts_as_missing() -> None:
    with pytest.raises(ConfigurationError):
        ServerSettings.from_env({"PERPLEXITY_API_KEY": "   "})


def test_settings_read_key_and_proxy_once() -> None:
    settings = ServerSettings.from_env(
        {
            "PERPLEXITY_API_KEY": "pplx-123",
            "HTTPS_PROXY": "http://p:8080",
            "NO_PROXY": "localhost, .internal.example.com",
        }
    )

    assert settings.api_key == "pplx-123"
    assert settings.api_url == PERPLEXITY_API_URL
    assert settings.proxy.proxy_url == "http://p:8080"
    assert settings.proxy.no_proxy == {"localhost", ".internal.example.com"}


def test_settings_repr_does_not_leak_the_key() -> None:
    settings = ServerSettings(api_key="pplx-secret")
    assert "pplx-secret" not in repr(settings)


def test_from_env_defaults_to_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PERPLEXITY_API_KEY", "pplx-env")
    monkeypatch.setenv("http_proxy", "http://lower:3128")

    settings = ServerSettings.from_env()

    assert settings.api_key == "pplx-env"
    assert settings.proxy.http_proxy == "http://lower:3128"


# =============================================================================
# ProxyConfig
# =============================================================================


def test_no_proxy_variables_means_no_proxy() -> None:
    config = ProxyConfig.from_env({})
    assert config.proxy_url is None
    assert config.no_proxy == frozenset()


def test_https_proxy_is_preferred_over_http_proxy() -> None:
    config = ProxyConfig.from_env(
        {"HTTP_PROXY": "http://plain:8080", "HTTPS_PROXY": "http://secure:8443"}
    )
    assert config.proxy_url == "http://secure:8443"


def test_http_proxy_is_used_when_https_proxy_is_absent() -> None:
    config = ProxyConfig.from_env({"http_proxy": "http://plain:8080"})
    assert config.proxy_url == "http://plain:8080"


def test_uppercase_variable_wins_over_lowercase() -> None:
    config = ProxyConfig.from_env(
        {"HTTPS_PROXY": "http://upper:1", "https_proxy": "http://lower:2"}
    )
    assert config.https_proxy == "http://upper:1"


def test_empty_values_are_treated_as_unset() -> None:
    config = ProxyConfig.from_env(
        {"HTTPS_PROXY": "", "https_proxy": "http://lower:2", "NO_PROXY": ""}
    )
    assert config.https_proxy == "http://lower:2"
    assert config.no_proxy == frozenset()


def test_no_proxy_list_is_trimmed_and_drops_empty_entries() -> None:
    config = ProxyConfig.from_env({"no_proxy": " a.com ,, .b.org ,"})
    assert config.no_proxy == {"a.com", ".b.org"}
