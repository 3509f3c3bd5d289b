from __future__ import annotations

import pytest

from whs_client_sdk.config import ConfigError, load_config


def test_defaults_when_only_base_url_is_set() -> None:
    cfg = load_config()
    assert cfg.api_base_url == "https://api.example.com"
    assert cfg.normalized_env == "dev"
    assert cfg.retries == 3
    assert cfg.lookup_retries == 3
    assert cfg.lookup_retry_delay_seconds == 1.0
    assert cfg.search_debounce_ms == 300
    assert cfg.verify_ssl is True


def test_env_specific_base_url_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WHS_ENV", "Staging")
    monkeypatch.setenv("WHS_API_BASE_URL_STAGING", "https://staging.example.com/")
    cfg = load_config()
    assert cfg.api_base_url == "https://staging.example.com"
    assert cfg.normalized_env == "staging"


def test_missing_base_url_is_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("WHS_API_BASE_URL")
    with pytest.raises(ConfigError, match="WHS_API_BASE_URL"):
        load_config()


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("WHS_TIMEOUT_SECONDS", "0"),
        ("WHS_RETRIES", "-1"),
        ("WHS_LOOKUP_RETRIES", "0"),
        ("WHS_SEARCH_DEBOUNCE_MS", "-5"),
        ("WHS_MAX_CONNECTIONS", "abc"),
    ],
)
def test_invalid_numbers_are_rejected(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigError, match=name):
        load_config()


def test_verify_ssl_can_be_disabled(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WHS_VERIFY_SSL", "false")
    assert load_config().verify_ssl is False
