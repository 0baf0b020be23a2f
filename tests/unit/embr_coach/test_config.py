"""
Tests for configuration management in `embr_coach/config.py`.

Covers:
- Environment parsing and debug defaults
- Logging level coercion to the expected Literal
- Coach overrides from the environment and endpoint validation
- get_config cache behavior
- AppConfig validation (debug only allowed in development)
- Layered credential resolution
- structlog setup
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest
import structlog
from pydantic import ValidationError

from embr_coach.config import (
    MAX_HISTORY_MESSAGES,
    MAX_SNAPSHOT_RECORDS,
    AppConfig,
    CoachConfig,
    LoggingConfig,
    default_credential_resolvers,
    environment_credential,
    explicit_credential,
    get_config,
    load_config_from_env,
    packaged_credential,
    resolve_credential,
)
from embr_coach.observability import configure_logging


@pytest.fixture(autouse=True)
def clear_config_cache() -> Iterator[None]:
    """Ensure get_config cache is cleared before and after each test."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def test_load_config_dev_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("COACH_MODEL", raising=False)
    monkeypatch.delenv("COACH_ENDPOINT_URL", raising=False)
    monkeypatch.delenv("COACH_TIMEOUT_SECONDS", raising=False)

    config = load_config_from_env()

    assert config.environment == "development"
    assert config.debug is True
    assert config.logging.format == "console"
    assert config.logging.level == "INFO"
    assert config.coach.model_name == "gpt-4.1-mini"
    assert config.coach.endpoint_url == "https://api.openai.com/v1/responses"
    assert config.coach.history_limit == MAX_HISTORY_MESSAGES == 10
    assert config.coach.snapshot_window == MAX_SNAPSHOT_RECORDS == 30


def test_production_uses_json_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "prod")

    config = load_config_from_env()

    assert config.environment == "production"
    assert config.debug is False
    assert config.logging.format == "json"


def test_coach_overrides_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COACH_MODEL", "gpt-4o-mini")
    monkeypatch.setenv("COACH_ENDPOINT_URL", "https://proxy.example/v1/responses")
    monkeypatch.setenv("COACH_TIMEOUT_SECONDS", "12.5")

    config = load_config_from_env()

    assert config.coach.model_name == "gpt-4o-mini"
    assert config.coach.endpoint_url == "https://proxy.example/v1/responses"
    assert config.coach.timeout_seconds == 12.5


def test_logging_level_literal_coercion(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "staging")

    # Unknown level should coerce to INFO
    monkeypatch.setenv("LOG_LEVEL", "unknown")
    config = load_config_from_env()
    assert config.logging.level == "INFO"

    # Known level should pass through
    monkeypatch.setenv("LOG_LEVEL", "error")
    config = load_config_from_env()
    assert config.logging.level == "ERROR"


def test_endpoint_must_be_https() -> None:
    with pytest.raises(ValidationError, match="https"):
        CoachConfig(endpoint_url="http://api.openai.com/v1/responses")


def test_get_config_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")

    c1 = get_config()
    c2 = get_config()
    assert c1 is c2  # same object due to lru_cache


def test_app_config_debug_only_in_dev_validation() -> None:
    with pytest.raises(ValueError, match="debug mode is only allowed"):
        AppConfig(environment="production", debug=True)


class TestCredentialResolution:
    def test_first_non_blank_value_wins(self) -> None:
        resolvers = [explicit_credential(None), explicit_credential("  "), explicit_credential(" k ")]

        assert resolve_credential(resolvers) == "k"

    def test_all_empty_resolves_to_none(self) -> None:
        assert resolve_credential([explicit_credential(None), explicit_credential("")]) is None
        assert resolve_credential([]) is None

    def test_resolvers_are_evaluated_lazily(self) -> None:
        def _explode() -> str | None:
            raise AssertionError("should not be consulted")

        assert resolve_credential([explicit_credential("first"), _explode]) == "first"

    def test_environment_layer(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "env-key")

        assert environment_credential()() == "env-key"

    def test_packaged_layer_ships_empty(self) -> None:
        assert packaged_credential()() == ""

    def test_packaged_layer_missing_file(self) -> None:
        assert packaged_credential(filename="missing.env")() is None

    def test_default_order(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "env-key")

        assert resolve_credential(default_credential_resolvers("override")) == "override"
        assert resolve_credential(default_credential_resolvers(None)) == "env-key"

        monkeypatch.delenv("OPENAI_API_KEY")
        assert resolve_credential(default_credential_resolvers(None)) is None


@pytest.mark.parametrize("log_format", ["json", "console"])
def test_configure_logging(log_format: str) -> None:
    try:
        configure_logging(LoggingConfig(level="DEBUG", format=log_format))  # type: ignore[arg-type]
        structlog.get_logger("embr_coach.test").info("logging_configured", sample=1)
    finally:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        logging.getLogger().setLevel(logging.WARNING)
