"""Unit tests for LLMConfiguration and ProviderConfiguration models."""

import pytest
from pydantic import SecretStr, ValidationError

from models.config import (
    LLMConfiguration,
    ModelTiersConfiguration,
    ProviderConfiguration,
    RetryConfiguration,
)


def test_llm_configuration_defaults() -> None:
    """Test that all known providers are listed by default."""
    cfg = LLMConfiguration()

    assert [p.name for p in cfg.providers] == ["google", "openrouter", "groq", "local"]
    assert all(p.api_key is None for p in cfg.providers)
    assert cfg.request_timeout == 30.0
    assert cfg.max_output_tokens == 1024
    assert cfg.temperature == 0.7
    assert cfg.retry.backoff_ms == [300, 800]


def test_provider_configuration() -> None:
    """Test provider with explicit credential and models."""
    provider = ProviderConfiguration(
        name="openrouter",
        api_key=SecretStr("sk-or-secret"),
        models=ModelTiersConfiguration(flash="meta/llama-free"),
    )

    assert provider.api_key is not None
    assert provider.api_key.get_secret_value() == "sk-or-secret"
    assert "sk-or-secret" not in repr(provider)
    assert provider.models.flash == "meta/llama-free"
    assert provider.models.pro is None


def test_provider_configuration_unknown_name() -> None:
    """Test that only known providers can be configured."""
    with pytest.raises(ValidationError):
        ProviderConfiguration(name="anthropic")  # type: ignore[arg-type]


def test_duplicate_providers() -> None:
    """Test that each provider can be configured only once."""
    with pytest.raises(ValidationError, match="Providers configured more than once"):
        LLMConfiguration(
            providers=[
                ProviderConfiguration(name="groq"),
                ProviderConfiguration(name="groq"),
            ]
        )


def test_retry_configuration() -> None:
    """Test retry schedule validation."""
    assert RetryConfiguration(backoff_ms=[]).backoff_ms == []
    with pytest.raises(ValidationError):
        RetryConfiguration(backoff_ms=[-1])


def test_temperature_range() -> None:
    """Test temperature validation."""
    with pytest.raises(ValidationError):
        LLMConfiguration(temperature=3.0)
