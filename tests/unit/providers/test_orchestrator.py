"""Unit tests for ProviderOrchestrator class."""

from typing import Optional

import pytest
from pydantic import SecretStr

from models.config import (
    LLMConfiguration,
    ModelTiersConfiguration,
    ProviderConfiguration,
    RetryConfiguration,
)
from models.requests import ChatMessage, ProviderOverride
from providers.errors import (
    AllProvidersFailedError,
    EmptyResponseError,
    ErrorCategory,
    NoProvidersConfiguredError,
)
from providers.orchestrator import ProviderOrchestrator
from providers.registry import ProviderRegistry
from providers.rotation import RotationCursor
from tests.unit.utils.fake_providers import (
    ScriptedClients,
    SleepRecorder,
    api_error,
)

MESSAGES = [ChatMessage(role="user", content="outlet kumon di jakarta")]


def make_orchestrator(
    clients: ScriptedClients,
    sleep: SleepRecorder,
    providers: Optional[list[ProviderConfiguration]] = None,
) -> ProviderOrchestrator:
    """Create orchestrator over google and groq by default."""
    config = LLMConfiguration(
        providers=providers
        or [
            ProviderConfiguration(name="google", api_key=SecretStr("g")),
            ProviderConfiguration(name="groq", api_key=SecretStr("q")),
        ],
        retry=RetryConfiguration(backoff_ms=[300, 800]),
    )
    return ProviderOrchestrator(
        ProviderRegistry(config, {}),
        config,
        client_factory=clients,
        cursor=RotationCursor(),
        sleep=sleep,
    )


@pytest.fixture(name="sleep")
def sleep_fixture() -> SleepRecorder:
    """Sleep replacement."""
    return SleepRecorder()


@pytest.mark.asyncio
async def test_first_provider_answers(sleep: SleepRecorder) -> None:
    """Test the happy path."""
    clients = ScriptedClients(google=["Halo!"])
    orchestrator = make_orchestrator(clients, sleep)

    result = await orchestrator.generate_with_fallback("system", MESSAGES)

    assert result.text == "Halo!"
    assert result.provider == "google"
    assert result.model == "gemini-2.0-flash"
    assert clients.calls == [("google", "gemini-2.0-flash")]
    assert clients.closed == 1
    assert not sleep.delays


@pytest.mark.asyncio
async def test_server_errors_are_retried_with_backoff(sleep: SleepRecorder) -> None:
    """Test that transient failures are retried after 300 and 800 ms."""
    clients = ScriptedClients(google=[api_error(500), api_error(503), "recovered"])
    orchestrator = make_orchestrator(clients, sleep)

    result = await orchestrator.generate_with_fallback("system", MESSAGES)

    assert result.text == "recovered"
    assert result.provider == "google"
    assert sleep.delays == pytest.approx([0.3, 0.8])
    assert len(clients.calls) == 3


@pytest.mark.asyncio
async def test_retries_exhausted_moves_to_next_provider(sleep: SleepRecorder) -> None:
    """Test that a target is attempted at most three times."""
    clients = ScriptedClients(google=[api_error(500)] * 3)
    orchestrator = make_orchestrator(clients, sleep)

    result = await orchestrator.generate_with_fallback("system", MESSAGES)

    assert result.provider == "groq"
    assert [name for name, _ in clients.calls] == ["google"] * 3 + ["groq"]
    assert sleep.delays == pytest.approx([0.3, 0.8])


@pytest.mark.asyncio
async def test_auth_error_is_not_retried(sleep: SleepRecorder) -> None:
    """Test that non-transient failure falls back immediately."""
    clients = ScriptedClients(google=[api_error(401, "Unauthorized")])
    orchestrator = make_orchestrator(clients, sleep)

    result = await orchestrator.generate_with_fallback("system", MESSAGES)

    assert result.provider == "groq"
    assert [name for name, _ in clients.calls] == ["google", "groq"]
    assert not sleep.delays


@pytest.mark.asyncio
async def test_pro_model_error_falls_back_to_flash(sleep: SleepRecorder) -> None:
    """Test that unavailable pro model is replaced by flash of the same provider."""
    clients = ScriptedClients(google=[api_error(404, "model not found"), "flash reply"])
    orchestrator = make_orchestrator(clients, sleep)

    result = await orchestrator.generate_with_fallback("system", MESSAGES, tier="pro")

    assert result.provider == "google"
    assert result.model == "gemini-2.0-flash"
    assert clients.calls == [
        ("google", "gemini-2.5-pro-preview-05-06"),
        ("google", "gemini-2.0-flash"),
    ]
    assert not sleep.delays


@pytest.mark.asyncio
async def test_unmapped_pro_tier_is_skipped(sleep: SleepRecorder) -> None:
    """Test that provider without pro model goes straight to flash."""
    clients = ScriptedClients()
    orchestrator = make_orchestrator(
        clients,
        sleep,
        providers=[
            ProviderConfiguration(
                name="local",
                base_url="http://llm.local/v1",
                models=ModelTiersConfiguration(flash="small"),
            )
        ],
    )

    result = await orchestrator.generate_with_fallback("system", MESSAGES, tier="pro")

    assert result.provider == "local"
    assert result.model == "small"
    assert clients.calls == [("local", "small")]


@pytest.mark.asyncio
async def test_empty_response_falls_back(sleep: SleepRecorder) -> None:
    """Test that blank reply counts as failure of the provider."""
    clients = ScriptedClients(google=[EmptyResponseError()])
    orchestrator = make_orchestrator(clients, sleep)

    result = await orchestrator.generate_with_fallback("system", MESSAGES)

    assert result.provider == "groq"
    assert not sleep.delays


@pytest.mark.asyncio
async def test_all_providers_failed(sleep: SleepRecorder) -> None:
    """Test the aggregate error when every target failed."""
    clients = ScriptedClients(
        google=[api_error(429, "rate limit")], groq=[api_error(429, "rate limit")]
    )
    orchestrator = make_orchestrator(clients, sleep)

    with pytest.raises(AllProvidersFailedError) as exc_info:
        await orchestrator.generate_with_fallback("system", MESSAGES)

    errors = exc_info.value.errors
    assert [error.category for error in errors] == [ErrorCategory.RATE_LIMIT] * 2
    assert "google:flash:rate_limit:429, groq:flash:rate_limit:429" in str(
        exc_info.value
    )
    assert clients.closed == 2


@pytest.mark.asyncio
async def test_no_providers_configured(sleep: SleepRecorder) -> None:
    """Test that missing credentials are reported before any call."""
    clients = ScriptedClients()
    orchestrator = make_orchestrator(
        clients, sleep, providers=[ProviderConfiguration(name="google")]
    )

    with pytest.raises(NoProvidersConfiguredError):
        await orchestrator.generate_with_fallback("system", MESSAGES)
    assert not clients.calls
    assert orchestrator.configured_providers() == []


@pytest.mark.asyncio
async def test_round_robin_between_requests(sleep: SleepRecorder) -> None:
    """Test that successive requests start with different providers."""
    clients = ScriptedClients()
    orchestrator = make_orchestrator(clients, sleep)

    first = await orchestrator.generate_with_fallback("system", MESSAGES)
    second = await orchestrator.generate_with_fallback("system", MESSAGES)
    third = await orchestrator.generate_with_fallback("system", MESSAGES)

    assert [first.provider, second.provider, third.provider] == [
        "google",
        "groq",
        "google",
    ]


@pytest.mark.asyncio
async def test_override_stays_first(sleep: SleepRecorder) -> None:
    """Test that provider named by the caller is always tried first."""
    clients = ScriptedClients()
    orchestrator = make_orchestrator(clients, sleep)
    override = ProviderOverride(name="groq")

    first = await orchestrator.generate_with_fallback(
        "system", MESSAGES, override=override
    )
    second = await orchestrator.generate_with_fallback(
        "system", MESSAGES, override=override
    )

    assert first.provider == "groq"
    assert second.provider == "groq"


def test_plan_order(sleep: SleepRecorder) -> None:
    """Test the fallback chain built for pro requests."""
    orchestrator = make_orchestrator(ScriptedClients(), sleep)

    chain = orchestrator.plan("pro")

    assert [(t.provider.name, t.tier) for t in chain] == [
        ("google", "pro"),
        ("google", "flash"),
        ("groq", "pro"),
        ("groq", "flash"),
    ]


@pytest.mark.asyncio
async def test_stream_opens_with_fallback(sleep: SleepRecorder) -> None:
    """Test that streaming falls back while opening and keeps client open."""
    clients = ScriptedClients(google=[api_error(401)], groq=["Halo dari groq"])
    orchestrator = make_orchestrator(clients, sleep)

    result = await orchestrator.stream_with_fallback("system", MESSAGES)

    assert result.provider == "groq"
    assert result.model == "llama-3.3-70b-versatile"
    assert [chunk async for chunk in result.chunks] == ["Halo", " dari", " groq"]
    # only the failed google client was closed by the orchestrator
    assert clients.closed == 1
