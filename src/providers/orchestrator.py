"""Generation with rotation, retries and fallback across LLM providers."""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar, Union

import openai

import constants
from models.config import LLMConfiguration
from models.requests import ChatMessage, ProviderOverride
from providers.client import ProviderClient
from providers.errors import (
    AllProvidersFailedError,
    ErrorCategory,
    ErrorInfo,
    NoProvidersConfiguredError,
    ProviderError,
    classify_error,
)
from providers.registry import ProviderConfig, ProviderRegistry
from providers.retry import AttemptTarget, BackoffPolicy, build_fallback_chain
from providers.rotation import RotationCursor
from log import get_logger

logger = get_logger("providers.orchestrator")

T = TypeVar("T")

ClientFactory = Callable[[ProviderConfig], ProviderClient]
Sleep = Callable[[float], Awaitable[None]]

# failures of a single attempt that lead to retry or fallback
PROVIDER_FAILURES = (openai.OpenAIError, ProviderError, OSError, TimeoutError)


@dataclass(frozen=True)
class GenerationResult:
    """Reply generated by one provider."""

    text: str
    provider: str
    model: str


@dataclass(frozen=True)
class StreamResult:
    """Opened reply stream of one provider."""

    chunks: AsyncIterator[str]
    provider: str
    model: str


@dataclass(frozen=True)
class AttemptSucceeded(Generic[T]):
    """Successful attempt carrying its value."""

    value: T


@dataclass(frozen=True)
class AttemptFailed:
    """Failed attempt carrying the classified error."""

    error: ErrorInfo


AttemptOutcome = Union[AttemptSucceeded[T], AttemptFailed]


class ProviderOrchestrator:
    """Call LLM providers in a rotated order until one of them answers.

    For each request, the available providers are rotated by a shared cursor
    and expanded into a chain of (provider, tier) targets. Each target is
    retried on transient failures according to the backoff policy; all other
    failures move on to the next target immediately.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        config: LLMConfiguration,
        *,
        client_factory: Optional[ClientFactory] = None,
        cursor: Optional[RotationCursor] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Create orchestrator.

        Parameters:
            registry: Providers resolved at startup.
            config: LLM configuration with generation and retry parameters.
            client_factory: Creates client for a provider, mainly for tests.
            cursor: Rotation cursor shared by all requests.
            sleep: Coroutine used to wait between retries.
        """
        self.registry = registry
        self.llm_config = config
        self._client_factory = client_factory or self._default_client
        self._cursor = cursor or RotationCursor()
        self._sleep = sleep
        self._backoff = BackoffPolicy(tuple(config.retry.backoff_ms))

    def _default_client(self, provider: ProviderConfig) -> ProviderClient:
        return ProviderClient(
            provider,
            timeout=self.llm_config.request_timeout,
            max_output_tokens=self.llm_config.max_output_tokens,
            temperature=self.llm_config.temperature,
        )

    def configured_providers(self) -> list[str]:
        """Return names of providers that can be called."""
        return self.registry.configured_provider_names()

    def plan(
        self, tier: str, override: Optional[ProviderOverride] = None
    ) -> list[AttemptTarget]:
        """Build the fallback chain for one request.

        The cursor is advanced once per call. A provider named by the
        override stays first and only the remaining ones are rotated.

        Raises:
            NoProvidersConfiguredError: When no provider is available.
        """
        providers = self.registry.resolve(override)
        if not providers:
            raise NoProvidersConfiguredError()
        if override is not None and providers[0].name == override.name:
            providers = [providers[0], *self._cursor.rotate(providers[1:])]
        else:
            providers = self._cursor.rotate(providers)
        return build_fallback_chain(providers, tier)

    async def _attempt(
        self,
        target: AttemptTarget,
        model: str,
        call: Callable[[ProviderClient, str], Awaitable[T]],
        keep_open: bool,
    ) -> AttemptOutcome[T]:
        """Run one attempt and turn its failure into a value."""
        client = self._client_factory(target.provider)
        try:
            value = await call(client, model)
        except PROVIDER_FAILURES as e:
            await client.close()
            return AttemptFailed(classify_error(target.provider.name, target.tier, e))
        if not keep_open:
            await client.close()
        return AttemptSucceeded(value)

    async def _run_chain(
        self,
        chain: Sequence[AttemptTarget],
        call: Callable[[ProviderClient, str], Awaitable[T]],
        keep_open: bool = False,
    ) -> tuple[AttemptTarget, str, T]:
        """Consume the fallback chain until an attempt succeeds.

        Returns:
            tuple: Successful target, its model and the attempt value.

        Raises:
            AllProvidersFailedError: When every target failed.
        """
        errors: list[ErrorInfo] = []
        for target in chain:
            name = target.provider.name
            model = target.model
            if model is None:
                logger.warning("%s has no %s model configured", name, target.tier)
                errors.append(
                    ErrorInfo(
                        provider=name,
                        tier=target.tier,
                        category=ErrorCategory.MODEL,
                        message=f"No {target.tier} model configured",
                    )
                )
                continue

            logger.info("Trying %s (%s)...", name, model)
            for attempt in range(self._backoff.max_attempts):
                outcome = await self._attempt(target, model, call, keep_open)
                if isinstance(outcome, AttemptSucceeded):
                    return target, model, outcome.value

                error = outcome.error
                errors.append(error)
                logger.warning(
                    "%s failed (%s%s): %s",
                    name,
                    error.category.value,
                    f" {error.status}" if error.status else "",
                    error.message,
                )
                if not self._backoff.should_retry(error, attempt):
                    break
                delay = self._backoff.delay(attempt)
                logger.info("Retrying %s in %d ms", name, round(delay * 1000))
                await self._sleep(delay)

        raise AllProvidersFailedError(errors)

    async def generate_with_fallback(
        self,
        system_prompt: str,
        messages: Sequence[ChatMessage],
        tier: str = constants.MODEL_TIER_FLASH,
        override: Optional[ProviderOverride] = None,
    ) -> GenerationResult:
        """Generate reply with the first provider that answers.

        Parameters:
            system_prompt: Instructions prepended to the conversation.
            messages: Conversation, oldest message first.
            tier: Requested model tier.
            override: Optional provider preference of the caller.

        Returns:
            GenerationResult: Non-empty reply with its provenance.

        Raises:
            NoProvidersConfiguredError: When no provider is available.
            AllProvidersFailedError: When every provider and tier failed.
        """
        chain = self.plan(tier, override)

        async def generate(client: ProviderClient, model: str) -> str:
            return await client.generate(model, system_prompt, messages)

        target, model, text = await self._run_chain(chain, generate)
        logger.info("%s responded (%d chars)", target.provider.name, len(text))
        return GenerationResult(text=text, provider=target.provider.name, model=model)

    async def stream_with_fallback(
        self,
        system_prompt: str,
        messages: Sequence[ChatMessage],
        tier: str = constants.MODEL_TIER_FLASH,
        override: Optional[ProviderOverride] = None,
    ) -> StreamResult:
        """Open reply stream with the first provider that accepts the request.

        Retries and fallback apply only while the stream is being opened;
        once fragments flow, a failure is propagated to the consumer.

        Raises:
            NoProvidersConfiguredError: When no provider is available.
            AllProvidersFailedError: When no provider accepted the request.
        """
        chain = self.plan(tier, override)

        async def open_stream(client: ProviderClient, model: str) -> AsyncIterator[str]:
            return await client.open_stream(model, system_prompt, messages)

        target, model, chunks = await self._run_chain(
            chain, open_stream, keep_open=True
        )
        logger.info("Streaming via %s (%s)", target.provider.name, model)
        return StreamResult(chunks=chunks, provider=target.provider.name, model=model)
