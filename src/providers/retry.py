"""Fallback chain of provider attempts and the retry policy applied to it."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

import constants
from providers.errors import ErrorCategory, ErrorInfo
from providers.registry import ProviderConfig


@dataclass(frozen=True)
class AttemptTarget:
    """One (provider, tier) pair of the fallback chain."""

    provider: ProviderConfig
    tier: str

    @property
    def model(self) -> Optional[str]:
        """Return model identifier of this target, None when not mapped."""
        return self.provider.model_for(self.tier)


@dataclass(frozen=True)
class BackoffPolicy:
    """Fixed schedule of delays between retries of one target.

    The number of delays is the number of retries; a target is attempted at
    most `len(delays_ms) + 1` times.
    """

    delays_ms: tuple[int, ...] = constants.DEFAULT_RETRY_BACKOFF_MS

    @property
    def max_attempts(self) -> int:
        """Return maximal number of attempts of one target."""
        return len(self.delays_ms) + 1

    def delay(self, retry: int) -> float:
        """Return delay in seconds before the given retry (zero based)."""
        return self.delays_ms[retry] / 1000

    def should_retry(self, error: ErrorInfo, attempt: int) -> bool:
        """Decide whether the failed attempt is repeated on the same target.

        Parameters:
            error: Classified failure.
            attempt: Zero based index of the failed attempt.

        Returns:
            bool: True when the failure is transient and budget remains.
        """
        if (
            error.category == ErrorCategory.MODEL
            and error.tier == constants.MODEL_TIER_PRO
        ):
            return False
        if not error.retryable:
            return False
        return attempt < len(self.delays_ms)


def tiers_to_try(tier: str) -> list[str]:
    """Return tiers attempted on each provider for the requested tier."""
    if tier == constants.MODEL_TIER_PRO:
        return [constants.MODEL_TIER_PRO, constants.MODEL_TIER_FLASH]
    return [constants.MODEL_TIER_FLASH]


def build_fallback_chain(
    providers: Sequence[ProviderConfig], tier: str
) -> list[AttemptTarget]:
    """Build ordered list of targets, all tiers of a provider before the next one."""
    return [
        AttemptTarget(provider=provider, tier=tier_to_try)
        for provider in providers
        for tier_to_try in tiers_to_try(tier)
    ]
