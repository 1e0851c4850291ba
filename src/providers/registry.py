"""Resolution of LLM provider records from configuration and environment."""

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Optional

from pydantic import SecretStr

import constants
from models.config import LLMConfiguration, ProviderConfiguration
from models.requests import ProviderOverride
from log import get_logger

logger = get_logger("providers.registry")


@dataclass(frozen=True)
class ProviderConfig:
    """Immutable record describing one LLM provider.

    Attributes:
        name: Provider identifier.
        api_key: Credential, None when the provider has none configured.
        base_url: OpenAI-compatible endpoint.
        flash_model: Model used for the flash tier.
        pro_model: Model used for the pro tier.
    """

    name: str
    api_key: Optional[SecretStr]
    base_url: Optional[str]
    flash_model: Optional[str]
    pro_model: Optional[str]

    @property
    def available(self) -> bool:
        """Return True when the provider can be called."""
        return (
            self.api_key is not None
            and bool(self.base_url)
            and (self.flash_model is not None or self.pro_model is not None)
        )

    def model_for(self, tier: str) -> Optional[str]:
        """Return model identifier for the tier, None when not mapped."""
        if tier == constants.MODEL_TIER_PRO:
            return self.pro_model
        return self.flash_model


def _first_env(environ: Mapping[str, str], names: tuple[str, ...]) -> Optional[str]:
    """Return value of the first non-empty environment variable."""
    for name in names:
        value = environ.get(name)
        if value:
            return value
    return None


def _resolve_model(
    provider: ProviderConfiguration, tier: str, environ: Mapping[str, str]
) -> Optional[str]:
    """Pick model from configuration, then environment, then built-in default."""
    configured = (
        provider.models.pro
        if tier == constants.MODEL_TIER_PRO
        else provider.models.flash
    )
    if configured:
        return configured
    env_names = constants.PROVIDER_MODEL_ENV_VARIABLES.get(provider.name, {}).get(
        tier, ()
    )
    from_env = _first_env(environ, env_names)
    if from_env:
        return from_env
    return constants.DEFAULT_PROVIDER_MODELS.get(provider.name, {}).get(tier)


def resolve_provider(
    provider: ProviderConfiguration, environ: Mapping[str, str]
) -> ProviderConfig:
    """Resolve one configured provider into an immutable record.

    Parameters:
        provider: Provider section of the configuration.
        environ: Environment variables.

    Returns:
        ProviderConfig: Resolved record, possibly not available.
    """
    api_key = provider.api_key
    if api_key is None:
        env_name = constants.PROVIDER_API_KEY_ENV_VARIABLES.get(provider.name)
        value = environ.get(env_name) if env_name else None
        if value:
            api_key = SecretStr(value)

    base_url = provider.base_url
    if provider.name == constants.PROVIDER_LOCAL:
        base_url = base_url or environ.get(constants.LOCAL_AI_BASE_URL_ENV_VARIABLE)
        if api_key is None:
            api_key = SecretStr(constants.LOCAL_AI_DEFAULT_API_KEY)
    else:
        base_url = base_url or constants.PROVIDER_BASE_URLS.get(provider.name)

    return ProviderConfig(
        name=provider.name,
        api_key=api_key,
        base_url=base_url,
        flash_model=_resolve_model(provider, constants.MODEL_TIER_FLASH, environ),
        pro_model=_resolve_model(provider, constants.MODEL_TIER_PRO, environ),
    )


class ProviderRegistry:
    """Ordered set of providers resolved once at startup.

    A provider is enabled purely by presence of its credential. A request
    may supply an override, which promotes the named provider to the front
    and optionally replaces its credential for that request only.
    """

    def __init__(
        self,
        config: LLMConfiguration,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Resolve all configured providers.

        Parameters:
            config: LLM configuration.
            environ: Environment variables, os.environ when not given.
        """
        env = os.environ if environ is None else environ
        self._candidates = tuple(
            resolve_provider(provider, env) for provider in config.providers
        )
        logger.info(
            "Configured AI providers: %s",
            ", ".join(self.configured_provider_names()) or "none",
        )

    @property
    def candidates(self) -> tuple[ProviderConfig, ...]:
        """Return all configured providers including unavailable ones."""
        return self._candidates

    def configured_provider_names(self) -> list[str]:
        """Return names of providers that can be called."""
        return [provider.name for provider in self._candidates if provider.available]

    def resolve(
        self, override: Optional[ProviderOverride] = None
    ) -> list[ProviderConfig]:
        """Return available providers in preferred order for one request.

        Parameters:
            override: Optional provider preference of the caller.

        Returns:
            list[ProviderConfig]: Providers to try, the overridden one first.
        """
        providers = list(self._candidates)
        if override is not None and override.api_key:
            providers = [
                (
                    dataclasses.replace(provider, api_key=SecretStr(override.api_key))
                    if provider.name == override.name
                    else provider
                )
                for provider in providers
            ]
        available = [provider for provider in providers if provider.available]
        if override is not None:
            preferred = [p for p in available if p.name == override.name]
            available = preferred + [p for p in available if p.name != override.name]
        return available
