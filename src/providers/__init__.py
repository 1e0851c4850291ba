"""LLM providers with rotation, retries and tier fallback."""

from providers.errors import (
    AllProvidersFailedError,
    EmptyResponseError,
    ErrorCategory,
    ErrorInfo,
    NoProvidersConfiguredError,
    ProviderError,
    classify_error,
)
from providers.registry import ProviderConfig, ProviderRegistry
from providers.orchestrator import (
    GenerationResult,
    ProviderOrchestrator,
    StreamResult,
)

__all__ = [
    "AllProvidersFailedError",
    "EmptyResponseError",
    "ErrorCategory",
    "ErrorInfo",
    "NoProvidersConfiguredError",
    "ProviderError",
    "classify_error",
    "ProviderConfig",
    "ProviderRegistry",
    "GenerationResult",
    "ProviderOrchestrator",
    "StreamResult",
]
