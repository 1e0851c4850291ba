"""Provider failures and their classification."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import openai

import constants

# low level error codes reported by sockets and resolvers
TIMEOUT_CODES = frozenset({"ETIMEDOUT", "ESOCKETTIMEDOUT"})
NETWORK_CODES = frozenset({"ECONNRESET", "ENOTFOUND", "ECONNREFUSED", "EAI_AGAIN"})


class ErrorCategory(str, Enum):
    """Category of a failed provider attempt."""

    RATE_LIMIT = "rate_limit"
    AUTH = "auth"
    MODEL = "model"
    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVER = "server"
    UNKNOWN = "unknown"

    @property
    def retryable(self) -> bool:
        """Return True for transient failures worth retrying."""
        return self in RETRYABLE_CATEGORIES


RETRYABLE_CATEGORIES = frozenset(
    {ErrorCategory.SERVER, ErrorCategory.NETWORK, ErrorCategory.TIMEOUT}
)


@dataclass(frozen=True)
class ErrorInfo:  # pylint: disable=too-many-instance-attributes
    """Classified failure of one provider attempt.

    Attributes:
        provider: Provider name.
        tier: Model tier of the attempt.
        category: Failure category.
        message: Error message reported by the provider.
        status: HTTP status code, when known.
        code: Provider or socket error code, when known.
    """

    provider: str
    tier: str
    category: ErrorCategory
    message: str
    status: Optional[int] = None
    code: Optional[str] = None

    @property
    def retryable(self) -> bool:
        """Return True when the attempt may be retried."""
        return self.category.retryable

    def summary(self) -> str:
        """Summarize the failure as `provider:tier:category[:status]`."""
        text = f"{self.provider}:{self.tier}:{self.category.value}"
        if self.status:
            text += f":{self.status}"
        return text


class ProviderError(Exception):
    """Base class for errors raised by the provider layer."""


class NoProvidersConfiguredError(ProviderError):
    """No provider has a credential configured."""

    def __init__(self) -> None:
        """Create the error with a message listing expected credentials."""
        names = ", ".join(
            constants.PROVIDER_API_KEY_ENV_VARIABLES[name]
            for name in (
                constants.PROVIDER_GOOGLE,
                constants.PROVIDER_OPENROUTER,
                constants.PROVIDER_GROQ,
            )
        )
        super().__init__(
            f"No AI providers configured. Please set at least one API key ({names})"
        )


class AllProvidersFailedError(ProviderError):
    """Every provider and tier of the fallback chain failed."""

    def __init__(self, errors: list[ErrorInfo]) -> None:
        """Create the error summarizing all failed attempts.

        Parameters:
            errors: Failures in the order they happened.
        """
        self.errors = list(errors)
        summary = ", ".join(error.summary() for error in self.errors)
        super().__init__(
            "All AI providers failed. Please check your API keys and quotas. "
            + summary
        )


class EmptyResponseError(ProviderError):
    """Provider answered with blank text."""

    def __init__(self) -> None:
        """Create the error."""
        super().__init__("Empty response")


def _extract_status(error: BaseException) -> Optional[int]:
    """Find HTTP status code attached to the error or its cause."""
    for candidate in (error, error.__cause__):
        if candidate is None:
            continue
        for attribute in ("status_code", "status"):
            value = getattr(candidate, attribute, None)
            if isinstance(value, int):
                return value
        response = getattr(candidate, "response", None)
        value = getattr(response, "status_code", None)
        if isinstance(value, int):
            return value
    return None


def _extract_code(error: BaseException) -> Optional[str]:
    """Find error code attached to the error or its cause."""
    for candidate in (error, error.__cause__):
        value = getattr(candidate, "code", None)
        if isinstance(value, str):
            return value
    return None


def classify_error(provider: str, tier: str, error: BaseException) -> ErrorInfo:
    """Classify failure of one provider attempt.

    The status code is checked first, the message wording is used as a
    fallback since some OpenAI-compatible servers report errors with a
    generic status.

    Parameters:
        provider: Provider name.
        tier: Model tier of the attempt.
        error: The raised exception.

    Returns:
        ErrorInfo: Classified failure.
    """
    status = _extract_status(error)
    code = _extract_code(error)
    message = str(error) or error.__class__.__name__
    lower = message.lower()

    is_auth = (
        status in (401, 403)
        or "unauthorized" in lower
        or "invalid api key" in lower
        or ("api key" in lower and "invalid" in lower)
    )
    is_rate_limit = (
        status == 429
        or "rate limit" in lower
        or "quota" in lower
        or ("exceeded" in lower and "limit" in lower)
    )
    is_model = (
        status == 404
        or ("model" in lower and "not found" in lower)
        or "unknown model" in lower
        or "not supported" in lower
    )
    is_timeout = (
        isinstance(error, (openai.APITimeoutError, TimeoutError))
        or "timeout" in lower
        or "timed out" in lower
        or code in TIMEOUT_CODES
    )
    is_network = (
        isinstance(error, (openai.APIConnectionError, ConnectionError))
        or code in NETWORK_CODES
        or "network" in lower
    )
    is_server = status is not None and status >= 500

    if is_auth:
        category = ErrorCategory.AUTH
    elif is_rate_limit:
        category = ErrorCategory.RATE_LIMIT
    elif is_model:
        category = ErrorCategory.MODEL
    elif is_timeout:
        category = ErrorCategory.TIMEOUT
    elif is_network:
        category = ErrorCategory.NETWORK
    elif is_server:
        category = ErrorCategory.SERVER
    else:
        category = ErrorCategory.UNKNOWN

    return ErrorInfo(
        provider=provider,
        tier=tier,
        category=category,
        message=message,
        status=status,
        code=code,
    )
