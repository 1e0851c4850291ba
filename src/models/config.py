"""Model with service configuration."""

from typing import Optional

from pydantic import (
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    NonNegativeInt,
    PositiveFloat,
    PositiveInt,
    SecretStr,
    model_validator,
)
from typing_extensions import Literal, Self

import constants


class ConfigurationBase(BaseModel):
    """Base class for all configuration models that rejects unknown fields."""

    model_config = ConfigDict(extra="forbid")


class CORSConfiguration(ConfigurationBase):
    """CORS configuration.

    CORS or 'Cross-Origin Resource Sharing' refers to the situations when a
    frontend running in a browser has JavaScript code that communicates with a
    backend, and the backend is in a different 'origin' than the frontend. The
    map UI is usually served from a different origin than this service.

    Useful resources:

      - [CORS in FastAPI](https://fastapi.tiangolo.com/tutorial/cors/)
      - [Wikipedia article](https://en.wikipedia.org/wiki/Cross-origin_resource_sharing)
    """

    # not AnyHttpUrl: we need to support "*" that is not valid URL
    allow_origins: list[str] = Field(
        ["*"],
        title="Allow origins",
        description="A list of origins allowed for cross-origin requests. "
        "Use ['*'] to allow all origins.",
    )

    allow_credentials: bool = Field(
        False,
        title="Allow credentials",
        description="Indicate that cookies should be supported for cross-origin requests",
    )

    allow_methods: list[str] = Field(
        ["*"],
        title="Allow methods",
        description="A list of HTTP methods that should be allowed for "
        "cross-origin requests.",
    )

    allow_headers: list[str] = Field(
        ["*"],
        title="Allow headers",
        description="A list of HTTP request headers that should be supported "
        "for cross-origin requests.",
    )

    @model_validator(mode="after")
    def check_cors_configuration(self) -> Self:
        """Check CORS configuration."""
        # credentials are not allowed with wildcard origins per CORS/Fetch spec.
        if self.allow_credentials and "*" in self.allow_origins:
            raise ValueError(
                "Invalid CORS configuration: allow_credentials can not be set to true when "
                "allow origins contains the '*' wildcard."
                "Use explicit origins or disable credentials."
            )
        return self


class ServiceConfiguration(ConfigurationBase):
    """Service configuration.

    The chat service is a REST API service that accepts requests on a
    specified hostname and port. When more Uvicorn workers are specified,
    each worker holds its own in-process caches.
    """

    host: str = Field(
        "localhost",
        title="Host",
        description="Service hostname",
    )

    port: PositiveInt = Field(
        8080,
        title="Port",
        description="Service port",
    )

    workers: PositiveInt = Field(
        1,
        title="Number of workers",
        description="Number of Uvicorn worker processes to start",
    )

    color_log: bool = Field(
        True,
        title="Color log",
        description="Enables colorized logging",
    )

    access_log: bool = Field(
        True,
        title="Access log",
        description="Enables logging of all access information",
    )

    cors: CORSConfiguration = Field(
        default_factory=CORSConfiguration,
        title="CORS configuration",
        description="Cross-Origin Resource Sharing configuration for cross-domain requests",
    )

    @model_validator(mode="after")
    def check_service_configuration(self) -> Self:
        """Check service configuration."""
        if self.port > 65535:
            raise ValueError("Port value should be less than 65536")
        return self


class ModelTiersConfiguration(ConfigurationBase):
    """Concrete model identifiers for each capability tier of one provider."""

    flash: Optional[str] = Field(
        None,
        title="Flash model",
        description="Cheap and fast model. Provider's default is used when not set.",
    )

    pro: Optional[str] = Field(
        None,
        title="Pro model",
        description="Higher quality model. Provider's default is used when not set.",
    )


ProviderName = Literal["google", "openrouter", "groq", "local"]


class ProviderConfiguration(ConfigurationBase):
    """LLM provider configuration.

    A provider is enabled purely by presence of its credential. When the API
    key is not set here, it is read from the provider's environment variable
    (for example GOOGLE_AI_API_KEY). The local provider is enabled by its base
    URL instead.
    """

    name: ProviderName = Field(
        ...,
        title="Provider name",
        description="Identifier of the provider",
    )

    api_key: Optional[SecretStr] = Field(
        None,
        title="API key",
        description="Provider credential. Read from environment when not set.",
    )

    base_url: Optional[str] = Field(
        None,
        title="Base URL",
        description="OpenAI-compatible endpoint. Provider's default is used when not set.",
    )

    models: ModelTiersConfiguration = Field(
        default_factory=ModelTiersConfiguration,
        title="Models",
        description="Model identifiers for flash and pro tiers",
    )


class RetryConfiguration(ConfigurationBase):
    """Retry policy for transient provider failures."""

    backoff_ms: list[NonNegativeInt] = Field(
        default_factory=lambda: list(constants.DEFAULT_RETRY_BACKOFF_MS),
        title="Backoff schedule",
        description="Delays in milliseconds before each retry. "
        "The number of items is the number of retries.",
    )


def _default_providers() -> list[ProviderConfiguration]:
    """Create configuration for all known providers with their defaults."""
    return [ProviderConfiguration(name=name) for name in constants.KNOWN_PROVIDERS]


class LLMConfiguration(ConfigurationBase):
    """LLM providers and generation parameters."""

    providers: list[ProviderConfiguration] = Field(
        default_factory=_default_providers,
        title="Providers",
        description="Providers in preferred order. All known providers are "
        "used when the list is not specified.",
    )

    request_timeout: PositiveFloat = Field(
        constants.DEFAULT_PROVIDER_REQUEST_TIMEOUT,
        title="Request timeout",
        description="Deadline in seconds for a single provider attempt",
    )

    max_output_tokens: PositiveInt = Field(
        constants.DEFAULT_MAX_OUTPUT_TOKENS,
        title="Max output tokens",
        description="Maximum number of tokens generated by the model",
    )

    temperature: float = Field(
        constants.DEFAULT_TEMPERATURE,
        ge=0.0,
        le=2.0,
        title="Temperature",
        description="Sampling temperature",
    )

    retry: RetryConfiguration = Field(
        default_factory=RetryConfiguration,
        title="Retry policy",
        description="Retry policy for transient provider failures",
    )

    @model_validator(mode="after")
    def check_llm_configuration(self) -> Self:
        """Check that each provider is configured at most once."""
        names = [provider.name for provider in self.providers]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"Providers configured more than once: {duplicates}")
        return self


class InMemoryCacheConfig(ConfigurationBase):
    """In-memory cache configuration."""

    max_entries: PositiveInt = Field(
        constants.DEFAULT_CACHE_MAX_ENTRIES,
        title="Max entries",
        description="Maximum number of entries stored in the in-memory cache",
    )


class RedisCacheConfig(ConfigurationBase):
    """Redis cache configuration.

    Redis is used as durable backend for the exact response cache. When the
    server is not reachable at startup, the in-memory backend is used instead.
    """

    host: str = Field(
        "localhost",
        title="Hostname",
        description="Redis server host",
    )

    port: PositiveInt = Field(
        6379,
        title="Port",
        description="Redis server port",
    )

    password: Optional[SecretStr] = Field(
        None,
        title="Password",
        description="Password used to authenticate",
    )

    db: NonNegativeInt = Field(
        0,
        title="Database",
        description="Redis logical database number",
    )

    key_prefix: str = Field(
        constants.DEFAULT_REDIS_KEY_PREFIX,
        title="Key prefix",
        description="Prefix of all keys stored by the response cache",
    )


class ResponseCacheConfiguration(ConfigurationBase):
    """Response cache configuration."""

    type: Literal["memory", "redis"] = Field(
        constants.CACHE_TYPE_MEMORY,
        title="Exact cache backend type",
        description="Type of storage used for the exact response cache",
    )

    memory: Optional[InMemoryCacheConfig] = Field(
        default_factory=InMemoryCacheConfig,
        title="In-memory cache configuration",
        description="In-memory cache configuration",
    )

    redis: Optional[RedisCacheConfig] = Field(
        None,
        title="Redis configuration",
        description="Redis cache configuration",
    )

    ttl_seconds: PositiveInt = Field(
        constants.DEFAULT_CACHE_TTL_SECONDS,
        title="Time to live",
        description="Entries older than this are treated as absent",
    )

    semantic_min_similarity: float = Field(
        constants.DEFAULT_SEMANTIC_MIN_SIMILARITY,
        gt=0.0,
        le=1.0,
        title="Semantic similarity threshold",
        description="Minimal Jaccard similarity needed for a semantic cache hit",
    )

    semantic_min_tokens: PositiveInt = Field(
        constants.DEFAULT_SEMANTIC_MIN_TOKENS,
        title="Semantic minimal tokens",
        description="Shorter queries are never matched semantically",
    )

    semantic_max_entries: PositiveInt = Field(
        constants.DEFAULT_CACHE_MAX_ENTRIES,
        title="Semantic max entries",
        description="Maximum number of entries stored in the semantic cache",
    )

    @model_validator(mode="after")
    def check_cache_configuration(self) -> Self:
        """Check response cache configuration."""
        match self.type:
            case constants.CACHE_TYPE_MEMORY:
                if self.memory is None:
                    raise ValueError("Memory cache is selected, but not configured")
                if self.redis is not None:
                    raise ValueError("Only memory cache config must be provided")
            case constants.CACHE_TYPE_REDIS:
                if self.redis is None:
                    raise ValueError("Redis cache is selected, but not configured")
        return self


class DataStoreConfiguration(ConfigurationBase):
    """Record store with brand and outlet collections."""

    url: AnyHttpUrl = Field(
        constants.DEFAULT_DATA_STORE_URL,
        validate_default=True,
        title="URL",
        description="Base URL of the record store REST API",
    )

    timeout: PositiveFloat = Field(
        constants.DEFAULT_DATA_STORE_TIMEOUT,
        title="Timeout",
        description="Timeout in seconds for a single record store request",
    )

    brands_collection: str = Field(
        constants.BRANDS_COLLECTION,
        title="Brands collection",
        description="Name of the collection with brand records",
    )

    outlets_collection: str = Field(
        constants.OUTLETS_COLLECTION,
        title="Outlets collection",
        description="Name of the collection with outlet records",
    )

    data_version_ttl_seconds: NonNegativeInt = Field(
        0,
        title="Data version TTL",
        description="How long the computed data version is reused. "
        "Zero means it is recomputed on every request.",
    )


class Configuration(ConfigurationBase):
    """Global service configuration."""

    name: str = Field(
        constants.DEFAULT_SERVICE_NAME,
        title="Service name",
        description="Name of the service. That value will be used in REST API endpoints.",
    )

    service: ServiceConfiguration = Field(
        default_factory=ServiceConfiguration,
        title="Service configuration",
        description="This section contains chat service configuration.",
    )

    llm: LLMConfiguration = Field(
        default_factory=LLMConfiguration,
        title="LLM configuration",
        description="LLM providers tried by the fallback orchestrator.",
    )

    cache: ResponseCacheConfiguration = Field(
        default_factory=ResponseCacheConfiguration,
        title="Response cache configuration",
        description="Exact and semantic response cache.",
    )

    data_store: DataStoreConfiguration = Field(
        default_factory=DataStoreConfiguration,
        title="Data store configuration",
        description="Record store used for retrieval and cache invalidation.",
    )

    def dump(self, filename: str = "configuration.json") -> None:
        """Dump actual configuration into JSON file."""
        with open(filename, "w", encoding="utf-8") as fout:
            fout.write(self.model_dump_json(indent=4))
