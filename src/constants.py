"""Constants used in business logic."""

from typing import Final

# Service name used when configuration does not specify one
DEFAULT_SERVICE_NAME: Final[str] = "FranchiseAI chat"

# Default configuration file
DEFAULT_CONFIGURATION_FILE: Final[str] = "franchise-chat.yaml"

# Environment variable used to pass configuration path to uvicorn workers
CONFIGURATION_PATH_ENV_VARIABLE: Final[str] = "FRANCHISE_CHAT_CONFIG_PATH"

# Model tiers
MODEL_TIER_FLASH: Final[str] = "flash"
MODEL_TIER_PRO: Final[str] = "pro"

# Known LLM providers
PROVIDER_GOOGLE: Final[str] = "google"
PROVIDER_OPENROUTER: Final[str] = "openrouter"
PROVIDER_GROQ: Final[str] = "groq"
PROVIDER_LOCAL: Final[str] = "local"
KNOWN_PROVIDERS: Final[tuple[str, ...]] = (
    PROVIDER_GOOGLE,
    PROVIDER_OPENROUTER,
    PROVIDER_GROQ,
    PROVIDER_LOCAL,
)

# OpenAI-compatible endpoints of known providers
PROVIDER_BASE_URLS: Final[dict[str, str]] = {
    PROVIDER_GOOGLE: "https://generativelanguage.googleapis.com/v1beta/openai/",
    PROVIDER_OPENROUTER: "https://openrouter.ai/api/v1",
    PROVIDER_GROQ: "https://api.groq.com/openai/v1",
}

# Environment variables holding provider credentials
PROVIDER_API_KEY_ENV_VARIABLES: Final[dict[str, str]] = {
    PROVIDER_GOOGLE: "GOOGLE_AI_API_KEY",
    PROVIDER_OPENROUTER: "OPENROUTER_API_KEY",
    PROVIDER_GROQ: "GROQ_API_KEY",
    PROVIDER_LOCAL: "LOCAL_AI_API_KEY",
}
LOCAL_AI_BASE_URL_ENV_VARIABLE: Final[str] = "LOCAL_AI_BASE_URL"

# Environment variables overriding model identifiers, first one set wins
PROVIDER_MODEL_ENV_VARIABLES: Final[dict[str, dict[str, tuple[str, ...]]]] = {
    PROVIDER_OPENROUTER: {
        MODEL_TIER_FLASH: ("OPENROUTER_MODEL_FLASH",),
        MODEL_TIER_PRO: ("OPENROUTER_MODEL_PRO",),
    },
    PROVIDER_LOCAL: {
        MODEL_TIER_FLASH: (
            "LOCAL_AI_MODEL_FLASH",
            "LOCAL_AI_MODEL",
            "LOCAL_AI_MODEL_PRO",
        ),
        MODEL_TIER_PRO: (
            "LOCAL_AI_MODEL_PRO",
            "LOCAL_AI_MODEL",
            "LOCAL_AI_MODEL_FLASH",
        ),
    },
}
# local servers usually ignore the key, but the client requires one
LOCAL_AI_DEFAULT_API_KEY: Final[str] = "local"

# Default models per provider and tier
DEFAULT_PROVIDER_MODELS: Final[dict[str, dict[str, str]]] = {
    PROVIDER_GOOGLE: {
        MODEL_TIER_FLASH: "gemini-2.0-flash",
        MODEL_TIER_PRO: "gemini-2.5-pro-preview-05-06",
    },
    PROVIDER_OPENROUTER: {
        MODEL_TIER_FLASH: "google/gemini-2.0-flash-exp:free",
        MODEL_TIER_PRO: "google/gemini-2.5-pro-exp-03-25:free",
    },
    PROVIDER_GROQ: {
        MODEL_TIER_FLASH: "llama-3.3-70b-versatile",
        MODEL_TIER_PRO: "llama-3.3-70b-versatile",
    },
}

# Generation parameters
DEFAULT_MAX_OUTPUT_TOKENS: Final[int] = 1024
DEFAULT_TEMPERATURE: Final[float] = 0.7
DEFAULT_PROVIDER_REQUEST_TIMEOUT: Final[float] = 30.0
DEFAULT_RETRY_BACKOFF_MS: Final[tuple[int, ...]] = (300, 800)

# Complexity router policy
ROUTER_SIMPLE_MAX_LENGTH: Final[int] = 15
ROUTER_LONG_MESSAGE_LENGTH: Final[int] = 100
ROUTER_VERY_LONG_MESSAGE_LENGTH: Final[int] = 250
ROUTER_MULTI_SENTENCE_COUNT: Final[int] = 2
ROUTER_MIN_RAG_SCORE: Final[int] = 1
ROUTER_MEDIUM_SCORE: Final[int] = 1
ROUTER_COMPLEX_SCORE: Final[int] = 3

# Response cache
CACHE_TYPE_MEMORY: Final[str] = "memory"
CACHE_TYPE_REDIS: Final[str] = "redis"
DEFAULT_CACHE_TTL_SECONDS: Final[int] = 30 * 60
DEFAULT_CACHE_MAX_ENTRIES: Final[int] = 500
DEFAULT_SEMANTIC_MIN_SIMILARITY: Final[float] = 0.84
DEFAULT_SEMANTIC_MIN_TOKENS: Final[int] = 3
SEMANTIC_MIN_TOKEN_LENGTH: Final[int] = 3
DEFAULT_REDIS_KEY_PREFIX: Final[str] = "ai:cache:"
# ~11 m for exact keys, ~110 m for semantic buckets
EXACT_KEY_LOCATION_PRECISION: Final[int] = 4
SEMANTIC_LOCATION_PRECISION: Final[int] = 3

# Record store
DEFAULT_DATA_STORE_URL: Final[str] = "https://pocketbase.startfranchise.id"
DEFAULT_DATA_STORE_TIMEOUT: Final[float] = 10.0
BRANDS_COLLECTION: Final[str] = "brands"
OUTLETS_COLLECTION: Final[str] = "outlets"
DATA_STORE_FULL_LIST_BATCH: Final[int] = 500

# Retrieval limits
RAG_TOP_OUTLETS: Final[int] = 10
RAG_NEAREST_OUTLETS: Final[int] = 5
EARTH_RADIUS_KM: Final[float] = 6371.0

# Pseudo provider used for answers built directly from the record store
DIRECT_PROVIDER_NAME: Final[str] = "db"
DIRECT_MODEL_NAME: Final[str] = "direct"

# Media type for streamed chat replies
MEDIA_TYPE_EVENT_STREAM: Final[str] = "text/event-stream"
