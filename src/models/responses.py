"""Models for REST API responses."""

from enum import Enum
from typing import Any, ClassVar, Optional

from fastapi import status
from pydantic import BaseModel, ConfigDict, Field
from pydantic_core import SchemaError

BAD_REQUEST_DESCRIPTION = "Invalid request format"
INTERNAL_SERVER_ERROR_DESCRIPTION = "Internal server error"
SERVICE_UNAVAILABLE_DESCRIPTION = "Service unavailable"

# Replies shown to the user when the request can not be answered
GENERIC_ERROR_REPLY = (
    "Maaf, terjadi kesalahan saat memproses permintaan Anda. Silakan coba lagi."
)
BAD_REQUEST_REPLY = "Maaf, permintaan tidak valid. Silakan kirim ulang pesan Anda."
NO_PROVIDER_REPLY = (
    "Maaf, AI belum dikonfigurasi. Silakan tambahkan API key "
    "(GOOGLE_AI_API_KEY, OPENROUTER_API_KEY, atau GROQ_API_KEY)."
)


class AbstractSuccessfulResponse(BaseModel):
    """Base class for all successful response models."""

    @classmethod
    def openapi_response(cls) -> dict[str, Any]:
        """Generate FastAPI response dict with a single example from model_config."""
        schema = cls.model_json_schema()
        model_examples = schema.get("examples")
        if not model_examples:
            raise SchemaError(f"Examples not found in {cls.__name__}")
        example_value = model_examples[0]
        content = {"application/json": {"example": example_value}}

        return {
            "description": "Successful response",
            "model": cls,
            "content": content,
        }


class ActionType(str, Enum):
    """Directives understood by the map UI."""

    SET_SEARCH = "set_search"
    SET_CATEGORY = "set_category"
    SET_BRAND = "set_brand"
    CLEAR_FILTERS = "clear_filters"
    FOCUS_OUTLET = "focus_outlet"
    OPEN_OUTLET_DETAIL = "open_outlet_detail"
    NAVIGATE_TO_OUTLET = "navigate_to_outlet"
    HIGHLIGHT_CITY = "highlight_city"
    FIT_BOUNDS = "fit_bounds"
    RESET_VIEW = "reset_view"


class SuggestedAction(BaseModel):
    """UI directive suggested alongside the reply.

    Only the payload needed by the given action type is filled in.
    """

    model_config = ConfigDict(populate_by_name=True, use_enum_values=True)

    type: ActionType = Field(..., description="Action to perform")
    label: str = Field(..., description="Human readable label")
    brand_id: Optional[str] = Field(None, alias="brandId", description="Brand ID")
    outlet_id: Optional[str] = Field(None, alias="outletId", description="Outlet ID")
    city: Optional[str] = Field(None, description="City name")
    value: Optional[str] = Field(None, description="Free text value")


class SemanticCacheStats(BaseModel):
    """Statistics of the semantic cache tier."""

    size: int = Field(..., description="Number of stored entries")
    hits: int = Field(..., description="Cumulative hits")
    misses: int = Field(..., description="Cumulative misses")
    hit_rate: str = Field(..., alias="hitRate", description="Hit rate in percent")

    model_config = ConfigDict(populate_by_name=True)


class CacheStats(BaseModel):
    """Statistics of the response cache."""

    backend: str = Field(..., description="Active exact cache backend")
    size: Optional[int] = Field(
        None, description="Number of stored entries for in-process backend"
    )
    max_size: int = Field(..., alias="maxSize", description="Capacity of the cache")
    hits: int = Field(..., description="Cumulative exact cache hits")
    misses: int = Field(..., description="Cumulative exact cache misses")
    hit_rate: str = Field(..., alias="hitRate", description="Hit rate in percent")
    semantic: SemanticCacheStats = Field(..., description="Semantic cache tier")

    model_config = ConfigDict(populate_by_name=True)


class ChatResponse(AbstractSuccessfulResponse):
    """Model representing a reply to a chat request.

    Attributes:
        reply: Generated or cached reply text.
        cached: Whether the reply came from the response cache.
        cache_type: `semantic` for semantic cache hits.
        provider: Provider that generated the reply.
        model: Model that generated the reply.
        complexity: Complexity classification of the user message.
        actions: Suggested UI actions.
        stats: Response cache statistics.
    """

    reply: str = Field(..., description="Reply text")
    cached: bool = Field(..., description="Reply was served from the cache")
    cache_type: Optional[str] = Field(
        None, alias="cacheType", description="Cache tier that served the reply"
    )
    provider: Optional[str] = Field(None, description="Provider of the reply")
    model: Optional[str] = Field(None, description="Model of the reply")
    complexity: Optional[str] = Field(None, description="Message complexity")
    actions: list[SuggestedAction] = Field(
        default_factory=list, description="Suggested UI actions"
    )
    stats: CacheStats = Field(..., description="Cache statistics")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "reply": "Berikut outlet **Kumon** dengan rating tertinggi ...",
                    "cached": False,
                    "provider": "google",
                    "model": "gemini-2.0-flash",
                    "complexity": "medium",
                    "actions": [
                        {
                            "type": "set_brand",
                            "label": "Tampilkan Kumon",
                            "brandId": "k7mbr4nd1d",
                        }
                    ],
                    "stats": {
                        "backend": "memory",
                        "size": 1,
                        "maxSize": 500,
                        "hits": 0,
                        "misses": 1,
                        "hitRate": "0.0%",
                        "semantic": {
                            "size": 1,
                            "hits": 0,
                            "misses": 0,
                            "hitRate": "0%",
                        },
                    },
                }
            ]
        },
    )


class ChatStatusResponse(AbstractSuccessfulResponse):
    """Model representing the diagnostic view of the chat endpoint."""

    status: str = Field(..., description="Service status")
    providers: list[str] = Field(..., description="Configured provider names")
    cache: CacheStats = Field(..., description="Cache statistics")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "status": "ok",
                    "providers": ["google", "groq"],
                    "cache": {
                        "backend": "redis",
                        "maxSize": 500,
                        "hits": 12,
                        "misses": 30,
                        "hitRate": "28.6%",
                        "semantic": {
                            "size": 25,
                            "hits": 3,
                            "misses": 27,
                            "hitRate": "10.0%",
                        },
                    },
                }
            ]
        },
    )


class InfoResponse(AbstractSuccessfulResponse):
    """Model representing a response to an info request.

    Attributes:
        name: Service name.
        service_version: Service version.
    """

    name: str = Field(
        description="Service name",
        examples=["FranchiseAI chat"],
    )

    service_version: str = Field(
        description="Service version",
        examples=["0.1.0", "0.2.0", "1.0.0"],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "name": "FranchiseAI chat",
                    "service_version": "1.0.0",
                }
            ]
        }
    }


class ReadinessResponse(AbstractSuccessfulResponse):
    """Model representing response to a readiness request.

    Attributes:
        ready: If service is ready.
        reason: The reason for the readiness.
        providers: Names of configured providers.
    """

    ready: bool = Field(
        ...,
        description="Flag indicating if service is ready",
        examples=[True, False],
    )

    reason: str = Field(
        ...,
        description="The reason for the readiness",
        examples=["Service is ready"],
    )

    providers: list[str] = Field(
        ...,
        description="Names of configured providers",
        examples=[["google"]],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "ready": True,
                    "reason": "Service is ready",
                    "providers": ["google", "openrouter"],
                }
            ]
        }
    }


class LivenessResponse(AbstractSuccessfulResponse):
    """Model representing a response to a liveness request.

    Attributes:
        alive: If app is alive.
    """

    alive: bool = Field(
        ...,
        description="Flag indicating that the app is alive",
        examples=[True, False],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "alive": True,
                }
            ]
        }
    }


class ChatErrorResponse(BaseModel):
    """
    Error reply of the chat endpoint.

    The `reply` is always a polite text that can be shown to the user as is,
    `error` is a machine readable summary of the failure.

    Attributes:
        status_code (int): HTTP status code, not part of the JSON body.
        error (str): Summary of the error.
        reply (str): Text shown to the user.
    """

    description: ClassVar[str] = INTERNAL_SERVER_ERROR_DESCRIPTION

    status_code: int = Field(..., exclude=True)
    error: str = Field(..., description="Summary of the error")
    reply: str = Field(..., description="Text shown to the user")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "label": "bad request",
                    "detail": {
                        "error": "Messages array is required",
                        "reply": BAD_REQUEST_REPLY,
                    },
                },
                {
                    "label": "no provider",
                    "detail": {
                        "error": "No AI providers configured",
                        "reply": NO_PROVIDER_REPLY,
                    },
                },
                {
                    "label": "providers failed",
                    "detail": {
                        "error": "All AI providers failed. google:flash:rate_limit:429",
                        "reply": GENERIC_ERROR_REPLY,
                    },
                },
            ]
        }
    }

    @classmethod
    def openapi_response(cls, examples: Optional[list[str]] = None) -> dict[str, Any]:
        """Generate FastAPI response dict with examples from model_config."""
        schema = cls.model_json_schema()
        model_examples = schema.get("examples", [])

        named_examples: dict[str, Any] = {}
        for ex in model_examples:
            label = ex.get("label", None)
            if label is None:
                raise SchemaError(f"Example {ex} in {cls.__name__} has no label")
            if examples is None or label in examples:
                detail = ex.get("detail")
                if detail is not None:
                    named_examples[label] = {"value": detail}

        content: dict[str, Any] = {
            "application/json": {"examples": named_examples or None}
        }

        return {
            "description": cls.description,
            "model": cls,
            "content": content,
        }

    @classmethod
    def bad_request(cls, cause: str) -> "ChatErrorResponse":
        """Create an error response for a malformed request."""
        return cls(
            status_code=status.HTTP_400_BAD_REQUEST,
            error=cause,
            reply=BAD_REQUEST_REPLY,
        )

    @classmethod
    def no_provider(cls, cause: str) -> "ChatErrorResponse":
        """Create an error response for a service without any LLM provider."""
        return cls(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error=cause,
            reply=NO_PROVIDER_REPLY,
        )

    @classmethod
    def generic(cls, cause: str) -> "ChatErrorResponse":
        """Create an error response for exhausted providers or unexpected errors."""
        return cls(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error=cause or INTERNAL_SERVER_ERROR_DESCRIPTION,
            reply=GENERIC_ERROR_REPLY,
        )
