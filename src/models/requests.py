"""Models for REST API requests."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing_extensions import Literal

import constants
from models.config import ProviderName

MessageRole = Literal["system", "user", "assistant"]


class ChatMessage(BaseModel):
    """One message of the conversation sent by the client.

    Attributes:
        role: Author of the message.
        content: Text content of the message.
    """

    role: MessageRole = Field(
        ...,
        description="Author of the message",
        examples=["user", "assistant"],
    )
    content: str = Field(
        ...,
        description="Text content of the message",
        examples=["Dimana outlet Kumon terdekat?"],
    )


class UserLocation(BaseModel):
    """Geographic position of the user reported by the browser."""

    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude", examples=[-6.2])
    lng: float = Field(
        ..., ge=-180.0, le=180.0, description="Longitude", examples=[106.816666]
    )


class ProviderOverride(BaseModel):
    """Provider chosen by the caller for this request.

    The named provider is tried first. When `api_key` is given, it replaces
    the configured credential of that provider for this request only.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: ProviderName = Field(..., description="Provider identifier")
    api_key: Optional[str] = Field(
        None,
        alias="apiKey",
        description="Credential used instead of the configured one",
    )


class ChatRequest(BaseModel):
    """Chat request posted by the map UI.

    Attributes:
        messages: The whole conversation, oldest message first.
        user_location: Optional position of the user.
        provider_override: Optional provider preference.

    Example:
        ```python
        request = ChatRequest(
            messages=[ChatMessage(role="user", content="outlet kumon di bandung")],
            user_location=UserLocation(lat=-6.9, lng=107.6),
        )
        ```
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "messages": [
                        {"role": "user", "content": "Dimana outlet Kumon terdekat?"}
                    ],
                    "userLocation": {"lat": -6.2, "lng": 106.816666},
                }
            ]
        },
    )

    messages: list[ChatMessage] = Field(
        ...,
        description="Conversation, oldest message first",
    )
    user_location: Optional[UserLocation] = Field(
        None,
        alias="userLocation",
        description="Position of the user",
    )
    provider_override: Optional[ProviderOverride] = Field(
        None,
        alias="providerOverride",
        description="Provider that should be tried first",
    )

    @field_validator("messages")
    @classmethod
    def check_messages(cls, value: list[ChatMessage]) -> list[ChatMessage]:
        """Check that the conversation is not empty."""
        if not value:
            raise ValueError("Messages array is required")
        return value

    @field_validator("provider_override", mode="before")
    @classmethod
    def drop_unknown_provider(cls, value: object) -> object:
        """Ignore overrides that do not name a known provider.

        The browser may keep a stale provider name; such override is silently
        dropped instead of rejecting the whole request.
        """
        if not isinstance(value, dict):
            return value if isinstance(value, ProviderOverride) else None
        name = value.get("name")
        if name not in constants.KNOWN_PROVIDERS:
            return None
        return value

    @property
    def last_message(self) -> ChatMessage:
        """Return the message that drives routing and retrieval."""
        return self.messages[-1]
