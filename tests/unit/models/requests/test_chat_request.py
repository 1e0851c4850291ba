"""Unit tests for ChatRequest model."""

import pytest
from pydantic import ValidationError

from models.requests import ChatMessage, ChatRequest, ProviderOverride, UserLocation


def test_chat_request_from_json_aliases() -> None:
    """Test request as posted by the map UI."""
    request = ChatRequest.model_validate(
        {
            "messages": [
                {"role": "user", "content": "halo"},
                {"role": "assistant", "content": "Halo! Ada yang bisa dibantu?"},
                {"role": "user", "content": "outlet kumon terdekat"},
            ],
            "userLocation": {"lat": -6.2, "lng": 106.8},
            "providerOverride": {"name": "groq", "apiKey": "gsk-test"},
        }
    )

    assert request.last_message.content == "outlet kumon terdekat"
    assert request.user_location == UserLocation(lat=-6.2, lng=106.8)
    assert request.provider_override == ProviderOverride(
        name="groq", api_key="gsk-test"
    )


def test_chat_request_by_field_names() -> None:
    """Test constructing the request in code."""
    request = ChatRequest(
        messages=[ChatMessage(role="user", content="halo")],
        user_location=UserLocation(lat=0, lng=0),
    )
    assert request.provider_override is None
    assert request.user_location is not None


def test_chat_request_empty_messages() -> None:
    """Test that the conversation must not be empty."""
    with pytest.raises(ValidationError, match="Messages array is required"):
        ChatRequest(messages=[])


def test_chat_request_unknown_role() -> None:
    """Test message role validation."""
    with pytest.raises(ValidationError):
        ChatRequest.model_validate({"messages": [{"role": "bot", "content": "x"}]})


@pytest.mark.parametrize(
    "override",
    [{"name": "anthropic"}, {"apiKey": "x"}, "groq", 42],
)
def test_unknown_provider_override_is_dropped(override: object) -> None:
    """Test that unusable overrides are ignored."""
    request = ChatRequest.model_validate(
        {"messages": [{"role": "user", "content": "halo"}], "providerOverride": override}
    )
    assert request.provider_override is None


@pytest.mark.parametrize("lat, lng", [(91, 0), (-91, 0), (0, 181), (0, -181)])
def test_user_location_range(lat: float, lng: float) -> None:
    """Test coordinate validation."""
    with pytest.raises(ValidationError):
        UserLocation(lat=lat, lng=lng)
