"""Unit tests for the /readiness and /liveness REST API endpoints."""

from fastapi.testclient import TestClient

from app.main import create_app
from models.config import Configuration, LLMConfiguration, ProviderConfiguration
from tests.unit.utils.fake_service import build_chat_service, llm_configuration


def test_readiness_with_providers() -> None:
    """Test readiness once a provider is configured."""
    service = build_chat_service(llm=llm_configuration("google", "groq"))
    client = TestClient(create_app(Configuration(), service))

    response = client.get("/readiness")

    assert response.status_code == 200
    assert response.json() == {
        "ready": True,
        "reason": "Service is ready",
        "providers": ["google", "groq"],
    }


def test_readiness_without_providers() -> None:
    """Test that the service is not ready without any provider."""
    service = build_chat_service(
        llm=LLMConfiguration(providers=[ProviderConfiguration(name="groq")])
    )
    client = TestClient(create_app(Configuration(), service))

    response = client.get("/readiness")

    assert response.status_code == 503
    assert response.json() == {
        "ready": False,
        "reason": "No AI providers configured",
        "providers": [],
    }


def test_liveness() -> None:
    """Test the liveness probe."""
    client = TestClient(create_app(Configuration(), build_chat_service()))

    response = client.get("/liveness")

    assert response.status_code == 200
    assert response.json() == {"alive": True}
