"""Tests the OpenAPI specification generated by the service."""

from typing import Any

import pytest
import requests
from fastapi.testclient import TestClient

from app.main import create_app
from models.config import Configuration
from tests.unit.utils.fake_service import build_chat_service

URL = "/openapi.json"


@pytest.fixture(scope="module", name="spec")
def open_api_spec() -> dict[str, Any]:
    """Fixture containing OpenAPI specification represented as a dictionary.

    Returns:
        openapi_spec (dict[str, Any]): The OpenAPI document served by the app.
    """
    app = create_app(Configuration(name="FranchiseAI chat"), build_chat_service())
    response = TestClient(app).get(URL)
    assert response.status_code == requests.codes.ok  # pylint: disable=no-member

    payload = response.json()
    assert payload is not None, "Incorrect response"
    return payload


def test_openapi_top_level_info(spec: dict[str, Any]) -> None:
    """Check that the document has proper title and version."""
    assert spec["openapi"].startswith("3.")
    assert spec["info"]["title"] == "FranchiseAI chat service - OpenAPI"
    assert spec["info"]["version"]


@pytest.mark.parametrize(
    "path, method, expected_codes",
    [
        ("/v1/info", "get", {"200"}),
        ("/v1/chat", "get", {"200"}),
        ("/v1/chat", "post", {"200", "400", "500", "503"}),
        ("/v1/chat/stream", "post", {"200", "400", "500", "503"}),
        ("/readiness", "get", {"200", "503"}),
        ("/liveness", "get", {"200"}),
    ],
)
def test_paths_and_responses_exist(
    spec: dict[str, Any], path: str, method: str, expected_codes: set[str]
) -> None:
    """Check that all endpoints and their response codes are documented."""
    paths = spec["paths"]
    assert path in paths, f"Missing path: {path}"
    assert method in paths[path], f"Missing method {method} for path {path}"
    documented = set(paths[path][method]["responses"])
    assert expected_codes.issubset(documented), (
        f"Missing response codes for {method.upper()} {path}: "
        f"{expected_codes - documented}"
    )


def test_chat_response_schema(spec: dict[str, Any]) -> None:
    """Check that the chat reply schema uses camel case aliases."""
    schema = spec["components"]["schemas"]["ChatResponse"]
    assert {"reply", "cached", "stats"}.issubset(schema["required"])
    assert "cacheType" in schema["properties"]
