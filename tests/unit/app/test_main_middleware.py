"""Unit tests for the global exception middleware in main.py."""

import json
from typing import cast
from unittest.mock import Mock

import pytest
from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from starlette.requests import Request as StarletteRequest

from app.main import global_exception_middleware
from models.responses import GENERIC_ERROR_REPLY


@pytest.mark.asyncio
async def test_global_exception_middleware_catches_unexpected_exception() -> None:
    """Test that global exception middleware catches unexpected exceptions."""

    mock_request = Mock(spec=StarletteRequest)
    mock_request.url.path = "/test"

    async def mock_call_next_raises_error(request: Request) -> Response:
        """Mock call_next that raises an unexpected exception."""
        raise ValueError("This is an unexpected error for testing")

    response = await global_exception_middleware(
        mock_request, mock_call_next_raises_error
    )

    # Verify it returns a JSONResponse
    assert isinstance(response, JSONResponse)
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR

    response_body = json.loads(bytes(response.body).decode("utf-8"))
    assert response_body == {
        "error": "This is an unexpected error for testing",
        "reply": GENERIC_ERROR_REPLY,
    }


@pytest.mark.asyncio
async def test_global_exception_middleware_passes_through_http_exception() -> None:
    """Test that global exception middleware passes through HTTPException unchanged."""

    mock_request = Mock(spec=StarletteRequest)
    mock_request.url.path = "/test"

    async def mock_call_next_raises_http_exception(request: Request) -> Response:
        """Mock call_next that raises HTTPException."""
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Test error", "reply": "This is a test"},
        )

    with pytest.raises(HTTPException) as exc_info:
        await global_exception_middleware(
            mock_request, mock_call_next_raises_http_exception
        )

    assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
    detail = cast(dict[str, str], exc_info.value.detail)
    assert detail["error"] == "Test error"


@pytest.mark.asyncio
async def test_global_exception_middleware_returns_response() -> None:
    """Test that successful responses are returned untouched."""
    mock_request = Mock(spec=StarletteRequest)
    expected = Response(content="ok")

    async def mock_call_next(request: Request) -> Response:
        """Mock call_next returning a response."""
        return expected

    assert await global_exception_middleware(mock_request, mock_call_next) is expected
