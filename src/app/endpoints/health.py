"""Handlers for health REST API endpoints.

These endpoints are used to check if service is live and prepared to accept
requests. Note that these endpoints can be accessed using GET or HEAD HTTP
methods. For HEAD HTTP method, just the HTTP response code is used.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Response, status

from app.endpoints.chat import get_chat_service
from chat.service import ChatService
from models.responses import LivenessResponse, ReadinessResponse

logger = logging.getLogger("app.endpoints.handlers")
router = APIRouter(tags=["health"])


get_readiness_responses: dict[int | str, dict[str, Any]] = {
    200: ReadinessResponse.openapi_response(),
    503: {
        "description": "No LLM provider is configured",
        "model": ReadinessResponse,
    },
}

get_liveness_responses: dict[int | str, dict[str, Any]] = {
    200: LivenessResponse.openapi_response(),
}


@router.get("/readiness", responses=get_readiness_responses)
async def readiness_probe_get_method(
    response: Response,
    service: ChatService = Depends(get_chat_service),
) -> ReadinessResponse:
    """
    Handle the readiness probe endpoint, returning service readiness.

    The service is ready once at least one LLM provider has a credential,
    otherwise it responds with HTTP 503.
    """
    logger.info("Response to /readiness endpoint")

    providers = service.orchestrator.configured_providers()
    if not providers:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessResponse(
            ready=False, reason="No AI providers configured", providers=[]
        )

    return ReadinessResponse(
        ready=True, reason="Service is ready", providers=providers
    )


@router.get("/liveness", responses=get_liveness_responses)
async def liveness_probe_get_method() -> LivenessResponse:
    """
    Return the liveness status of the service.

    Returns:
        LivenessResponse: Indicates that the service is alive.
    """
    logger.info("Response to /liveness endpoint")

    return LivenessResponse(alive=True)
