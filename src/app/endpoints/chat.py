"""Handlers for the chat REST API endpoints."""

import json
from collections.abc import AsyncGenerator
from typing import Any, Union

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import ValidationError

import constants
from chat.service import ChatService, ChatStream
from log import get_logger
from models.requests import ChatRequest
from models.responses import (
    ChatErrorResponse,
    ChatResponse,
    ChatStatusResponse,
    SuggestedAction,
)
from providers.errors import NoProvidersConfiguredError, ProviderError
from providers.orchestrator import PROVIDER_FAILURES

logger = get_logger("app.endpoints.chat")
router = APIRouter(tags=["chat"])


chat_responses: dict[int | str, dict[str, Any]] = {
    200: ChatResponse.openapi_response(),
    400: ChatErrorResponse.openapi_response(examples=["bad request"]),
    500: ChatErrorResponse.openapi_response(examples=["providers failed"]),
    503: ChatErrorResponse.openapi_response(examples=["no provider"]),
}

chat_status_responses: dict[int | str, dict[str, Any]] = {
    200: ChatStatusResponse.openapi_response(),
}


def get_chat_service(request: Request) -> ChatService:
    """Return chat service created on application startup."""
    return request.app.state.chat_service


def _validation_message(error: ValidationError) -> str:
    """Summarize the first validation problem of the request body."""
    first = error.errors()[0]
    location = first.get("loc") or ()
    if location and location[0] == "messages" and first.get("type") in (
        "missing",
        "list_type",
        "value_error",
    ):
        return "Messages array is required"
    message = str(first.get("msg", "Invalid request"))
    return message.removeprefix("Value error, ")


async def parse_chat_request(
    request: Request,
) -> Union[ChatRequest, ChatErrorResponse]:
    """Parse and validate the request body.

    Returns:
        ChatRequest when the body is valid, error response otherwise.
    """
    try:
        body = await request.json()
    except ValueError:
        return ChatErrorResponse.bad_request("Request body is not valid JSON")
    if not isinstance(body, dict):
        return ChatErrorResponse.bad_request("Request body must be a JSON object")
    try:
        return ChatRequest.model_validate(body)
    except ValidationError as e:
        return ChatErrorResponse.bad_request(_validation_message(e))


def error_response(error: ChatErrorResponse) -> JSONResponse:
    """Turn error model into JSON response with its status code."""
    return JSONResponse(status_code=error.status_code, content=error.model_dump())


def provider_error_response(error: ProviderError) -> JSONResponse:
    """Map provider failure to JSON error response."""
    if isinstance(error, NoProvidersConfiguredError):
        logger.warning("Chat request refused: %s", error)
        return error_response(ChatErrorResponse.no_provider(str(error)))
    logger.error("Chat request failed: %s", error)
    return error_response(ChatErrorResponse.generic(str(error)))


@router.post(
    "/chat",
    responses=chat_responses,
    response_model=ChatResponse,
    response_model_exclude_none=True,
)
async def chat_endpoint_handler(
    request: Request,
    service: ChatService = Depends(get_chat_service),
) -> Union[ChatResponse, JSONResponse]:
    """Handle request to the /chat endpoint.

    The reply is served from the response cache when possible, otherwise it
    is generated by the first LLM provider that answers.

    Returns:
        ChatResponse: Reply with provenance, suggested actions and cache stats.
    """
    parsed = await parse_chat_request(request)
    if isinstance(parsed, ChatErrorResponse):
        logger.info("Invalid chat request: %s", parsed.error)
        return error_response(parsed)

    try:
        return await service.chat(parsed)
    except ProviderError as e:
        return provider_error_response(e)


@router.get("/chat", responses=chat_status_responses)
async def chat_status_endpoint_handler(
    service: ChatService = Depends(get_chat_service),
) -> ChatStatusResponse:
    """Handle request to the /chat endpoint diagnostics.

    Returns:
        ChatStatusResponse: Configured providers and cache statistics.
    """
    logger.info("Response to /v1/chat status endpoint")
    return service.status()


def format_stream_data(d: dict) -> str:
    """
    Format a dictionary as a Server-Sent Events (SSE) data string.

    Parameters:
        d (dict): The data to be formatted as an SSE event.

    Returns:
        str: The formatted SSE data string.
    """
    data = json.dumps(d, ensure_ascii=False)
    return f"data: {data}\n\n"


def stream_start_event(stream: ChatStream) -> str:
    """Format start event with provenance of the streamed reply."""
    data: dict[str, Any] = {"cached": stream.cached}
    for key, value in (
        ("cacheType", stream.cache_type),
        ("provider", stream.provider),
        ("model", stream.model),
        ("complexity", stream.complexity),
    ):
        if value is not None:
            data[key] = value
    return format_stream_data({"event": "start", "data": data})


def stream_end_event(
    actions: list[SuggestedAction], service: ChatService
) -> str:
    """Format end event with suggested actions and cache statistics."""
    return format_stream_data(
        {
            "event": "end",
            "data": {
                "actions": [
                    action.model_dump(by_alias=True, exclude_none=True)
                    for action in actions
                ],
                "stats": service.cache.stats().model_dump(
                    by_alias=True, exclude_none=True
                ),
            },
        }
    )


async def stream_events(
    stream: ChatStream, service: ChatService
) -> AsyncGenerator[str, None]:
    """Yield SSE events of the streamed reply.

    A provider failure in the middle of the stream ends it with an error
    event, the partial reply is not cached. The provider connection is
    released also when the client disconnects before the reply ended.
    """
    try:
        yield stream_start_event(stream)
        parts: list[str] = []
        try:
            async for token in stream.tokens:
                parts.append(token)
                yield format_stream_data(
                    {"event": "token", "data": {"id": len(parts) - 1, "token": token}}
                )
        except PROVIDER_FAILURES as e:
            logger.error("Streaming failed after %d fragments: %s", len(parts), e)
            error = ChatErrorResponse.generic(str(e))
            yield format_stream_data({"event": "error", "data": error.model_dump()})
            return
        actions = await stream.finish("".join(parts))
        yield stream_end_event(actions, service)
    finally:
        aclose = getattr(stream.tokens, "aclose", None)
        if aclose is not None:
            await aclose()


chat_stream_responses: dict[int | str, dict[str, Any]] = {
    **chat_responses,
    200: {"description": "Reply streamed as server-sent events"},
}


@router.post("/chat/stream", responses=chat_stream_responses, response_model=None)
async def chat_stream_endpoint_handler(
    request: Request,
    service: ChatService = Depends(get_chat_service),
) -> Union[StreamingResponse, JSONResponse]:
    """Handle request to the /chat/stream endpoint.

    Provider selection, retries and fallback happen before the stream starts,
    so errors of that phase are reported as regular JSON error responses.
    """
    parsed = await parse_chat_request(request)
    if isinstance(parsed, ChatErrorResponse):
        logger.info("Invalid chat request: %s", parsed.error)
        return error_response(parsed)

    try:
        stream = await service.open_stream(parsed)
    except ProviderError as e:
        return provider_error_response(e)

    return StreamingResponse(
        stream_events(stream, service),
        status_code=status.HTTP_200_OK,
        media_type=constants.MEDIA_TYPE_EVENT_STREAM,
    )
