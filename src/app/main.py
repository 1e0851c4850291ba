"""Definition of FastAPI based web service."""

import os
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import constants
from app import routers
from chat.service import ChatService
from configuration import configuration
from log import get_logger
from models.config import Configuration
from models.responses import ChatErrorResponse
from version import __version__

logger = get_logger(__name__)


def load_configuration() -> Configuration:
    """Return loaded configuration, loading it in a fresh worker process."""
    if not configuration.is_loaded:
        configuration.load_configuration(
            os.environ.get(
                constants.CONFIGURATION_PATH_ENV_VARIABLE,
                constants.DEFAULT_CONFIGURATION_FILE,
            )
        )
    return configuration.configuration


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the chat service on startup and release it on shutdown.

    A service injected before startup is used as is and not closed.
    """
    owned = getattr(app.state, "chat_service", None) is None
    if owned:
        logger.info("Initializing chat service")
        app.state.chat_service = await ChatService.create(app.state.configuration)
    logger.info("App startup complete")
    yield
    if owned:
        await app.state.chat_service.close()
    logger.info("App shutdown complete")


async def global_exception_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Turn unexpected exceptions into polite 500 responses."""
    try:
        return await call_next(request)
    except HTTPException:
        raise
    except Exception as exc:  # pylint: disable=broad-exception-caught
        logger.exception("Uncaught exception in endpoint %s: %s", request.url.path, exc)
        error_response = ChatErrorResponse.generic(str(exc))
        return JSONResponse(
            status_code=error_response.status_code,
            content=error_response.model_dump(),
        )


def create_app(
    config: Optional[Configuration] = None,
    chat_service: Optional[ChatService] = None,
) -> FastAPI:
    """Create the web service.

    Parameters:
        config: Service configuration, loaded from file when not given.
        chat_service: Already constructed chat service, mainly for tests.

    Returns:
        FastAPI: The application.
    """
    config = config or load_configuration()

    app = FastAPI(
        title=f"{config.name} service - OpenAPI",
        summary=f"{config.name} service API specification.",
        description=(
            "AI chat for the franchise map. Answers are enriched by brand and "
            "outlet data and generated by the first available LLM provider."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.configuration = config
    if chat_service is not None:
        app.state.chat_service = chat_service

    cors = config.service.cors
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors.allow_origins,
        allow_credentials=cors.allow_credentials,
        allow_methods=cors.allow_methods,
        allow_headers=cors.allow_headers,
    )
    app.middleware("http")(global_exception_middleware)

    routers.include_routers(app)
    return app
