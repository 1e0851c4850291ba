"""REST API routers."""

from fastapi import FastAPI

from app.endpoints import chat, health, info


def include_routers(app: FastAPI) -> None:
    """Include FastAPI routers for different endpoints.

    Args:
        app: The `FastAPI` app instance.
    """
    app.include_router(info.router, prefix="/v1")
    app.include_router(chat.router, prefix="/v1")

    # probes are not versioned
    app.include_router(health.router)
