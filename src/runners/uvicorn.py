"""Uvicorn runner."""

import logging

import uvicorn

from models.config import ServiceConfiguration

logger = logging.getLogger(__name__)


def start_uvicorn(configuration: ServiceConfiguration) -> None:
    """Start Uvicorn-based REST API service.

    The application is built by a factory in every worker process, each
    worker loads the configuration from the path stored in the environment.

    Parameters:
        configuration (ServiceConfiguration): Host, port, worker count and
        access log settings of the service.
    """
    logger.info("Starting Uvicorn")

    log_level = logging.INFO

    # please note:
    # TLS fields are optional, uvicorn is expected to run behind a proxy
    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=configuration.host,
        port=configuration.port,
        workers=configuration.workers,
        log_level=log_level,
        use_colors=configuration.color_log,
        access_log=configuration.access_log,
    )
