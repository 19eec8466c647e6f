"""Application bootstrap wiring for startup validation and dependency assembly."""

import asyncio
import logging

from fastapi import FastAPI

from devsecops_demo.api import InFlightRequestTracker, create_api_application
from devsecops_demo.config import AppSettings
from devsecops_demo.domain import ProcessClock
from devsecops_demo.runtime import (
    EXIT_CODE_FORCED,
    ListenerBindError,
    ShutdownController,
    runtime_bind_listener,
    runtime_create_server,
)


def bootstrap_create_application(
    settings: AppSettings,
    logger: logging.Logger,
    request_tracker: InFlightRequestTracker | None = None,
) -> FastAPI:
    """Assemble the ASGI application from validated settings.

    Args:
        settings: Validated runtime settings.
        logger: Configured service logger.
        request_tracker: Optional in-flight counter shared with the shutdown controller.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.
    """

    return create_api_application(
        settings=settings,
        logger=logger,
        clock=ProcessClock(),
        request_tracker=request_tracker,
    )


def bootstrap_run_service(settings: AppSettings, logger: logging.Logger) -> int:
    """Bind the listener, serve until shutdown and return the exit code.

    Args:
        settings: Validated runtime settings.
        logger: Configured service logger.

    Returns:
        int: 0 after a clean drain, 1 after a forced shutdown or bind failure.
    """

    try:
        listener = runtime_bind_listener(settings.application_host, settings.application_port)
    except ListenerBindError as error:
        logger.error(
            "Listener bind failed: %s",
            error,
            extra={"host": error.host, "port": error.port, "exit_code": EXIT_CODE_FORCED},
        )
        return EXIT_CODE_FORCED

    request_tracker = InFlightRequestTracker()
    application = bootstrap_create_application(settings, logger, request_tracker=request_tracker)
    server = runtime_create_server(application, settings)
    controller = ShutdownController(
        server=server,
        logger=logger,
        drain_timeout_seconds=settings.shutdown_timeout_seconds,
        request_tracker=request_tracker,
    )

    bound_host, bound_port = listener.getsockname()[:2]
    logger.info(
        "Server running on port %s",
        bound_port,
        extra={
            "host": bound_host,
            "port": bound_port,
            "environment": settings.environment_name,
            "static_directory": settings.static_directory,
        },
    )
    logger.info("Environment: %s", settings.environment_name, extra={"environment": settings.environment_name})
    logger.info("Health: http://localhost:%s/health", bound_port)
    logger.info("Info: http://localhost:%s/info", bound_port)

    try:
        return asyncio.run(controller.lifecycle_run(sockets=[listener]))
    finally:
        listener.close()
