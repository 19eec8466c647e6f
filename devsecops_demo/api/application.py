"""FastAPI application factory for the demo service.

This module composes the middleware chain, routers and error handlers into
one ASGI application. All collaborators are passed in explicitly.
"""

import logging
from pathlib import Path

from fastapi import FastAPI
from starlette.middleware import Middleware

from devsecops_demo import __version__
from devsecops_demo.config import AppSettings
from devsecops_demo.domain import APPLICATION_NAME, AppMetadata, ProcessClock, ServiceClock

from .errors import api_register_error_handlers
from .middleware import (
    InFlightRequestTracker,
    InFlightTrackingMiddleware,
    JsonBodyMiddleware,
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    StaticAssetMiddleware,
)
from .routers import api_create_health_router, api_create_metadata_router, api_create_welcome_router


def create_api_application(
    settings: AppSettings,
    logger: logging.Logger,
    clock: ServiceClock | None = None,
    request_tracker: InFlightRequestTracker | None = None,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings resolved once at startup.
        logger: Service logger used by request logging and error handling.
        clock: Optional clock source; defaults to a clock started now.
        request_tracker: Optional in-flight counter shared with the shutdown controller.

    Returns:
        FastAPI: Framework application instance with the full middleware chain.

    Raises:
        ValueError: Raised when required dependencies are missing.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if logger is None:
        raise ValueError("logger must not be None")

    metadata = AppMetadata(
        application_name=APPLICATION_NAME,
        version=__version__,
        environment_name=settings.environment_name,
        application_port=settings.application_port,
    )
    resolved_clock = clock or ProcessClock()
    resolved_tracker = request_tracker or InFlightRequestTracker()
    static_directory = Path(settings.static_directory).resolve()

    application = FastAPI(
        title=APPLICATION_NAME,
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        middleware=[
            Middleware(InFlightTrackingMiddleware, tracker=resolved_tracker),
            Middleware(SecurityHeadersMiddleware),
            Middleware(JsonBodyMiddleware, limit_bytes=settings.request_body_limit_bytes, logger=logger),
            Middleware(RequestLoggingMiddleware, logger=logger),
            Middleware(StaticAssetMiddleware, directory=static_directory),
        ],
    )

    application.include_router(api_create_welcome_router(metadata=metadata))
    application.include_router(api_create_health_router(metadata=metadata, clock=resolved_clock))
    application.include_router(api_create_metadata_router(metadata=metadata))
    api_register_error_handlers(application, settings=settings, logger=logger)

    return application
