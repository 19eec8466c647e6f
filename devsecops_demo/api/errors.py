"""Request error types and the fallback/error handlers of the API layer."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from devsecops_demo.config import AppSettings
from devsecops_demo.domain import domain_build_not_found_payload

from .security import api_apply_security_headers

GENERIC_ERROR_MESSAGE = "Something went wrong"


class RequestBodyError(ValueError):
    """Base exception for request bodies rejected by the parsing stage.

    Attributes:
        status_code: HTTP status returned to the client.
        error_label: Short error marker placed in the response payload.
        body_bytes: Declared or observed body size when known.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    error_label = "Bad Request"

    def __init__(self, message: str, body_bytes: int | None = None):
        super().__init__(message)
        self.body_bytes = body_bytes


class RequestBodyTooLargeError(RequestBodyError):
    """Body size reached the configured ceiling."""

    status_code = 413
    error_label = "Payload Too Large"


class RequestBodyMalformedError(RequestBodyError):
    """Body could not be decoded as a JSON document."""


def api_register_error_handlers(application: FastAPI, settings: AppSettings, logger: logging.Logger) -> None:
    """Install the fallback 404 and the environment-gated 500 handlers.

    Args:
        application: Application receiving the handlers.
        settings: Validated settings; `is_development` gates error detail.
        logger: Service logger for server-side error detail.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if logger is None:
        raise ValueError("logger must not be None")

    expose_error_detail = settings.is_development

    async def api_handle_http_exception(request: Request, error: StarletteHTTPException) -> JSONResponse:
        """Map routing failures to JSON responses.

        Unknown paths and known paths with an unsupported method both answer
        with the not-found payload.

        Returns:
            JSONResponse: Not-found payload or the exception detail.
        """

        if error.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return JSONResponse(
                content=domain_build_not_found_payload(request.url.path),
                status_code=status.HTTP_404_NOT_FOUND,
            )
        return JSONResponse(
            content={"error": str(error.detail)},
            status_code=error.status_code,
            headers=error.headers,
        )

    async def api_handle_unexpected_error(request: Request, error: Exception) -> JSONResponse:
        """Log the failure with its traceback and return a 500 payload.

        Returns:
            JSONResponse: Generic message, or the raw message in development.
        """

        logger.error(
            "Unhandled error while processing %s %s",
            request.method,
            request.url.path,
            exc_info=error,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
                "error_type": type(error).__name__,
            },
        )
        message = str(error) if expose_error_detail else GENERIC_ERROR_MESSAGE
        response = JSONResponse(
            content={"error": "Internal Server Error", "message": message},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        # This handler runs outside the middleware chain.
        api_apply_security_headers(response.headers)
        return response

    application.add_exception_handler(StarletteHTTPException, api_handle_http_exception)
    application.add_exception_handler(Exception, api_handle_unexpected_error)
