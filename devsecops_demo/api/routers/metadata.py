"""Static metadata routers describing the application and its endpoints."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from devsecops_demo.domain import AppMetadata, domain_build_api_payload, domain_build_info_payload


def api_create_metadata_router(metadata: AppMetadata) -> APIRouter:
    """Create router exposing `/info` and `/api`.

    Args:
        metadata: Read-only runtime metadata.

    Returns:
        APIRouter: Router with the static description endpoints.

    Raises:
        ValueError: Raised when metadata is None.
    """

    if metadata is None:
        raise ValueError("metadata must not be None")

    router = APIRouter(tags=["metadata"])

    @router.get("/info")
    def api_info() -> JSONResponse:
        """Return application name, version, features and deployment details."""

        return JSONResponse(content=domain_build_info_payload(metadata), status_code=status.HTTP_200_OK)

    @router.get("/api")
    def api_endpoint_listing() -> JSONResponse:
        """Return the map of available endpoint paths."""

        return JSONResponse(content=domain_build_api_payload(metadata), status_code=status.HTTP_200_OK)

    return router
