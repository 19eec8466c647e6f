"""Welcome page router."""

from fastapi import APIRouter, status
from fastapi.responses import HTMLResponse

from devsecops_demo.domain import AppMetadata, domain_render_welcome_page


def api_create_welcome_router(metadata: AppMetadata) -> APIRouter:
    """Create router serving the HTML welcome page at `/`.

    Args:
        metadata: Read-only runtime metadata.

    Returns:
        APIRouter: Router exposing `/`.

    Raises:
        ValueError: Raised when metadata is None.
    """

    if metadata is None:
        raise ValueError("metadata must not be None")

    router = APIRouter(tags=["welcome"])

    @router.get("/")
    def api_welcome_page() -> HTMLResponse:
        return HTMLResponse(content=domain_render_welcome_page(metadata), status_code=status.HTTP_200_OK)

    return router
