"""Health endpoint router for container liveness probes."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from devsecops_demo.domain import AppMetadata, ServiceClock, domain_build_health_report


def api_create_health_router(metadata: AppMetadata, clock: ServiceClock) -> APIRouter:
    """Create health-check router reporting uptime and runtime identity.

    Args:
        metadata: Read-only runtime metadata.
        clock: Clock source for timestamp and uptime readings.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if metadata is None:
        raise ValueError("metadata must not be None")
    if clock is None:
        raise ValueError("clock must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return process liveness without any downstream calls.

        Returns:
            JSONResponse: Health payload with HTTP 200.
        """

        report = domain_build_health_report(
            metadata=metadata,
            now_utc=clock.clock_now_utc(),
            uptime_seconds=clock.clock_uptime_seconds(),
        )
        return JSONResponse(content=report.to_payload(), status_code=status.HTTP_200_OK)

    return router
