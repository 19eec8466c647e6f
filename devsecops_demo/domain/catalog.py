"""Static payload content for the informational endpoints.

Everything here is pure: builders take configuration and clock readings as
arguments and return fresh JSON-ready structures or HTML text.
"""

from datetime import datetime, timezone
from html import escape
from typing import Any

from .models import AppMetadata, HealthReport

APPLICATION_NAME = "Secure Cloud DevSecOps Demo"
API_MESSAGE = "🔐 Secure Cloud Application"

API_ENDPOINTS: dict[str, str] = {
    "root": "/",
    "health": "/health",
    "info": "/info",
    "api": "/api",
}
AVAILABLE_ENDPOINTS: tuple[str, ...] = tuple(API_ENDPOINTS.values())

FEATURES: tuple[str, ...] = (
    "Infrastructure as Code (Terraform)",
    "Container Security Scanning (Trivy)",
    "Azure Key Vault Integration",
    "Automated Security Pipeline",
    "Network Security Groups",
)
SECURITY_POSTURE: dict[str, Any] = {
    "helmet": "enabled",
    "httpsOnly": True,
    "secretsManagement": "Azure Key Vault",
}
DEPLOYMENT_METADATA: dict[str, str] = {
    "platform": "Azure Container Instances",
    "region": "East US",
}


def domain_format_timestamp(instant: datetime) -> str:
    """Render an instant as ISO-8601 UTC with millisecond precision.

    Args:
        instant: Aware or naive-UTC datetime.

    Returns:
        str: Timestamp such as `2024-05-01T12:00:00.000Z`.
    """

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    utc_instant = instant.astimezone(timezone.utc)
    return utc_instant.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def domain_build_health_report(metadata: AppMetadata, now_utc: datetime, uptime_seconds: float) -> HealthReport:
    """Build the liveness report for one `/health` request.

    Args:
        metadata: Read-only runtime metadata.
        now_utc: Current instant.
        uptime_seconds: Seconds since process start.

    Returns:
        HealthReport: Report with status `healthy`.
    """

    return HealthReport(
        status="healthy",
        timestamp=domain_format_timestamp(now_utc),
        uptime=max(0.0, float(uptime_seconds)),
        environment=metadata.environment_name,
        port=metadata.application_port,
    )


def domain_build_info_payload(metadata: AppMetadata) -> dict[str, Any]:
    """Build the static descriptive payload for `/info`.

    Args:
        metadata: Read-only runtime metadata.

    Returns:
        dict[str, Any]: Application description, features and deployment details.
    """

    return {
        "application": metadata.application_name,
        "version": metadata.version,
        "status": "running",
        "features": list(FEATURES),
        "security": dict(SECURITY_POSTURE),
        "deployment": dict(DEPLOYMENT_METADATA),
    }


def domain_build_api_payload(metadata: AppMetadata) -> dict[str, Any]:
    """Build the endpoint listing payload for `/api`.

    Args:
        metadata: Read-only runtime metadata.

    Returns:
        dict[str, Any]: Greeting, version and endpoint map.
    """

    return {
        "message": API_MESSAGE,
        "version": metadata.version,
        "endpoints": dict(API_ENDPOINTS),
    }


def domain_build_not_found_payload(path: str) -> dict[str, Any]:
    """Build the fallback payload for unmatched requests.

    Args:
        path: Requested path.

    Returns:
        dict[str, Any]: Error marker, echoed path and the routable endpoints.
    """

    return {
        "error": "Not Found",
        "path": path,
        "availableEndpoints": list(AVAILABLE_ENDPOINTS),
    }


_WELCOME_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{title}</title>
  <style>
    body {{ font-family: system-ui, sans-serif; margin: 0; background: #0f172a; color: #e2e8f0; }}
    main {{ max-width: 720px; margin: 4rem auto; padding: 2rem; background: #1e293b; border-radius: 12px; }}
    h1 {{ margin-top: 0; color: #38bdf8; }}
    ul {{ padding-left: 1.2rem; }}
    a {{ color: #7dd3fc; }}
    footer {{ margin-top: 2rem; font-size: 0.85rem; color: #94a3b8; }}
  </style>
</head>
<body>
  <main>
    <h1>{heading}</h1>
    <p>{title} v{version} is running in the <strong>{environment}</strong> environment.</p>
    <h2>Available endpoints</h2>
    <ul>
{endpoint_items}
    </ul>
    <footer>Served with security headers enabled.</footer>
  </main>
</body>
</html>
"""


def domain_render_welcome_page(metadata: AppMetadata) -> str:
    """Render the HTML welcome page listing the available endpoints.

    Args:
        metadata: Read-only runtime metadata.

    Returns:
        str: Complete HTML document.
    """

    endpoint_items = "\n".join(
        f'      <li><a href="{escape(path)}">{escape(path)}</a> ({escape(name)})</li>'
        for name, path in API_ENDPOINTS.items()
    )
    return _WELCOME_PAGE_TEMPLATE.format(
        title=escape(metadata.application_name),
        heading=escape(API_MESSAGE),
        version=escape(metadata.version),
        environment=escape(metadata.environment_name),
        endpoint_items=endpoint_items,
    )
