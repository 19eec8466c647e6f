"""Domain models and static payload content shared across layers."""

from .catalog import (
    APPLICATION_NAME,
    API_ENDPOINTS,
    AVAILABLE_ENDPOINTS,
    domain_build_api_payload,
    domain_build_health_report,
    domain_build_info_payload,
    domain_build_not_found_payload,
    domain_render_welcome_page,
)
from .clock import ProcessClock, ServiceClock
from .models import AppMetadata, HealthReport

__all__ = [
    "APPLICATION_NAME",
    "API_ENDPOINTS",
    "AVAILABLE_ENDPOINTS",
    "AppMetadata",
    "HealthReport",
    "ProcessClock",
    "ServiceClock",
    "domain_build_api_payload",
    "domain_build_health_report",
    "domain_build_info_payload",
    "domain_build_not_found_payload",
    "domain_render_welcome_page",
]
