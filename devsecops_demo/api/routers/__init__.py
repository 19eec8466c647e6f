"""API router package for endpoint composition."""

from .health import api_create_health_router
from .metadata import api_create_metadata_router
from .welcome import api_create_welcome_router

__all__ = ["api_create_health_router", "api_create_metadata_router", "api_create_welcome_router"]
