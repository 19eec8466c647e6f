"""API layer package for FastAPI application and route composition."""

from .application import create_api_application
from .middleware import InFlightRequestTracker

__all__ = ["InFlightRequestTracker", "create_api_application"]
