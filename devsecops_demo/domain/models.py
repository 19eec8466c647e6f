"""Typed domain models shared across runtime layers.

Payload records are immutable and built fresh for every request from
read-only configuration and the current clock reading.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class AppMetadata:
    """Static application metadata for runtime identification.

    Attributes:
        application_name: Human-readable app name.
        version: Application release version.
        environment_name: Runtime environment label.
        application_port: Configured listener port.
    """

    application_name: str
    version: str
    environment_name: str
    application_port: int


@dataclass(frozen=True)
class HealthReport:
    """Liveness response contract used by the `/health` surface.

    Attributes:
        status: Overall status text, always `healthy` while the process serves.
        timestamp: ISO-8601 UTC instant of the check.
        uptime: Seconds since process start, non-negative.
        environment: Runtime environment label.
        port: Configured listener port.
    """

    status: str
    timestamp: str
    uptime: float
    environment: str
    port: int

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON-ready representation of this report.

        Returns:
            dict[str, Any]: Health payload with every field present.
        """

        return {
            "status": self.status,
            "timestamp": self.timestamp,
            "uptime": self.uptime,
            "environment": self.environment,
            "port": self.port,
        }
