"""Clock sources for timestamps and process uptime."""

import time
from datetime import datetime, timezone
from typing import Protocol


class ServiceClock(Protocol):
    """Port definition for wall-clock and uptime readings."""

    def clock_now_utc(self) -> datetime:
        """Return the current instant as an aware UTC datetime.

        Returns:
            datetime: Current UTC instant.
        """

    def clock_uptime_seconds(self) -> float:
        """Return seconds elapsed since the service started.

        Returns:
            float: Non-negative, non-decreasing uptime.
        """


class ProcessClock(ServiceClock):
    """Clock measuring uptime on the monotonic clock from construction time."""

    def __init__(self, started_at_monotonic: float | None = None):
        """Initialize the clock.

        Args:
            started_at_monotonic: Optional monotonic start reading; defaults to now.
        """

        if started_at_monotonic is None:
            started_at_monotonic = time.monotonic()
        self._started_at_monotonic = started_at_monotonic

    def clock_now_utc(self) -> datetime:
        return datetime.now(timezone.utc)

    def clock_uptime_seconds(self) -> float:
        return max(0.0, time.monotonic() - self._started_at_monotonic)
