"""Tests for API health endpoint behavior.

These tests validate the liveness payload contract and the uptime ordering
guarantee relied on by container orchestration probes.
"""

import logging
from datetime import datetime, timezone

from fastapi.testclient import TestClient

from devsecops_demo.api.application import create_api_application
from devsecops_demo.config import AppSettings


class _SteppingClock:
    """Test double returning a fixed instant and growing uptime."""

    def __init__(self):
        """Initialize clock at zero uptime.

        Returns:
            None: Initializer does not return values.
        """

        self._uptime_seconds = 0.0

    def clock_now_utc(self) -> datetime:
        """Return deterministic instant.

        Returns:
            datetime: Fixed UTC instant.

        Raises:
            RuntimeError: Never raised by this test double.
        """

        return datetime(2024, 5, 1, 12, 0, 0, 250000, tzinfo=timezone.utc)

    def clock_uptime_seconds(self) -> float:
        """Return uptime advanced by 1.5 seconds per call.

        Returns:
            float: Deterministic uptime.

        Raises:
            RuntimeError: Never raised by this test double.
        """

        self._uptime_seconds += 1.5
        return self._uptime_seconds


def _build_settings(**overrides) -> AppSettings:
    """Create test settings object.

    Returns:
        AppSettings: Deterministic test settings for API creation.

    Raises:
        ValueError: Raised by AppSettings when values are invalid.
    """

    values = {
        "environment_name": "test",
        "application_port": 8080,
        "static_directory": "does-not-exist",
    }
    values.update(overrides)
    return AppSettings(_env_file=None, **values)


def test_api_health_returns_healthy_payload() -> None:
    """Return HTTP 200 with every liveness field present and typed.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    application = create_api_application(
        _build_settings(),
        logging.getLogger("tests.devsecops_demo"),
        clock=_SteppingClock(),
    )
    client = TestClient(application)

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "timestamp": "2024-05-01T12:00:00.250Z",
        "uptime": 1.5,
        "environment": "test",
        "port": 8080,
    }


def test_api_health_reports_configured_port_and_environment() -> None:
    """Echo the startup configuration rather than request data.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when configuration is not reflected.
    """

    application = create_api_application(
        _build_settings(environment_name="staging", application_port=3000),
        logging.getLogger("tests.devsecops_demo"),
    )
    client = TestClient(application)

    payload = client.get("/health").json()

    assert payload["environment"] == "staging"
    assert payload["port"] == 3000
    assert payload["timestamp"].endswith("Z")


def test_api_health_uptime_is_non_negative_and_non_decreasing() -> None:
    """Keep uptime ordered across sequential calls on the real process clock.

    Returns:
        None: Assertions validate uptime ordering.

    Raises:
        AssertionError: Raised when uptime decreases or is negative.
    """

    application = create_api_application(_build_settings(), logging.getLogger("tests.devsecops_demo"))
    client = TestClient(application)

    uptimes = []
    for _ in range(5):
        response = client.get("/health")
        assert response.status_code == 200
        uptimes.append(response.json()["uptime"])

    assert all(uptime >= 0 for uptime in uptimes)
    assert uptimes == sorted(uptimes)
