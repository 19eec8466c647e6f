"""Tests for the shutdown controller state machine and exit codes.

The controller drives an in-process fake server so drain timing can be
controlled without opening sockets.
"""

import asyncio
import logging
import os
import signal
import sys
import threading
import time

import pytest

from devsecops_demo.api import InFlightRequestTracker
from devsecops_demo.runtime import EXIT_CODE_CLEAN, EXIT_CODE_FORCED, LifecycleState, ShutdownController

_LOGGER = logging.getLogger("tests.devsecops_demo.lifecycle")


class _FakeServer:
    """Server double honoring `should_exit` and `force_exit` like uvicorn."""

    def __init__(self, hang_while_draining: bool = False, serve_error: Exception | None = None):
        """Initialize fake server.

        Args:
            hang_while_draining: Simulate an in-flight request that never completes.
            serve_error: Optional error raised as soon as serving starts.

        Returns:
            None: Initializer does not return values.
        """

        self.should_exit = False
        self.force_exit = False
        self.served_sockets = None
        self._hang_while_draining = hang_while_draining
        self._serve_error = serve_error

    async def serve(self, sockets=None) -> None:
        """Serve until asked to exit.

        Args:
            sockets: Listening sockets handed over by the controller.

        Raises:
            Exception: Raised when configured with `serve_error`.
        """

        self.served_sockets = sockets
        if self._serve_error is not None:
            raise self._serve_error
        while not self.should_exit:
            await asyncio.sleep(0.01)
        while self._hang_while_draining and not self.force_exit:
            await asyncio.sleep(0.01)


def _run_controller(controller: ShutdownController, trigger, delay_seconds: float = 0.05) -> int:
    """Run the controller and invoke `trigger(loop)` after a short delay.

    Args:
        controller: Controller under test.
        trigger: Callable receiving the running loop, or None.
        delay_seconds: Delay before the trigger fires.

    Returns:
        int: Exit code returned by the controller.
    """

    async def scenario() -> int:
        loop = asyncio.get_running_loop()
        if trigger is not None:
            loop.call_later(delay_seconds, trigger, loop)
        return await controller.lifecycle_run(sockets=[])

    return asyncio.run(scenario())


def _raise_unobserved_error() -> None:
    raise RuntimeError("background failure")


def test_lifecycle_clean_drain_exits_with_zero() -> None:
    """Finish with exit code 0 when in-flight work completes in time.

    Returns:
        None: Assertions validate the clean shutdown path.

    Raises:
        AssertionError: Raised when exit code or state differ.
    """

    server = _FakeServer()
    controller = ShutdownController(server, _LOGGER, drain_timeout_seconds=1.0, install_signal_handlers=False)
    assert controller.state is LifecycleState.STARTING

    exit_code = _run_controller(controller, lambda _loop: controller.lifecycle_request_shutdown("test"))

    assert exit_code == EXIT_CODE_CLEAN
    assert controller.state is LifecycleState.TERMINATED
    assert controller.shutdown_reason == "test"
    assert server.should_exit is True
    assert server.force_exit is False
    assert server.served_sockets == []


def test_lifecycle_hung_request_forces_exit_with_one_at_timeout() -> None:
    """Force the server down and exit with 1 once the drain window elapses.

    Returns:
        None: Assertions validate the forced shutdown path.

    Raises:
        AssertionError: Raised when exit code or timing differ.
    """

    server = _FakeServer(hang_while_draining=True)
    controller = ShutdownController(server, _LOGGER, drain_timeout_seconds=0.3, install_signal_handlers=False)

    started_at = time.monotonic()
    exit_code = _run_controller(controller, lambda _loop: controller.lifecycle_request_shutdown("test"))
    elapsed_seconds = time.monotonic() - started_at

    assert exit_code == EXIT_CODE_FORCED
    assert server.force_exit is True
    assert controller.state is LifecycleState.TERMINATED
    assert 0.3 <= elapsed_seconds < 2.0


def test_lifecycle_transitions_are_logged_in_order(caplog: pytest.LogCaptureFixture) -> None:
    """Log running, draining and terminated transitions with drain details.

    Returns:
        None: Assertions validate transition logging.

    Raises:
        AssertionError: Raised when transitions are missing or out of order.
    """

    caplog.set_level(logging.INFO, logger=_LOGGER.name)
    tracker = InFlightRequestTracker()
    tracker.tracker_begin()
    controller = ShutdownController(
        _FakeServer(),
        _LOGGER,
        drain_timeout_seconds=1.0,
        request_tracker=tracker,
        install_signal_handlers=False,
    )

    _run_controller(controller, lambda _loop: controller.lifecycle_request_shutdown("signal:SIGTERM"))

    transition_records = [record for record in caplog.records if hasattr(record, "state")]
    assert [record.state for record in transition_records] == ["running", "draining", "terminated"]
    assert transition_records[1].reason == "signal:SIGTERM"
    assert transition_records[1].in_flight_requests == 1
    assert transition_records[1].timeout_seconds == 1.0
    assert transition_records[2].exit_code == EXIT_CODE_CLEAN


def test_lifecycle_repeated_shutdown_requests_are_ignored(caplog: pytest.LogCaptureFixture) -> None:
    """Keep the first trigger and log later ones.

    Returns:
        None: Assertions validate idempotent shutdown requests.

    Raises:
        AssertionError: Raised when a later trigger replaces the first.
    """

    caplog.set_level(logging.INFO, logger=_LOGGER.name)
    controller = ShutdownController(_FakeServer(), _LOGGER, drain_timeout_seconds=1.0, install_signal_handlers=False)

    def trigger_twice(_loop) -> None:
        controller.lifecycle_request_shutdown("signal:SIGTERM")
        controller.lifecycle_request_shutdown("signal:SIGINT")

    exit_code = _run_controller(controller, trigger_twice)

    assert exit_code == EXIT_CODE_CLEAN
    assert controller.shutdown_reason == "signal:SIGTERM"
    assert any(record.getMessage() == "Shutdown already in progress" for record in caplog.records)


def test_lifecycle_unhandled_loop_error_triggers_drain() -> None:
    """Treat an unobserved event-loop error as fatal and drain.

    Returns:
        None: Assertions validate fail-fast behavior.

    Raises:
        AssertionError: Raised when the error does not trigger shutdown.
    """

    controller = ShutdownController(_FakeServer(), _LOGGER, drain_timeout_seconds=1.0, install_signal_handlers=False)

    exit_code = _run_controller(controller, lambda loop: loop.call_soon(_raise_unobserved_error))

    assert exit_code == EXIT_CODE_CLEAN
    assert controller.shutdown_reason == "unhandled_async_exception"


def test_lifecycle_uncaught_thread_error_triggers_drain() -> None:
    """Treat an uncaught background-thread exception as fatal and drain.

    Returns:
        None: Assertions validate fail-fast behavior.

    Raises:
        AssertionError: Raised when the error does not trigger shutdown.
    """

    original_excepthook = threading.excepthook
    controller = ShutdownController(_FakeServer(), _LOGGER, drain_timeout_seconds=1.0, install_signal_handlers=False)

    exit_code = _run_controller(
        controller,
        lambda _loop: threading.Thread(target=_raise_unobserved_error, name="worker").start(),
    )

    assert exit_code == EXIT_CODE_CLEAN
    assert controller.shutdown_reason == "uncaught_thread_exception"
    assert threading.excepthook is original_excepthook


def test_lifecycle_server_failure_exits_with_one() -> None:
    """Exit with 1 when the server stops without a shutdown request.

    Returns:
        None: Assertions validate failure handling.

    Raises:
        AssertionError: Raised when failure is reported as clean.
    """

    controller = ShutdownController(
        _FakeServer(serve_error=OSError("listener lost")),
        _LOGGER,
        drain_timeout_seconds=1.0,
        install_signal_handlers=False,
    )

    exit_code = _run_controller(controller, None)

    assert exit_code == EXIT_CODE_FORCED
    assert controller.state is LifecycleState.TERMINATED
    assert controller.shutdown_reason is None


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signal delivery required")
@pytest.mark.skipif(
    threading.current_thread() is not threading.main_thread(),
    reason="signal handlers require the main thread",
)
def test_lifecycle_sigterm_triggers_drain_in_process() -> None:
    """Route a real SIGTERM through the controller instead of killing the process.

    Returns:
        None: Assertions validate signal handling.

    Raises:
        AssertionError: Raised when the signal is not handled.
    """

    previous_handler = signal.getsignal(signal.SIGTERM)
    controller = ShutdownController(_FakeServer(), _LOGGER, drain_timeout_seconds=1.0)

    exit_code = _run_controller(controller, lambda _loop: os.kill(os.getpid(), signal.SIGTERM))

    assert exit_code == EXIT_CODE_CLEAN
    assert controller.shutdown_reason == "signal:SIGTERM"
    assert signal.getsignal(signal.SIGTERM) == previous_handler


def test_lifecycle_rejects_non_positive_drain_timeout() -> None:
    """Validate the drain window at construction time.

    Returns:
        None: Assertions validate constructor checks.

    Raises:
        AssertionError: Raised when invalid input is accepted.
    """

    with pytest.raises(ValueError):
        ShutdownController(_FakeServer(), _LOGGER, drain_timeout_seconds=0)
