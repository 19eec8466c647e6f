"""Process lifecycle: signal-driven graceful shutdown with a bounded drain.

The controller moves through `starting -> running -> draining -> terminated`.
Termination signals, unhandled event-loop faults and uncaught thread
exceptions all trigger the same drain sequence. The exit code tells whether
the drain finished inside the window (0) or had to be forced (1).
"""

import asyncio
import logging
import signal
import socket
import threading
from enum import Enum
from typing import Any, Protocol

from devsecops_demo.api import InFlightRequestTracker

EXIT_CODE_CLEAN = 0
EXIT_CODE_FORCED = 1
HANDLED_SIGNALS = (signal.SIGINT, signal.SIGTERM)
FORCED_STOP_GRACE_SECONDS = 1.0


class LifecycleState(str, Enum):
    """Lifecycle states of the serving process."""

    STARTING = "starting"
    RUNNING = "running"
    DRAINING = "draining"
    TERMINATED = "terminated"


class ServerPort(Protocol):
    """Port definition for the HTTP server driven by the controller.

    Attributes:
        should_exit: Set to stop accepting connections and drain.
        force_exit: Set to abandon waiting for in-flight requests.
    """

    should_exit: bool
    force_exit: bool

    async def serve(self, sockets: list[socket.socket] | None = None) -> None:
        """Serve until `should_exit` is set and in-flight work has finished.

        Args:
            sockets: Pre-bound listening sockets.
        """


class ShutdownController:
    """Supervise one server run and turn faults and signals into a drain."""

    def __init__(
        self,
        server: ServerPort,
        logger: logging.Logger,
        drain_timeout_seconds: float = 10.0,
        request_tracker: InFlightRequestTracker | None = None,
        install_signal_handlers: bool = True,
    ):
        """Initialize shutdown controller.

        Args:
            server: Server to run and stop.
            logger: Service logger for lifecycle transitions.
            drain_timeout_seconds: Window for in-flight requests after shutdown starts.
            request_tracker: Optional in-flight counter reported when draining begins.
            install_signal_handlers: Whether to bind SIGINT and SIGTERM during `lifecycle_run`.

        Raises:
            ValueError: Raised when dependencies are invalid.
        """

        if server is None:
            raise ValueError("server must not be None")
        if logger is None:
            raise ValueError("logger must not be None")
        if drain_timeout_seconds <= 0:
            raise ValueError("drain_timeout_seconds must be positive")
        self._server = server
        self._logger = logger
        self._drain_timeout_seconds = drain_timeout_seconds
        self._request_tracker = request_tracker
        self._install_signal_handlers = install_signal_handlers
        self._state = LifecycleState.STARTING
        self._shutdown_reason: str | None = None
        self._shutdown_requested: asyncio.Event | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._installed_signals: list[signal.Signals] = []
        self._previous_signal_handlers: dict[signal.Signals, Any] = {}
        self._previous_thread_excepthook = None

    @property
    def state(self) -> LifecycleState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def shutdown_reason(self) -> str | None:
        """Return what triggered the drain, if anything has."""
        return self._shutdown_reason

    def lifecycle_request_shutdown(self, reason: str) -> None:
        """Request the drain sequence; later requests are logged and ignored.

        Must be called on the event loop thread. Other threads go through
        `loop.call_soon_threadsafe`.

        Args:
            reason: Trigger label such as `signal:SIGTERM`.
        """

        if self._shutdown_reason is not None or self._state is LifecycleState.TERMINATED:
            self._logger.info(
                "Shutdown already in progress",
                extra={"reason": reason, "state": self._state.value},
            )
            return
        self._shutdown_reason = reason
        self._logger.info("Received shutdown request, closing server", extra={"reason": reason})
        if self._shutdown_requested is not None:
            self._shutdown_requested.set()

    async def lifecycle_run(self, sockets: list[socket.socket] | None = None) -> int:
        """Run the server until shutdown and return the process exit code.

        Args:
            sockets: Pre-bound listening sockets handed to the server.

        Returns:
            int: `EXIT_CODE_CLEAN` after a drain within the window, otherwise `EXIT_CODE_FORCED`.
        """

        self._loop = asyncio.get_running_loop()
        self._shutdown_requested = asyncio.Event()
        if self._shutdown_reason is not None:
            self._shutdown_requested.set()
        self._install_fault_handlers()
        try:
            return await self._lifecycle_supervise(sockets)
        finally:
            self._restore_fault_handlers()

    async def _lifecycle_supervise(self, sockets: list[socket.socket] | None) -> int:
        serve_task = asyncio.create_task(self._server.serve(sockets=sockets))
        self._transition(LifecycleState.RUNNING)
        shutdown_task = asyncio.create_task(self._shutdown_requested.wait())
        done, _ = await asyncio.wait({serve_task, shutdown_task}, return_when=asyncio.FIRST_COMPLETED)

        if serve_task in done:
            shutdown_task.cancel()
            return self._lifecycle_finish_unrequested(serve_task)

        in_flight_requests = self._request_tracker.active_count if self._request_tracker is not None else None
        self._transition(
            LifecycleState.DRAINING,
            reason=self._shutdown_reason,
            in_flight_requests=in_flight_requests,
            timeout_seconds=self._drain_timeout_seconds,
        )
        self._server.should_exit = True
        try:
            await asyncio.wait_for(asyncio.shield(serve_task), timeout=self._drain_timeout_seconds)
        except asyncio.TimeoutError:
            self._logger.warning(
                "Drain timeout elapsed, forcefully shutting down",
                extra={"timeout_seconds": self._drain_timeout_seconds},
            )
            await self._lifecycle_force_stop(serve_task)
            self._transition(LifecycleState.TERMINATED, exit_code=EXIT_CODE_FORCED)
            return EXIT_CODE_FORCED
        except Exception:  # pylint: disable=broad-exception-caught
            self._logger.exception("Server failed while draining")
            self._transition(LifecycleState.TERMINATED, exit_code=EXIT_CODE_FORCED)
            return EXIT_CODE_FORCED

        self._logger.info("Server closed gracefully")
        self._transition(LifecycleState.TERMINATED, exit_code=EXIT_CODE_CLEAN)
        return EXIT_CODE_CLEAN

    def _lifecycle_finish_unrequested(self, serve_task: asyncio.Task) -> int:
        error = serve_task.exception()
        if error is not None:
            self._logger.error("Server stopped with an error", exc_info=error)
        else:
            self._logger.error("Server stopped without a shutdown request")
        self._transition(LifecycleState.TERMINATED, exit_code=EXIT_CODE_FORCED)
        return EXIT_CODE_FORCED

    async def _lifecycle_force_stop(self, serve_task: asyncio.Task) -> None:
        self._server.force_exit = True
        try:
            await asyncio.wait_for(serve_task, timeout=FORCED_STOP_GRACE_SECONDS)
        except asyncio.TimeoutError:
            self._logger.warning("Server did not stop after force exit, task cancelled")
        except Exception:  # pylint: disable=broad-exception-caught
            self._logger.exception("Server failed during forced shutdown")

    def _transition(self, state: LifecycleState, **details: Any) -> None:
        previous_state = self._state
        self._state = state
        self._logger.info(
            "Lifecycle %s -> %s",
            previous_state.value,
            state.value,
            extra={"state": state.value, **{key: value for key, value in details.items() if value is not None}},
        )

    def _handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        error = context.get("exception")
        self._logger.error(
            "Unhandled event loop error: %s",
            context.get("message", "unknown error"),
            exc_info=error,
            extra={"error_type": type(error).__name__ if error is not None else None},
        )
        self.lifecycle_request_shutdown("unhandled_async_exception")

    def _handle_thread_exception(self, hook_args: threading.ExceptHookArgs) -> None:
        if hook_args.exc_type is SystemExit:
            return
        thread_name = hook_args.thread.name if hook_args.thread is not None else "unknown"
        self._logger.error(
            "Uncaught exception in thread %s",
            thread_name,
            exc_info=(hook_args.exc_type, hook_args.exc_value, hook_args.exc_traceback),
            extra={"error_type": hook_args.exc_type.__name__},
        )
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(self.lifecycle_request_shutdown, "uncaught_thread_exception")

    def _install_fault_handlers(self) -> None:
        loop = self._loop
        loop.set_exception_handler(self._handle_loop_exception)
        self._previous_thread_excepthook = threading.excepthook
        threading.excepthook = self._handle_thread_exception
        if not self._install_signal_handlers:
            return
        for handled_signal in HANDLED_SIGNALS:
            reason = f"signal:{handled_signal.name}"
            try:
                loop.add_signal_handler(handled_signal, self.lifecycle_request_shutdown, reason)
            except NotImplementedError:
                # Windows event loops have no add_signal_handler.
                self._previous_signal_handlers[handled_signal] = signal.signal(
                    handled_signal,
                    lambda _signum, _frame, reason=reason: loop.call_soon_threadsafe(
                        self.lifecycle_request_shutdown, reason
                    ),
                )
            except RuntimeError:
                self._logger.warning("Signal handlers require the main thread", extra={"reason": reason})
                continue
            self._installed_signals.append(handled_signal)

    def _restore_fault_handlers(self) -> None:
        loop = self._loop
        for handled_signal in self._installed_signals:
            if handled_signal in self._previous_signal_handlers:
                signal.signal(handled_signal, self._previous_signal_handlers.pop(handled_signal))
            else:
                loop.remove_signal_handler(handled_signal)
        self._installed_signals.clear()
        if self._previous_thread_excepthook is not None:
            threading.excepthook = self._previous_thread_excepthook
            self._previous_thread_excepthook = None
        loop.set_exception_handler(None)
