"""uvicorn server wiring for the demo application."""

import contextlib
from collections.abc import Generator

import uvicorn
from fastapi import FastAPI

from devsecops_demo.config import AppSettings


class DemoServer(uvicorn.Server):
    """uvicorn server whose signal handling is owned by the shutdown controller.

    The controller sets `should_exit` to start draining and `force_exit` when
    the drain window elapses.
    """

    @contextlib.contextmanager
    def capture_signals(self) -> Generator[None, None, None]:
        yield


def runtime_create_server(application: FastAPI, settings: AppSettings) -> DemoServer:
    """Build the HTTP server for an application.

    Args:
        application: ASGI application to serve.
        settings: Validated settings for host and port metadata.

    Returns:
        DemoServer: Server ready to `serve` on pre-bound sockets.
    """

    config = uvicorn.Config(
        application,
        host=settings.application_host,
        port=settings.application_port,
        log_config=None,
        access_log=False,
        server_header=False,
        timeout_graceful_shutdown=None,
    )
    return DemoServer(config)
