"""Runtime package for the HTTP listener and process lifecycle."""

from .lifecycle import EXIT_CODE_CLEAN, EXIT_CODE_FORCED, LifecycleState, ShutdownController
from .listener import ListenerBindError, runtime_bind_listener
from .server import DemoServer, runtime_create_server

__all__ = [
    "EXIT_CODE_CLEAN",
    "EXIT_CODE_FORCED",
    "DemoServer",
    "LifecycleState",
    "ListenerBindError",
    "ShutdownController",
    "runtime_bind_listener",
    "runtime_create_server",
]
