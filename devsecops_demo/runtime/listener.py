"""TCP listener socket creation."""

import socket

DEFAULT_BACKLOG = 2048


class ListenerBindError(RuntimeError):
    """Raised when the listener socket cannot be bound.

    Attributes:
        host: Requested bind host.
        port: Requested bind port.
    """

    def __init__(self, message: str, host: str, port: int):
        super().__init__(message)
        self.host = host
        self.port = port


def runtime_bind_listener(host: str, port: int, backlog: int = DEFAULT_BACKLOG) -> socket.socket:
    """Bind and listen on the configured interface.

    Args:
        host: Interface address, `0.0.0.0` for all IPv4 interfaces.
        port: TCP port; `0` selects a free port.
        backlog: Pending connection queue length.

    Returns:
        socket.socket: Listening socket ready to hand to the server.

    Raises:
        ListenerBindError: Raised when the address is in use or not permitted.
    """

    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    try:
        listener = socket.create_server((host, port), family=family, backlog=backlog)
    except OSError as error:
        raise ListenerBindError(f"Failed to bind listener on {host}:{port}: {error}", host=host, port=port) from error
    listener.setblocking(False)
    return listener
