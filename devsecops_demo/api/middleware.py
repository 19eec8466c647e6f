"""ASGI middleware chain applied to every request before route dispatch.

Order, outermost first: in-flight tracking, security headers, JSON body
parsing, request logging, static assets. Route dispatch and the fallback
handlers sit inside the chain.
"""

import json
import logging
import os
import stat

from starlette.datastructures import MutableHeaders
from starlette.requests import ClientDisconnect
from starlette.responses import JSONResponse
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .errors import RequestBodyError, RequestBodyMalformedError, RequestBodyTooLargeError
from .security import api_apply_security_headers


def api_request_client(scope: Scope) -> str:
    """Return the peer address of a request scope or `-` when unknown."""

    client = scope.get("client")
    if not client:
        return "-"
    return str(client[0])


class InFlightRequestTracker:
    """Counter of requests currently inside the application.

    Only touched from the event loop thread.
    """

    def __init__(self) -> None:
        self._active_count = 0

    @property
    def active_count(self) -> int:
        """Return the number of requests still being processed."""
        return self._active_count

    def tracker_begin(self) -> None:
        self._active_count += 1

    def tracker_end(self) -> None:
        self._active_count = max(0, self._active_count - 1)


class InFlightTrackingMiddleware:
    """Count HTTP requests for drain diagnostics."""

    def __init__(self, app: ASGIApp, tracker: InFlightRequestTracker):
        self.app = app
        self._tracker = tracker

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        self._tracker.tracker_begin()
        try:
            await self.app(scope, receive, send)
        finally:
            self._tracker.tracker_end()


class SecurityHeadersMiddleware:
    """Inject protective headers into every HTTP response start message."""

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_security_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                api_apply_security_headers(MutableHeaders(scope=message))
            await send(message)

        await self.app(scope, receive, send_with_security_headers)


class JsonBodyMiddleware:
    """Parse JSON request bodies below a fixed size ceiling.

    The parsed document is exposed as `request.state.json_body`. Bodies whose
    size reaches the ceiling are answered with 413 and malformed documents with
    400; neither reaches the inner application. The consumed body is replayed
    to the inner application unchanged.
    """

    def __init__(self, app: ASGIApp, limit_bytes: int, logger: logging.Logger):
        if limit_bytes < 1:
            raise ValueError("limit_bytes must be positive")
        self.app = app
        self._limit_bytes = limit_bytes
        self._logger = logger

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not _is_json_content_type(scope):
            await self.app(scope, receive, send)
            return

        try:
            body = await self._read_body(scope, receive)
            parsed_body = self._parse_body(body)
        except ClientDisconnect:
            return
        except RequestBodyError as error:
            self._logger.warning(
                "Rejected request body: %s",
                error,
                extra={
                    "method": scope["method"],
                    "path": scope["path"],
                    "client": api_request_client(scope),
                    "status_code": error.status_code,
                    "error_type": type(error).__name__,
                    "body_bytes": error.body_bytes,
                },
            )
            response = JSONResponse(
                content={"error": error.error_label, "message": str(error)},
                status_code=error.status_code,
            )
            await response(scope, receive, send)
            return

        scope.setdefault("state", {})["json_body"] = parsed_body
        body_replayed = False

        async def replay_receive() -> Message:
            nonlocal body_replayed
            if not body_replayed:
                body_replayed = True
                return {"type": "http.request", "body": body, "more_body": False}
            return await receive()

        await self.app(scope, replay_receive, send)

    async def _read_body(self, scope: Scope, receive: Receive) -> bytes:
        declared_length = _declared_content_length(scope)
        if declared_length is not None and declared_length >= self._limit_bytes:
            raise RequestBodyTooLargeError(
                f"request entity too large: limit is {self._limit_bytes} bytes",
                body_bytes=declared_length,
            )

        chunks: list[bytes] = []
        received_bytes = 0
        while True:
            message = await receive()
            if message["type"] == "http.disconnect":
                raise ClientDisconnect()
            chunk = message.get("body", b"")
            received_bytes += len(chunk)
            if received_bytes >= self._limit_bytes:
                raise RequestBodyTooLargeError(
                    f"request entity too large: limit is {self._limit_bytes} bytes",
                    body_bytes=received_bytes,
                )
            chunks.append(chunk)
            if not message.get("more_body", False):
                return b"".join(chunks)

    @staticmethod
    def _parse_body(body: bytes):
        if not body.strip():
            return None
        try:
            return json.loads(body)
        except ValueError as error:
            raise RequestBodyMalformedError(f"malformed JSON body: {error}", body_bytes=len(body)) from error


def _is_json_content_type(scope: Scope) -> bool:
    for header_name, header_value in scope.get("headers", []):
        if header_name == b"content-type":
            media_type = header_value.decode("latin-1").split(";", 1)[0].strip().lower()
            return media_type == "application/json" or media_type.endswith("+json")
    return False


def _declared_content_length(scope: Scope) -> int | None:
    for header_name, header_value in scope.get("headers", []):
        if header_name == b"content-length":
            try:
                declared_length = int(header_value)
            except ValueError as error:
                raise RequestBodyMalformedError("invalid Content-Length header") from error
            if declared_length < 0:
                raise RequestBodyMalformedError("invalid Content-Length header")
            return declared_length
    return None


class RequestLoggingMiddleware:
    """Emit one structured log line per request before dispatch."""

    def __init__(self, app: ASGIApp, logger: logging.Logger):
        self.app = app
        self._logger = logger

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            client = api_request_client(scope)
            self._logger.info(
                "%s %s - %s",
                scope["method"],
                scope["path"],
                client,
                extra={"method": scope["method"], "path": scope["path"], "client": client},
            )
        await self.app(scope, receive, send)


class StaticAssetMiddleware:
    """Serve files from the public directory ahead of route dispatch.

    A GET or HEAD request is answered from disk when its path names a regular
    file inside the directory, or a directory holding `index.html`. Anything
    else, including paths resolving outside the directory, falls through.
    """

    def __init__(self, app: ASGIApp, directory: str | os.PathLike[str]):
        self.app = app
        self._static_files = StaticFiles(directory=directory, html=True, check_dir=False)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["method"] in ("GET", "HEAD") and self._asset_exists(scope):
            await self._static_files(scope, receive, send)
            return
        await self.app(scope, receive, send)

    def _asset_exists(self, scope: Scope) -> bool:
        relative_path = self._static_files.get_path(scope)
        _, stat_result = self._static_files.lookup_path(relative_path)
        if stat_result is None:
            return False
        if stat.S_ISREG(stat_result.st_mode):
            return True
        if stat.S_ISDIR(stat_result.st_mode):
            _, index_stat = self._static_files.lookup_path(os.path.join(relative_path, "index.html"))
            return index_stat is not None and stat.S_ISREG(index_stat.st_mode)
        return False
