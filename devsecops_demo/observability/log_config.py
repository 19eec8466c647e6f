"""Structured stdout logging for the service and its HTTP server."""

import json
import logging
import sys

LOGGER_NAME = "devsecops_demo"
SERVER_LOGGER_NAME = "uvicorn"
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s :: %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

EXTRA_KEYS = (
    "method",
    "path",
    "client",
    "status_code",
    "error_type",
    "body_bytes",
    "host",
    "port",
    "environment",
    "static_directory",
    "reason",
    "state",
    "in_flight_requests",
    "timeout_seconds",
    "exit_code",
)


class JsonFormatter(logging.Formatter):
    """JSON formatter with stable key ordering for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format one log record as a single JSON line.

        Args:
            record: Log record emitted by any service logger.

        Returns:
            str: JSON document with sorted keys.
        """

        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_KEYS:
            if hasattr(record, key):
                log_data[key] = getattr(record, key)
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, sort_keys=True, default=str)


def _build_handler(level: int, log_format: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if log_format == "json":
        handler.setFormatter(JsonFormatter(datefmt=DATE_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, DATE_FORMAT))
    return handler


def logging_configure(level: str = "INFO", log_format: str = "json") -> logging.Logger:
    """Install one stdout handler on the service and server loggers.

    Calling this again replaces earlier handlers, so configuration happens
    exactly once per process from the caller's point of view.

    Args:
        level: Level name such as `INFO` or `DEBUG`.
        log_format: `json` for structured lines, `text` for human-readable lines.

    Returns:
        logging.Logger: Configured service logger to inject into other layers.
    """

    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    # uvicorn.error propagates into the uvicorn handler
    for logger_name in (LOGGER_NAME, SERVER_LOGGER_NAME):
        target_logger = logging.getLogger(logger_name)
        for handler in list(target_logger.handlers):
            handler.close()
        target_logger.handlers.clear()
        target_logger.setLevel(numeric_level)
        target_logger.propagate = False
        target_logger.addHandler(_build_handler(numeric_level, log_format))

    return logging.getLogger(LOGGER_NAME)
