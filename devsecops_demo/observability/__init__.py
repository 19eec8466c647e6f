"""Observability package for structured service logging."""

from .log_config import LOGGER_NAME, JsonFormatter, logging_configure

__all__ = ["LOGGER_NAME", "JsonFormatter", "logging_configure"]
