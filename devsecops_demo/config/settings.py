"""Typed runtime settings with dotenv support and startup validation."""

import logging
from typing import Any

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEVELOPMENT_ENVIRONMENT = "development"
DEFAULT_REQUEST_BODY_LIMIT_BYTES = 10 * 1024 * 1024


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class AppSettings(BaseSettings):
    """Application settings for the HTTP listener, middleware and shutdown policy.

    Environment variable names map to field names in uppercase unless an alias
    is listed. Example: `application_port` reads from `PORT`.

    Attributes:
        environment_name: Runtime environment label (`APP_ENV` or `NODE_ENV`).
        application_host: Host interface for web server binding.
        application_port: Web server port (`PORT`).
        static_directory: Directory served before route dispatch.
        request_body_limit_bytes: JSON body ceiling; bodies at or above it are rejected.
        shutdown_timeout_seconds: Drain window before a forced shutdown.
        log_level: Service logger level name.
        log_format: Log line format, `json` or `text`.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(
        default="production",
        validation_alias=AliasChoices("environment_name", "APP_ENV", "NODE_ENV"),
    )
    application_host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("application_host", "APP_HOST"),
    )
    application_port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        validation_alias=AliasChoices("application_port", "PORT"),
    )
    static_directory: str = Field(default="public")
    request_body_limit_bytes: int = Field(default=DEFAULT_REQUEST_BODY_LIMIT_BYTES, ge=1)
    shutdown_timeout_seconds: float = Field(default=10.0, gt=0)
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @field_validator("environment_name", "application_host", "static_directory")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        level_name = value.strip().upper()
        if not isinstance(logging.getLevelName(level_name), int):
            raise ValueError(f"unknown log level: {value}")
        return level_name

    @field_validator("log_format")
    @classmethod
    def _validate_log_format(cls, value: str) -> str:
        format_name = value.strip().lower()
        if format_name not in ("json", "text"):
            raise ValueError("log_format must be `json` or `text`")
        return format_name

    @property
    def is_development(self) -> bool:
        """Return whether raw error detail may be exposed to clients.

        Returns:
            bool: True only for the `development` environment label.
        """

        return self.environment_name == DEVELOPMENT_ENVIRONMENT


def config_load_settings(**overrides: Any) -> AppSettings:
    """Load and validate runtime settings from environment and dotenv.

    Args:
        overrides: Field values taking precedence over the environment. `None`
            values are ignored so unset CLI flags fall through.

    Returns:
        AppSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when settings are missing or invalid.
    """

    explicit_values = {name: value for name, value in overrides.items() if value is not None}
    try:
        return AppSettings(**explicit_values)
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error
