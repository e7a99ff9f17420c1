"""Configuration loading for the lambdawatch telemetry adapter.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Resolve the environment label and sample rate for the backend
"""

from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lambdawatch.core.environment import (
    DEFAULT_ENVIRONMENT,
    DEFAULT_SAMPLE_RATE,
    PRODUCTION_ENVIRONMENT,
    PRODUCTION_SAMPLE_RATE,
    build_telemetry_config,
)
from lambdawatch.core.models import (
    DEFAULT_FLUSH_TIMEOUT_MS,
    DEFAULT_TIMEOUT_WARNING_LIMIT_MS,
    EventFilter,
    TelemetryConfig,
    pass_through_event,
)


class Settings(BaseSettings):
    """Telemetry configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Backend credential and environment label
    endpoint_credential: str = Field(
        default="",
        validation_alias=AliasChoices("endpoint_credential", "sentry_dsn"),
        description="Error-tracking DSN; blank disables telemetry",
    )
    telemetry_environment: str = Field(
        default="",
        validation_alias=AliasChoices("telemetry_environment", "sentry_environment"),
        description="Explicit environment label override",
    )
    stage: str = Field(
        default="",
        validation_alias=AliasChoices("stage", "deployment_stage"),
        description="Deployment stage exposed by the host platform",
    )
    default_environment: str = Field(
        default=DEFAULT_ENVIRONMENT,
        description="Environment label used when no override or stage is set",
    )

    # Sampling policy
    production_environment: str = Field(
        default=PRODUCTION_ENVIRONMENT,
        description="Environment label that selects the production sample rate",
    )
    production_sample_rate: float = Field(
        default=PRODUCTION_SAMPLE_RATE,
        description="Trace sample rate in production",
    )
    default_sample_rate: float = Field(
        default=DEFAULT_SAMPLE_RATE,
        description="Trace sample rate outside production",
    )

    # Handler wrapping
    timeout_warning_limit_ms: int = Field(
        default=DEFAULT_TIMEOUT_WARNING_LIMIT_MS,
        description="Warn when a handler runs this close to its deadline",
    )
    flush_timeout_ms: int = Field(
        default=DEFAULT_FLUSH_TIMEOUT_MS,
        description="Upper bound on the post-invocation flush",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    @field_validator("production_sample_rate", "default_sample_rate")
    @classmethod
    def validate_sample_rate(cls, v: float) -> float:
        """Ensure sample rates are fractions."""
        if v < 0 or v > 1:
            raise ValueError("sample rate must be between 0 and 1")
        return v

    @field_validator("timeout_warning_limit_ms", "flush_timeout_ms")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Ensure timeouts are positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: object) -> object:
        """Accept lower-case level names."""
        return v.upper() if isinstance(v, str) else v

    def to_telemetry_config(
        self, event_filter: EventFilter = pass_through_event
    ) -> TelemetryConfig:
        """Resolve these settings into the backend's TelemetryConfig."""
        return build_telemetry_config(
            self.endpoint_credential,
            self.telemetry_environment,
            self.stage,
            default_environment=self.default_environment,
            production_environment=self.production_environment,
            production_sample_rate=self.production_sample_rate,
            default_sample_rate=self.default_sample_rate,
            timeout_warning_limit_ms=self.timeout_warning_limit_ms,
            flush_timeout_ms=self.flush_timeout_ms,
            event_filter=event_filter,
        )


def load_settings(env_file: str | None = None) -> Settings:
    """Load telemetry settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
