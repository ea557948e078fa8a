"""
Centralized settings configuration using Pydantic BaseSettings.

Every LogPack option that can come from the environment is defined here
with its type, default and validation. Variables use the ``LOGPACK_``
prefix; lists are given as JSON (``LOGPACK_INCLUDE_PATHS='["/orders/*"]'``).

Usage:
    from logpack.settings import get_settings

    settings = get_settings()
    print(settings.time_zone)
"""

from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LogPackSettings(BaseSettings):
    """LogPack settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LOGPACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Core
    # -------------------------------------------------------------------------
    enabled: bool = Field(
        default=True,
        description="Install the capture middleware",
    )
    environment: str = Field(
        default="development",
        description="Runtime environment: development, staging, production, test",
    )

    # -------------------------------------------------------------------------
    # Filters
    # -------------------------------------------------------------------------
    include_status_codes: list[int] = Field(
        default_factory=list,
        description="Non-5xx status codes that trigger a capture",
    )
    include_paths: list[str] = Field(
        default_factory=list,
        description="Path globs that trigger a capture",
    )
    exclude_paths: list[str] = Field(
        default_factory=list,
        description="Path globs that veto a capture selected by an include filter",
    )
    exclude_applies_to_errors: bool = Field(
        default=False,
        description="Let exclude filters veto 5xx captures as well",
    )

    # -------------------------------------------------------------------------
    # Archive contents
    # -------------------------------------------------------------------------
    include_request_payload: bool = Field(
        default=False,
        description="Write the request body into the request entry",
    )
    include_response: bool = Field(
        default=False,
        description="Write the response entry",
    )
    include_response_payload: bool = Field(
        default=False,
        description="Write the response body into the response entry",
    )
    include_files: list[str] = Field(
        default_factory=list,
        description="Local files copied into every archive",
    )
    redact_headers: list[str] = Field(
        default_factory=list,
        description="Header names written as *** in the archive",
    )
    distribution_name: Optional[str] = Field(
        default=None,
        description="Installed distribution described in deps.log",
    )
    time_zone: str = Field(
        default="UTC",
        description="IANA time zone for archive timestamps and file names",
    )
    trace_max_lines: int = Field(
        default=1000,
        description="Trace lines kept per request",
    )
    capture_unhandled_errors: bool = Field(
        default=False,
        description="Archive requests whose handler raised, as a 500",
    )

    # -------------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------------
    work_dir: Optional[str] = Field(
        default=None,
        description="Directory archives are written to before dispatch (temp dir when unset)",
    )
    send_timeout_seconds: Optional[float] = Field(
        default=30.0,
        description="Time allowed for each sink/notifier send",
    )
    dispatch_in_background: bool = Field(
        default=True,
        description="Dispatch after the response was sent",
    )
    sink_directory: Optional[str] = Field(
        default=None,
        description="Copy archives into this directory",
    )
    sink_http_url: Optional[str] = Field(
        default=None,
        description="Upload archives to this URL",
    )
    sink_http_token: Optional[str] = Field(
        default=None,
        description="Bearer token for the HTTP sink",
    )
    notify_webhook_url: Optional[str] = Field(
        default=None,
        description="POST a JSON notification here for every archive",
    )
    notify_log: bool = Field(
        default=True,
        description="Log a line for every archive",
    )

    # -------------------------------------------------------------------------
    # Observability - Sentry
    # -------------------------------------------------------------------------
    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for capture error reporting",
    )

    # -------------------------------------------------------------------------
    # Validators
    # -------------------------------------------------------------------------
    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is a valid value."""
        valid_environments = {"development", "staging", "production", "test"}
        if v.lower() not in valid_environments:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {valid_environments}"
            )
        return v.lower()

    @field_validator("time_zone")
    @classmethod
    def validate_time_zone(cls, v: str) -> str:
        """Ensure the time zone is known to zoneinfo."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown time zone '{v}'")
        return v

    @field_validator("send_timeout_seconds")
    @classmethod
    def validate_send_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v <= 0:
            raise ValueError("send_timeout_seconds must be positive")
        return v

    # -------------------------------------------------------------------------
    # Helper Properties
    # -------------------------------------------------------------------------
    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.time_zone)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache
def get_settings() -> LogPackSettings:
    """
    Get cached settings instance.

    For testing, clear the cache with get_settings.cache_clear().
    """
    return LogPackSettings()
