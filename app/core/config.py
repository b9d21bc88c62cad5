"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Variable names follow the deployment's existing environment (for example
``RATE_LIMIT_WINDOW_SECS`` and ``CONTACT_WORKER_URL``), so the same values
can be shared with the edge configuration.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file and os.getenv("TESTING") != "true":
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


DEFAULT_RATE_LIMIT_WINDOW_SECONDS = 60
DEFAULT_RATE_LIMIT_MAX_REQUESTS = 5


def _int_or_default(value: Any, default: int, *, minimum: int) -> int:
    """Coerce a raw setting into an int, falling back to ``default``.

    Non-numeric values and values below ``minimum`` are replaced silently.
    """

    if isinstance(value, bool):
        return default
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    if parsed < minimum:
        return default
    return parsed


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        10 * 1024 * 1024,
        description="Rotate the log file after this many bytes (0 disables rotation)",
    )
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to propagate the request correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Contact endpoint throttling configuration.

    Invalid numbers (non-numeric, negative, or a zero window) fall back to the
    hard-coded defaults instead of failing startup. A max of 0 is valid and
    denies every request.
    """

    window_seconds: int = Field(
        DEFAULT_RATE_LIMIT_WINDOW_SECONDS,
        validation_alias="RATE_LIMIT_WINDOW_SECS",
        description="Fixed window length in whole seconds",
    )
    max_requests: int = Field(
        DEFAULT_RATE_LIMIT_MAX_REQUESTS,
        validation_alias="RATE_LIMIT_MAX",
        description="Requests allowed per client per window",
    )
    route_tag: str = Field(
        "contact",
        description="Route segment used in rate limit keys (rl:<route>:<client>)",
    )
    sweep_probability: float = Field(
        0.01,
        ge=0.0,
        le=1.0,
        description="Chance per write that the relational store purges expired rows",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* and Retry-After headers when throttling",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
        populate_by_name=True,
    )

    @field_validator("window_seconds", mode="before")
    @classmethod
    def _window_or_default(cls, value: Any) -> int:
        return _int_or_default(value, DEFAULT_RATE_LIMIT_WINDOW_SECONDS, minimum=1)

    @field_validator("max_requests", mode="before")
    @classmethod
    def _max_or_default(cls, value: Any) -> int:
        return _int_or_default(value, DEFAULT_RATE_LIMIT_MAX_REQUESTS, minimum=0)


class StoreSettings(BaseSettings):
    """Bindings for the key-value and relational stores.

    Either, both, or neither may be set. When both are present the KV store
    backs the rate limiter and the database holds contacts.
    """

    kv_url: str | None = Field(
        None,
        description="KV namespace URL: memory:// or redis://host:port/db",
    )
    database_url: str | None = Field(
        None,
        description="Async SQLAlchemy URL, e.g. sqlite+aiosqlite:///./talktech.db",
    )

    model_config = SettingsConfigDict(
        env_prefix="STORE_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    admin_secret: str | None = Field(
        None,
        description="Pre-shared x-admin-secret value accepted when Cloudflare Access headers are absent",
    )
    contact_worker_url: str | None = Field(
        None,
        description="Worker endpoint that persists contact submissions",
    )
    webhook_secret: str | None = Field(
        None,
        description="Shared secret sent to the contact worker as X-Signature",
    )
    turnstile_secret_key: str | None = Field(
        None,
        description="Cloudflare Turnstile secret",
    )
    turnstile_secret: str | None = Field(
        None,
        description="Legacy name for the Turnstile secret",
    )
    resend_api_key: str | None = Field(
        None,
        description="Resend API key for notification emails",
    )
    notification_email: str | None = Field(
        None,
        description="Recipient of new-submission notifications",
    )
    notification_from: str = Field(
        "noreply@talktech.io",
        description="Sender address for notification emails",
    )
    http_timeout_seconds: float = Field(
        10.0,
        description="Timeout for outbound HTTP calls (captcha, worker, email)",
    )
    site_origin: str | None = Field(
        None,
        description="Public origin of the marketing site",
    )

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @property
    def turnstile_secret_value(self) -> str | None:
        """Return whichever Turnstile secret is configured, preferring the new name."""
        return self.turnstile_secret_key or self.turnstile_secret or None


def _build_log_settings() -> LogSettings:
    return LogSettings()  # type: ignore[call-arg]


def _build_rate_limit_settings() -> RateLimitSettings:
    return RateLimitSettings()  # type: ignore[call-arg]


def _build_store_settings() -> StoreSettings:
    return StoreSettings()  # type: ignore[call-arg]


def _build_app_settings() -> AppSettings:
    """Build app settings from environment.

    Pydantic Settings populates values from environment variables; the type
    ignore keeps static checkers from treating fields as constructor args.
    """

    return AppSettings()  # type: ignore[call-arg]


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.

    Environments:
    - development: Local development
    - testing: Automated tests (uses .env.testing)
    - staging: Pre-production (uses .env.staging)
    - production: Production deployment (uses .env.production)
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    store: StoreSettings = Field(default_factory=_build_store_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
