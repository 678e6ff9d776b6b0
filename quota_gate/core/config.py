"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
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
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def parse_extra_tiers(raw: str | None) -> dict[str, str]:
    """Parse ``name=limit`` pairs into a mapping of raw values.

    Values are left as strings; the rate limiter validates them so that a bad
    entry surfaces as a ConfigurationError at startup.

    Examples:
        >>> parse_extra_tiers("enterprise=500, team=100")
        {'enterprise': '500', 'team': '100'}
        >>> parse_extra_tiers(None)
        {}
    """
    if not raw:
        return {}

    tiers: dict[str, str] = {}
    for item in raw.split(","):
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            continue
        tiers[name.strip().lower()] = value.strip()
    return tiers


class RateLimitSettings(BaseSettings):
    """Tier quotas and window configuration for the admission engine."""

    guest_limit: int = Field(
        3,
        description="Requests per window for unauthenticated callers (tracked by IP)",
    )
    free_limit: int = Field(
        10,
        description="Requests per window for free-tier users",
    )
    premium_limit: int = Field(
        50,
        description="Requests per window for premium-tier users",
    )
    extra_tiers: str | None = Field(
        None,
        description="Additional tiers as comma-separated name=limit pairs",
    )
    window_seconds: int = Field(
        3600,
        description="Fixed window size in seconds, shared by all tiers",
    )
    cleanup_interval_seconds: float = Field(
        600.0,
        description="Interval between background sweeps of expired windows",
    )
    include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers on rate limited routes",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )

    def tier_limits(self) -> dict[str, int | str]:
        """Build the tier limit table handed to the rate limiter."""

        table: dict[str, int | str] = {
            "guest": self.guest_limit,
            "free": self.free_limit,
            "premium": self.premium_limit,
        }
        table.update(parse_extra_tiers(self.extra_tiers))
        return table


class AuthSettings(BaseSettings):
    """JWT issuance and password hashing configuration."""

    jwt_secret: str = Field(
        "dev-secret-change-me",
        description="Secret used to sign access tokens",
    )
    jwt_algorithm: str = Field(
        "HS256",
        description="JWT signing algorithm",
    )
    token_expires_minutes: int = Field(
        24 * 60,
        description="Access token lifetime in minutes",
        ge=1,
    )
    bcrypt_rounds: int = Field(
        10,
        description="bcrypt cost factor for stored password hashes",
        ge=4,
        le=31,
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class LLMSettings(BaseSettings):
    """Downstream text generation provider configuration.

    ``mock`` serves canned replies and needs no credentials. ``openai`` talks
    to any OpenAI-compatible endpoint (set base_url for e.g. Groq).
    """

    provider: str = Field(
        "mock",
        description="LLM provider name (mock, openai)",
    )
    model: str = Field(
        "llama-3.1-8b-instant",
        description="Default model used when the request does not pick one",
    )
    api_key: str | None = Field(
        None,
        description="API key for cloud providers",
    )
    base_url: str | None = Field(
        None,
        description="Custom API endpoint for OpenAI-compatible providers",
    )
    timeout_seconds: float = Field(
        30.0,
        description="Request timeout in seconds",
    )
    max_tokens: int = Field(
        150,
        description="Maximum tokens generated per reply",
        ge=1,
    )
    temperature: float = Field(
        0.7,
        description="Sampling temperature",
        ge=0.0,
        le=2.0,
    )

    model_config = SettingsConfigDict(
        env_prefix="LLM_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log destination: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(
        0,
        description="Rotate the log file after this many bytes (0 disables rotation)",
        ge=0,
    )
    backup_count: int = Field(5, description="Rotated files to keep", ge=0)
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to receive and echo the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Include provider error details in responses",
    )
    debug_endpoints: bool = Field(
        True,
        description="Expose /api/debug/* endpoints (always off in production)",
    )
    max_message_chars: int = Field(
        1000,
        description="Maximum chat message length in characters",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


def _build_rate_limit_settings() -> "RateLimitSettings":
    """Build rate limit settings from environment.

    Static type checkers treat fields as constructor arguments, which is not
    how BaseSettings is intended to be used.
    """

    return RateLimitSettings()  # type: ignore[call-arg]


def _build_auth_settings() -> "AuthSettings":
    return AuthSettings()  # type: ignore[call-arg]


def _build_llm_settings() -> "LLMSettings":
    return LLMSettings()  # type: ignore[call-arg]


def _build_log_settings() -> "LogSettings":
    return LogSettings()  # type: ignore[call-arg]


def _build_app_settings() -> "AppSettings":
    return AppSettings()  # type: ignore[call-arg]


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if settings are malformed.
    """

    app_env: str = APP_ENV
    rate_limit: RateLimitSettings = Field(default_factory=_build_rate_limit_settings)
    auth: AuthSettings = Field(default_factory=_build_auth_settings)
    llm: LLMSettings = Field(default_factory=_build_llm_settings)
    log: LogSettings = Field(default_factory=_build_log_settings)
    app: AppSettings = Field(default_factory=_build_app_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
