"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Services whose credentials are missing are left disabled rather than failing
at import time; routes depending on them answer 503.
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

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() and not os.getenv("TESTING") else None


# Nested BaseSettings don't inherit env_file, so populate os.environ first
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="'json' or 'plain'")
    output: str = Field("stdout", description="'stdout' or 'file'")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10_485_760, description="Rotate log file after this size (0 disables)")
    backup_count: int = Field(5, description="Rotated log files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation header name")

    model_config = SettingsConfigDict(env_prefix="LOG_", case_sensitive=False)


class SheetsSettings(BaseSettings):
    """Spreadsheet document store configuration."""

    spreadsheet_id: str | None = Field(
        None,
        description="Main spreadsheet holding the store sheet",
    )
    sales_spreadsheet_id: str | None = Field(
        None,
        description="Spreadsheet holding the sales point sheet",
    )
    credentials_file: str | None = Field(
        None,
        description="Path to a service-account JSON key",
    )
    request_timeout_seconds: float = Field(
        60.0,
        description="Hard timeout applied to every document API call",
        gt=0,
    )
    cooldown_seconds: float = Field(
        0.5,
        description="Minimum spacing between consecutive document API calls",
        ge=0,
    )
    max_attempts: int = Field(
        5,
        description="Attempts per call when the API reports quota exhaustion",
        ge=1,
    )
    store_sheet_name: str = Field("폰클출고처데이터", description="Store sheet title")
    sales_sheet_name: str = Field("판매점정보", description="Sales point sheet title")

    model_config = SettingsConfigDict(env_prefix="SHEETS_", case_sensitive=False)


class GeocodingSettings(BaseSettings):
    """Address geocoding configuration."""

    api_key: str | None = Field(None, description="Kakao REST API key")
    base_url: str = Field(
        "https://dapi.kakao.com/v2/local/search/address.json",
        description="Address search endpoint",
    )
    timeout_seconds: float = Field(10.0, description="Per-request timeout", gt=0)
    default_region: str = Field(
        "경기도",
        description="Region prefixed to addresses lacking a 시/구/군 token",
    )
    cooldown_seconds: float = Field(
        0.2,
        description="Minimum spacing between geocoding requests",
        ge=0,
    )
    pacing_seconds: float = Field(
        0.5,
        description="Fixed delay between consecutive geocode calls in one sync run",
        ge=0,
    )
    hash_store_path: str = Field(
        "data/address_hashes.json",
        description="JSON file persisting the per-entity address hashes",
    )

    model_config = SettingsConfigDict(env_prefix="GEOCODING_", case_sensitive=False)


class CacheSettings(BaseSettings):
    """Response cache configuration."""

    default_ttl_seconds: float = Field(300.0, description="Default entry TTL", gt=0)
    max_size: int = Field(200, description="Maximum number of entries", ge=1)
    cleanup_interval_seconds: float = Field(
        60.0,
        description="Background sweep interval (0 disables the sweep)",
        ge=0,
    )
    warning_ratio: float = Field(
        0.9,
        description="Usage ratio above which the sweep logs a warning",
        gt=0,
        le=1,
    )

    model_config = SettingsConfigDict(env_prefix="CACHE_", case_sensitive=False)


class NotifySettings(BaseSettings):
    """Sync summary notification configuration."""

    enabled: bool = Field(False, description="Send sync summaries to Discord")
    discord_webhook_url: str | None = Field(None, description="Discord webhook URL")
    timeout_seconds: float = Field(10.0, description="Webhook request timeout", gt=0)

    model_config = SettingsConfigDict(env_prefix="NOTIFY_", case_sensitive=False)


def _build_log_settings() -> LogSettings:
    return LogSettings()  # type: ignore[call-arg]


def _build_sheets_settings() -> SheetsSettings:
    return SheetsSettings()  # type: ignore[call-arg]


def _build_geocoding_settings() -> GeocodingSettings:
    return GeocodingSettings()  # type: ignore[call-arg]


def _build_cache_settings() -> CacheSettings:
    return CacheSettings()  # type: ignore[call-arg]


def _build_notify_settings() -> NotifySettings:
    return NotifySettings()  # type: ignore[call-arg]


class Settings(BaseSettings):
    """Main application settings container.

    Nested settings are created via default_factory so each group reads its
    own prefixed environment variables.
    """

    app_env: str = APP_ENV
    log: LogSettings = Field(default_factory=_build_log_settings)
    sheets: SheetsSettings = Field(default_factory=_build_sheets_settings)
    geocoding: GeocodingSettings = Field(default_factory=_build_geocoding_settings)
    cache: CacheSettings = Field(default_factory=_build_cache_settings)
    notify: NotifySettings = Field(default_factory=_build_notify_settings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
