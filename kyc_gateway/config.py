"""
Configuration for the KYC gateway.

Settings are read once at startup from the environment (or a `.env`
file) and handed to each component explicitly; nothing reads the
environment at request time.

Recognised variables:

- KYC_API_URL               base URL of the upstream verification engine (required)
- HTTP_DOWNLOAD_TIMEOUT_MS  deadline for remote image downloads (default 45000)
- KYC_ENGINE_TIMEOUT_MS     deadline for upstream calls (default 60000)
- HOST / PORT               listen address (default 0.0.0.0:8085)
- MAX_BODY_BYTES            inbound request body limit (default 30 MiB)
- LOG_LEVEL                 structlog level filter (default INFO)
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DOWNLOAD_TIMEOUT_MS = 45_000
DEFAULT_ENGINE_TIMEOUT_MS = 60_000
DEFAULT_PORT = 8085
DEFAULT_MAX_BODY_BYTES = 30 * 1024 * 1024


def _lenient_int(value: Any, default: int) -> int:
    # Garbage or non-positive values fall back to the default instead of
    # refusing to start.
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    kyc_api_url: str = Field(
        ...,
        description="Upstream engine base URL, e.g. http://127.0.0.1:7860 or https://xxxx.hf.space",
    )
    http_download_timeout_ms: int = Field(
        default=DEFAULT_DOWNLOAD_TIMEOUT_MS,
        description="Deadline for downloading a remote image, in milliseconds",
    )
    kyc_engine_timeout_ms: int = Field(
        default=DEFAULT_ENGINE_TIMEOUT_MS,
        description="Deadline for a single upstream engine call, in milliseconds",
    )
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    max_body_bytes: int = Field(
        default=DEFAULT_MAX_BODY_BYTES,
        ge=1,
        description="Requests with a larger Content-Length are rejected with 413",
    )
    log_level: str = Field(default="INFO")

    @field_validator("kyc_api_url", mode="before")
    @classmethod
    def _normalize_base_url(cls, value: Any) -> str:
        base = str(value or "").strip()
        base = base[:-1] if base.endswith("/") else base
        if not base:
            raise ValueError(
                "KYC_API_URL is required (example: http://127.0.0.1:7860 or https://xxxx.hf.space)"
            )
        return base

    @field_validator("http_download_timeout_ms", mode="before")
    @classmethod
    def _download_timeout(cls, value: Any) -> int:
        return _lenient_int(value, DEFAULT_DOWNLOAD_TIMEOUT_MS)

    @field_validator("kyc_engine_timeout_ms", mode="before")
    @classmethod
    def _engine_timeout(cls, value: Any) -> int:
        return _lenient_int(value, DEFAULT_ENGINE_TIMEOUT_MS)


def get_settings() -> Settings:
    """Build settings from the environment; raises if KYC_API_URL is unset."""
    return Settings()
