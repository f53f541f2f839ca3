from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Component-level tuning lives in pydantic models (see
    ``customer_match.matching.config``); this class only carries values that
    differ between deployments.
    """

    # App basics
    ENV: Literal["development", "staging", "production"] = "development"
    """Environment mode: affects logging and which directory client is used."""

    DEBUG: bool = False
    """Log at DEBUG level in every environment (development always does)."""

    # Directory service
    DIRECTORY_CLIENT_TYPE: Literal["mock", "http"] = "mock"
    """Which directory client to build ('mock' keeps everything in memory)."""

    DIRECTORY_BASE_URL: Optional[str] = None
    """Base URL of the customer directory API (e.g. 'https://erp.example/api')."""

    DIRECTORY_API_TOKEN: Optional[str] = None
    """Bearer token sent to the directory API."""

    DIRECTORY_TIMEOUT_SECONDS: float = 10.0
    """Per-request timeout for directory calls."""

    # Matching
    MATCH_DEBOUNCE_MS: int = 400
    """Quiet period before a matching cycle is dispatched."""

    # Sessions
    SESSION_IDLE_TIMEOUT_SECONDS: float = 1800.0
    """Open sessions untouched for this long are disposed and forgotten."""

    # Model config
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance to avoid re-parsing .env repeatedly."""
    return Settings()
