"""Application configuration via pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Flow Integrity"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Integrity enforcement (kill switch): strict blocks, warn logs, off skips
    integrity_enforcement: Literal["strict", "warn", "off"] = "strict"
    integrity_admin_token: Optional[str] = Field(default=None)

    # Stuck-state detection: stuck once age exceeds multiplier × expected duration
    stuck_threshold_multiplier: float = Field(default=2.0, gt=1.0)

    # Optimistic concurrency
    transition_max_attempts: int = Field(default=3, ge=1)

    # Request logging
    slow_request_seconds: float = 1.0


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
