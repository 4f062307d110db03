"""Configuration management for the AquaFeed admin dashboard."""

import re
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_API_SUFFIX = re.compile(r"/api/v1/?$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=("../.env", ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    environment: str = "development"
    log_level: str = "info"

    # Backend REST API
    backend_url: str = "http://localhost:5001/api/v1"
    backend_timeout_seconds: float = 30.0

    # Session relay
    session_cookie_name: str = "backend_session"
    backend_session_cookie: str = "connect.sid"
    session_max_age_seconds: int = 30 * 24 * 60 * 60

    # Query cache
    query_stale_seconds: float = 45.0
    query_gc_seconds: float = 300.0
    query_retry: int = 1
    cache_sweep_interval_seconds: int = 60

    # Tables
    default_page_size: int = 10
    page_size_options: list[int] = [10, 20, 50]

    # Shown on the settings page
    app_version: str = "1.0.0"
    database_label: str = "MongoDB"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def backend_base_url(self) -> str:
        """Backend URL with exactly one trailing /api/v1."""
        return _API_SUFFIX.sub("", self.backend_url.rstrip("/")) + "/api/v1"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
