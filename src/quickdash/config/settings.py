"""
Application settings using Pydantic.

Provides environment-based configuration loading with QUICKDASH_ prefix.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Engine
    max_concurrent_queries: int = Field(default=20, ge=1)

    # Prometheus
    prometheus_url: str = "http://localhost:9090"
    prometheus_username: str | None = None
    prometheus_password: str | None = None

    # HTTP client settings
    http_timeout: float = 30.0

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "QUICKDASH_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
