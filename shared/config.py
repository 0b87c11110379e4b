"""
Shared configuration management for the content repository layer.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ContentRepositorySettings(BaseSettings):
    """Settings for repositories and the progressive cache."""

    model_config = SettingsConfigDict(
        env_prefix="CONTENT_REPO_",
        env_file=".env",
        case_sensitive=False,
        extra="allow",
    )

    # Logging
    log_level: str = Field(default="info")
    json_logs: bool = Field(default=True)

    # Caching
    cache_minutes: int = Field(default=10, ge=0)
    media_cache_minutes: int = Field(default=10, ge=0)
    cache_backend: Literal["memory", "redis"] = Field(default="memory")
    redis_url: str = Field(default="redis://localhost:6379/0")
    cache_key_namespace: str = Field(default="content")
    max_cache_entries: int = Field(default=10000, gt=0)

    # Queries
    default_language: str = Field(default="en")

    # Observability
    enable_metrics: bool = Field(default=True)


@lru_cache(maxsize=1)
def get_settings() -> ContentRepositorySettings:
    """Get the process-wide settings instance."""
    return ContentRepositorySettings()
