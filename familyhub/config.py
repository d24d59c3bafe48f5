"""
Configuration and settings for the family hub service.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service.

    Every field can be overridden with a ``FAMILYHUB_`` prefixed variable,
    e.g. ``FAMILYHUB_DISK_API_BASE``.
    """

    model_config = SettingsConfigDict(
        env_prefix="FAMILYHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_prefix: str = Field(default="/api")

    # Remote object store (Yandex Disk REST API)
    disk_api_base: str = Field(default="https://cloud-api.yandex.net/v1/disk")
    request_timeout: float = Field(default=30.0, gt=0)
    list_limit: int = Field(default=100, ge=1)
    family_list_limit: int = Field(default=1000, ge=1)

    # Browser session cookie
    cookie_name: str = Field(default="yandex_token")
    cookie_secure: bool = Field(default=False)
    cookie_max_age: int = Field(default=60 * 60 * 24 * 7)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    log_level: str = Field(default="INFO")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
