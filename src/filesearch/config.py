"""Runtime configuration for the filesearch client, CLI and services."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_MODEL = "gemini-2.5-flash"


class Settings(BaseSettings):
    """Environment-backed configuration model."""

    model_config = SettingsConfigDict(
        env_prefix="filesearch_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    environment: Literal["dev", "test", "prod"] = "dev"

    # Also read from GEMINI_API_KEY / GOOGLE_API_KEY
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("filesearch_api_key", "gemini_api_key", "google_api_key"),
    )

    default_model: str = DEFAULT_MODEL
    # None keeps the SDK default endpoint
    api_base_url: str | None = None
    api_version: str = "v1beta"
    request_timeout_seconds: float = 60.0

    # Long-running operations
    poll_interval_seconds: float = 2.0
    poll_timeout_seconds: float = 300.0

    # HTTP surface
    cache_ttl_seconds: float = 30.0
    cors_allow_origins: tuple[str, ...] = ()
    cors_allow_credentials: bool = False
    cors_allow_methods: tuple[str, ...] = ("GET", "POST", "DELETE", "OPTIONS")
    cors_allow_headers: tuple[str, ...] = ("*",)

    @property
    def is_test(self) -> bool:
        return self.environment == "test"


@lru_cache(maxsize=1)
def _cached_settings() -> Settings:
    return Settings()


def get_settings(override: Optional[dict[str, object]] = None) -> Settings:
    """Return settings, optionally overriding values without mutating cache."""

    if override:
        return Settings(**override)
    return _cached_settings()
