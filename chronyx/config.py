"""Configuration settings for chronyx."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from chronyx.utils import get_chronyx_home


class Settings(BaseSettings):
    """Settings loaded from ``CHRONYX_*`` environment variables or ``.env``."""

    # Hosted database
    supabase_url: str | None = None
    supabase_publishable_key: str | None = None  # Client/public access

    # Local device
    data_dir: Path | None = None  # Defaults to get_chronyx_home()
    log_level: str = "INFO"

    # HTTP
    request_timeout: float = 10.0  # Seconds per replayed request

    model_config = SettingsConfigDict(
        env_prefix="CHRONYX_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars not in model
    )

    @property
    def resolved_data_dir(self) -> Path:
        return self.data_dir or get_chronyx_home()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
