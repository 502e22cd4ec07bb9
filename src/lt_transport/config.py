"""Client configuration via environment variables."""

import tempfile
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_cache_dir() -> Path:
    return Path(tempfile.gettempdir()) / "lt-transport-cache"


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "lt-transport"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: str = "INFO"

    # City matrix and on-disk GTFS cache
    cache_dir: Path = Field(default_factory=_default_cache_dir)
    cities_file: Optional[Path] = None
    timezone: str = "Europe/Vilnius"

    # HTTP
    request_timeout_sec: float = Field(default=10.0, gt=0)
    gtfs_download_timeout_sec: float = Field(default=30.0, gt=0)
    user_agent: str = "lt-transport/0.1.0"

    # Live feed processing
    stale_threshold_sec: int = Field(default=300, ge=0)
    auto_enrich: bool = True
    filter_invalid_coords: bool = True
    filter_stale: bool = False

    # Static GTFS sync
    sync_min_interval_sec: int = Field(default=60, ge=0)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
