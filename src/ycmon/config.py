"""Process-level settings for ycmon."""

from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="YCMON_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Output configuration file (YAML); environment is used when unset
    config_file: Optional[Path] = None

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None


settings = Settings()
