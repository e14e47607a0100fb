"""
Configuration for the stockroom API.
Values come from STOCKROOM_* environment variables or a local .env file.
"""

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="STOCKROOM_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    storage: Literal["memory", "file"] = "memory"
    data_dir: str = "data"

    # Server
    host: str = "0.0.0.0"
    port: int = 8085
    cors_origins: List[str] = ["*"]

    # Logging
    log_level: str = "INFO"
    log_file: Optional[str] = None


@lru_cache()
def get_settings() -> Settings:
    return Settings()
