from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class Settings(BaseSettings):
    # Files
    config_path: Path = Field(default=PROJECT_ROOT / "config" / "config.yaml")
    db_path: Path | None = None  # overrides app.db_path from the YAML config

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "KB_"


settings = Settings()
