from __future__ import annotations

import os
from pathlib import Path
from typing import List

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
    """Application runtime configuration."""

    app_name: str = "JourneyJournal"
    environment: str = os.getenv("JJ_ENVIRONMENT", "development")
    host: str = os.getenv("JJ_HOST", "127.0.0.1")
    port: int = int(os.getenv("JJ_PORT", "8080"))
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            origin.strip()
            for origin in os.getenv(
                "JJ_CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
            ).split(",")
            if origin.strip()
        ]
    )

    sqlite_path: Path = Path(os.getenv("JJ_SQLITE_PATH", "./data/journeyjournal.db"))

    default_currency: str = os.getenv("JJ_DEFAULT_CURRENCY", "EUR")
    log_level: str = os.getenv("JJ_LOG_LEVEL", "INFO")

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, list):
            return value
        if not value:
            return []
        return [origin.strip() for origin in value.split(",") if origin.strip()]

    @computed_field
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


settings = Settings()

settings.sqlite_path.parent.mkdir(parents=True, exist_ok=True)
