from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    APP_NAME: str = "Hoist"
    APP_ENV: Literal["development", "staging", "production"] = "development"

    DATABASE_URL: str = "sqlite:///hoist.db"
    DATABASE_ECHO: bool = False

    LOG_LEVEL: str = "INFO"

    # Header populated by the identity layer in front of this service
    USER_ID_HEADER: str = "X-User-Id"

    HISTORY_DEFAULT_PAGE_SIZE: int = 20
    HISTORY_MAX_PAGE_SIZE: int = 100
    RECENT_WORKOUTS_LIMIT: int = 3

    @property
    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
