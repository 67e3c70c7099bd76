"""Application configuration from environment."""
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "MaxWaveX API"
    debug: bool = False
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite+aiosqlite:///./maxwavex.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # JWT: no fallback, startup fails if SECRET_KEY is not set
    secret_key: str = Field(min_length=32)
    algorithm: str = "HS256"
    registered_token_ttl_minutes: int = 60 * 24  # 24 hours
    guest_token_ttl_minutes: int = 60

    # Guest sessions
    guest_session_ttl_minutes: int = 60

    # "allow" lets a later write lower completion_percentage, "reject" refuses it
    progress_regression_policy: Literal["allow", "reject"] = "allow"

    # Leaderboard
    leaderboard_default_limit: int = 10
    leaderboard_max_limit: int = 100

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("secret_key")
    @classmethod
    def _reject_placeholder_key(cls, value: str) -> str:
        if value.strip().lower().startswith("change-me"):
            raise ValueError("SECRET_KEY must be set to a real random value")
        return value


@lru_cache()
def get_settings() -> Settings:
    return Settings()
