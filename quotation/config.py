"""Centralised application settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./quotation.db"
    SECRET_KEY: str = "change-me-to-a-random-secret-key"
    DEBUG: bool = True
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8000"]
    LOG_LEVEL: str = "INFO"

    # JWT
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # Edit locks. 0 keeps a lock until it is released explicitly.
    EDIT_LOCK_TTL_MINUTES: int = 0

    # Change history feeds
    AUDIT_HISTORY_LIMIT: int = 50
    RECENT_CHANGES_LIMIT: int = 100

    # First number handed out when a quote is created without one
    QUOTE_NUMBER_START: int = 1

    model_config = SettingsConfigDict(env_file=str(Path(__file__).resolve().parents[1] / ".env"))


settings = Settings()
