from __future__ import annotations
"""server/qualis/core/config.py
~~~~~~~~~~~~~~~~~~~~~~~~
Settings (pydantic-settings).
"""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+psycopg://postgres:postgres@db:5432/qualis"
    DB_CONNECT_TIMEOUT: int = Field(5)
    REDIS_URL: str = "redis://redis:6379/0"

    # Access tokens are issued by the auth provider, we only verify them.
    JWT_SECRET: str = "change-me"
    JWT_AUDIENCE: Optional[str] = "authenticated"
    ACCESS_COOKIE_NAME: str = "sb-access-token"

    RESEND_API_KEY: Optional[str] = None
    RESEND_API_URL: str = "https://api.resend.com/emails"
    NOTIFICATION_EMAIL_FROM: str = "Qualis Digital <no-reply@qualis.digital>"
    NOTIFICATION_DEFAULT_SUBJECT: str = "Qualis Digital update"
    NOTIFICATION_SEND_DELAY_MS: int = Field(500, ge=0)
    NOTIFICATION_BATCH_SIZE: int = Field(25, ge=1, le=100)
    NOTIFICATION_SENDING_STALE_MINUTES: int = Field(15, ge=0)
    NOTIFICATION_DRAIN_INTERVAL_SECONDS: float = 60.0
    NOTIFICATIONS_DRAIN_TOKEN: Optional[str] = None

    CORS_ALLOW_ORIGINS: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

settings = Settings()
