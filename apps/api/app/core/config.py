"""Application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables."""

    api_key: str | None = None
    auth_provider: Literal["mock", "firebase"] = "firebase"
    firebase_project_id: str | None = None
    firebase_audience: str | None = None
    allowed_email_domains: list[str] = Field(default_factory=list)
    balance_enabled: bool = False
    start_balance: int = 0
    bcrypt_rounds: int = Field(default=10, ge=4, le=31)
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="ACCOUNT_ADMIN_", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
