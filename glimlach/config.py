"""Application configuration"""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Settings read from the environment (and an optional ``.env`` file)."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Relay client
    relay_base_url: str = "http://localhost:5000"
    relay_timeout_sec: float = 10.0

    # Relay server: mail
    # Empty API key means messages are only logged, not delivered
    resend_api_key: str = ""
    resend_api_url: str = "https://api.resend.com/emails"
    mail_from: str = "Fundacja Schenk een Glimlach <no-reply@fundacja-go.org>"
    mail_to: str = "info@segim.ach.nl"

    # Relay server: payments (integration is a stub until enabled)
    payments_enabled: bool = False

    # Application
    environment: str = "development"
    default_locale: str = "pl"
    cors_origins: List[str] = ["*"]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


__all__ = ["Settings", "get_settings"]
