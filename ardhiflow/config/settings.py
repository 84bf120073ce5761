"""Application settings via Pydantic BaseSettings."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings

from ardhiflow.exceptions import ConfigError


class Settings(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # App
    environment: Literal["development", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    app_url: str = "http://localhost:3000"
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Tenant addressing: tenants live on {slug}.{base_domain} in production
    base_domain: str = "localhost"

    # Clerk
    clerk_secret_key: str | None = None
    clerk_api_url: str = "https://api.clerk.com/v1"
    clerk_jwks_url: str | None = None
    clerk_issuer: str | None = None
    clerk_authorized_parties: list[str] = []
    directory_timeout_seconds: float = 10.0

    # Payment status key-value store (in-memory when unset)
    redis_url: str | None = None
    payment_poll_interval_seconds: float = 2.0
    payment_max_checks: int = 60

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    settings = Settings()
    if not settings.is_development and not settings.clerk_secret_key:
        msg = "ENVIRONMENT=production requires CLERK_SECRET_KEY"
        raise ConfigError(msg)
    return settings
