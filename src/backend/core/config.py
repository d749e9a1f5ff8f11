"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables or a local .env file.
"""

from functools import lru_cache
from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "HotTakes"
    APP_ENV: str = "development"
    DEBUG: bool = False

    # Database - PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "hottakes"
    POSTGRES_PASSWORD: str = ""  # Required - loaded from environment
    POSTGRES_DB: str = "hottakes"
    POSTGRES_SSL: bool = True

    # Upper bound for a single storage round trip (asyncpg command_timeout)
    DB_COMMAND_TIMEOUT_SECONDS: float = 5.0
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10

    # Anonymous identity
    IP_HASH_SALT: str = ""  # Required - loaded from environment
    # Comma-separated IPs/CIDRs of reverse proxies allowed to set X-Forwarded-For
    TRUSTED_PROXIES: str = ""

    @field_validator("IP_HASH_SALT", "POSTGRES_PASSWORD")
    @classmethod
    def validate_required_secrets(cls, v: str, info: Any) -> str:
        """Validate that required secrets are set."""
        if not v:
            raise ValueError(f"{info.field_name} must be set in environment")
        return v

    @property
    def POSTGRES_URL(self) -> str:
        """Construct PostgreSQL connection URL."""
        url = (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )
        if self.POSTGRES_SSL:
            url += "?ssl=require"
        return url

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_BACKEND: str = "memory"  # memory | redis
    REDIS_URL: str = "redis://localhost:6379/0"

    # Content policy - extra denylist terms, comma-separated
    CONTENT_DENYLIST_EXTRA: str = ""

    # Moderation
    AUTO_HIDE_REPORT_THRESHOLD: int = 10
    ADMIN_PASSWORD: str | None = None

    # Ranking
    CONTROVERSY_MIN_VOTES: int = 50
    TRENDING_CANDIDATE_LIMIT: int = 500

    # CORS - stored as comma-separated string to avoid pydantic-settings JSON parsing issues
    CORS_ORIGINS: str = "http://localhost:3000"

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        import json

        try:
            return json.loads(self.CORS_ORIGINS)
        except json.JSONDecodeError:
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def trusted_proxies_list(self) -> list[str]:
        """Get trusted proxy networks as a list."""
        return [proxy.strip() for proxy in self.TRUSTED_PROXIES.split(",") if proxy.strip()]

    @property
    def denylist_extra_list(self) -> list[str]:
        """Get additional denylist terms as a list."""
        return [term.strip() for term in self.CONTENT_DENYLIST_EXTRA.split(",") if term.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
