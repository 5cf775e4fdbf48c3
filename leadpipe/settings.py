"""Application settings using Pydantic BaseSettings."""

import re

from pydantic_settings import BaseSettings, SettingsConfigDict


def to_async_database_url(url: str) -> str:
    """Convert a database URL for the asyncpg driver."""
    # Convert postgres:// to postgresql+asyncpg:// for SQLAlchemy async
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql+asyncpg://", 1)
    elif url.startswith("postgresql://") and "+asyncpg" not in url:
        url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
    # asyncpg doesn't support sslmode, it uses ssl parameter
    if "sslmode=" in url:
        url = re.sub(r'[?&]sslmode=[^&]*', '', url)
        url = url.rstrip('?&')
    return url


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./leadpipe.db"

    # JWT
    jwt_secret_key: str = "dev-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    jwt_access_token_expire_minutes: int = 60
    jwt_refresh_token_expire_days: int = 30

    # API keys are stored as sha256(raw + pepper)
    api_key_pepper: str = ""

    # Fernet key for encrypted columns and API key reveal
    field_encryption_key: str = ""

    # Meta (Facebook) Lead Ads
    meta_verify_token: str = "leadpipe_meta_webhook_verify"
    meta_page_access_token: str | None = None
    meta_graph_version: str = "v18.0"
    meta_graph_timeout_seconds: float = 10.0
    meta_fetch_batch_size: int = 50
    meta_fetch_max_attempts: int = 5

    # Scheduler endpoints (/workers/*)
    cron_secret: str = ""

    # SLA
    default_sla_hours: int = 24

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    api_v1_prefix: str = "/api/v1"
    cors_origins: str = ""  # comma separated, empty allows all

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def async_database_url(self) -> str:
        return to_async_database_url(self.database_url)

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


settings = Settings()
