from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # App
    app_env: str = "dev"
    log_level: str = "INFO"

    # Infra
    database_url: str = "postgresql://app:app@db:5432/app"
    redis_url: str = "redis://redis:6379/0"
    redis_timeout_seconds: float = 2.0
    smtp_base_url: str = "http://smtp-mock:8025"
    smtp_timeout_seconds: float = 5.0
    email_backend: Literal["http", "console"] = "http"
    email_sender: str = "no-reply@example.com"

    # Expiring stores
    store_backend: Literal["memory", "snapshot", "redis"] = "snapshot"
    snapshot_dir: str = "var/snapshots"

    # Security / policies
    bcrypt_rounds: int = 12
    code_length: int = 6
    code_ttl_seconds: int = 600
    pending_ttl_seconds: int = 600
    code_max_attempts: int = 5  # 0 disables the limit
    session_ttl_seconds: int = 86400

    # Sweeper
    sweep_interval_seconds: float = 300.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
