"""Application configuration using pydantic-settings."""

import logging
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

LOCAL_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:3001",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database - DATABASE_URL wins, otherwise built from the DB_* parts
    database_url: str | None = None
    db_user: str = "postgres"
    db_password: str = ""
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "resume_analyzer"
    db_echo: bool = False

    # Connection pool
    db_pool_size: int = 20
    db_pool_timeout: float = 2.0
    db_pool_recycle: int = 1800

    # Gemini
    google_api_key: str | None = None
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    ai_timeout: float = 60.0
    ai_json_mode: bool = True
    ai_temperature: float = 0.3
    ai_top_k: int = 40
    ai_top_p: float = 0.95
    ai_max_output_tokens: int = 4096

    # Application
    app_name: str = "Resume Analyzer API"
    environment: Literal["development", "production"] = "development"
    port: int = 5000
    log_level: str = "INFO"
    max_upload_bytes: int = 5 * 1024 * 1024
    shutdown_grace_seconds: int = 10

    # CORS
    production_origins: list[str] = []

    # UI
    api_base_url: str | None = None
    ui_retry_attempts: int = 3
    ui_retry_delay: float = 1.0
    ui_page_size: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    @property
    def sqlalchemy_url(self) -> str:
        """Build the async database URL.

        Prefers DATABASE_URL if set, otherwise constructs a PostgreSQL URL
        from the individual DB_* variables.
        """
        if self.database_url:
            return self.database_url
        credentials = self.db_user
        if self.db_password:
            credentials = f"{self.db_user}:{self.db_password}"
        return (
            f"postgresql+asyncpg://{credentials}@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origins(self) -> list[str]:
        if self.is_production:
            return LOCAL_ORIGINS + self.production_origins
        return list(LOCAL_ORIGINS)


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
