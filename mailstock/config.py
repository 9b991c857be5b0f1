"""Configuration management for the application."""

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = Field(default="sqlite:///./mailstock.db")

    # Redis (Celery broker and result backend)
    redis_url: str = Field(default="redis://localhost:6379/0")

    # Weekly accounting
    report_timezone: str = Field(default="UTC")
    default_category: str = Field(default="mails_simples")
    count_read_as_treated: bool = Field(default=False)
    recompute_interval_seconds: int = Field(default=300, ge=10)
    history_page_size_max: int = Field(default=52, ge=1)

    # API
    environment: str = Field(default="development")

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Validate that production has secure settings."""
        if self.is_production:
            if "localhost" in self.database_url or self.database_url.startswith("sqlite"):
                raise ValueError("DATABASE_URL should point to a shared database in production")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
