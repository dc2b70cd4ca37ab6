"""
Global Payroll Portal - Configuration Settings

This module handles all application configuration using Pydantic Settings.
Environment variables are loaded from .env file.
"""

from functools import lru_cache
from typing import List
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===========================================
    # APPLICATION CONFIGURATION
    # ===========================================
    app_name: str = "Global Payroll Portal"
    app_env: str = "development"
    debug: bool = False
    secret_key: str  # Required - must be set in .env
    api_version: str = "v1"

    # ===========================================
    # DATABASE CONFIGURATION
    # ===========================================
    database_url: str  # Required - must be set in .env (sync URL, used by Alembic)
    database_url_async: str  # Required - must be set in .env
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # ===========================================
    # JWT AUTHENTICATION
    # ===========================================
    jwt_secret_key: str  # Required - must be set in .env
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    session_cookie_name: str = "access_token"

    # ===========================================
    # AI QUERY ASSISTANT (OpenAI)
    # Models are tried in order; the first successful completion wins.
    # ===========================================
    openai_api_key: str = ""
    ai_query_models: str = "gpt-4o-mini,gpt-4o,gpt-4.1-mini"
    ai_query_temperature: float = 0.1
    ai_query_max_rows: int = 100

    @property
    def ai_query_model_list(self) -> List[str]:
        """Parse the model fallback chain into an ordered list."""
        return [model.strip() for model in self.ai_query_models.split(",") if model.strip()]

    # ===========================================
    # PAYROLL
    # ===========================================
    # When enabled, persisted net pay also carries the country
    # additions/deductions. Off by default: the breakdown is display only.
    net_pay_includes_country_deductions: bool = False

    # ===========================================
    # SEED DATA
    # Reference data (countries, currencies, payroll types) is idempotent.
    # The seed admin is only created when both values are set.
    # ===========================================
    seed_reference_data: bool = True
    seed_admin_email: str = ""
    seed_admin_password: str = ""

    # ===========================================
    # CORS SETTINGS
    # ===========================================
    cors_origins: str = "http://localhost:3000,http://localhost:8000,http://127.0.0.1:8000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env.lower() == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"

    @property
    def is_sqlite(self) -> bool:
        """SQLite is used by the test suite; it has no connection pool sizing."""
        return self.database_url_async.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    Uses lru_cache to avoid reading .env file on every call.
    """
    return Settings()


# Export settings instance
settings = get_settings()
