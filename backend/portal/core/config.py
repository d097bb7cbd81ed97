"""Module: config."""

from functools import lru_cache

from pydantic_settings import BaseSettings

# Centralized runtime configuration loaded from environment variables.
class Settings(BaseSettings):
    # Primary SQLAlchemy connection string for the portal database.
    database_url: str
    # Base URL of the hosted auth provider (Supabase project URL).
    supabase_url: str = "http://localhost:54321"
    # Service-role key used for admin calls against the auth provider.
    supabase_service_role_key: str = ""
    # Per-request timeout for auth provider calls, in seconds.
    auth_timeout_seconds: float = 10.0
    # Browser origins allowed to call the admin endpoint.
    cors_allow_origins: list[str] = ["*"]
    log_level: str = "INFO"
    # Local/dev convenience: create modelled tables at startup instead of running Alembic.
    create_tables_on_startup: bool = False

    # Configure pydantic-settings to also load values from local .env file.
    class Config:
        env_file = ".env"


# Settings are read once per process and shared by app modules at runtime.
@lru_cache
def get_settings() -> Settings:
    return Settings()
