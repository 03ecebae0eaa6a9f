"""
Configuration management for the Rexera workflow API.

Every field reads from the environment variable of the same name in upper
case (``SKIP_AUTH``, ``N8N_API_KEY``...) or from a local ``.env`` file.
"""

from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Application
    app_name: str = "Rexera API"
    debug: bool = False
    environment: str = "development"

    # HTTP server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    api_workers: int = 1
    cors_origins: str = "*"

    # Database
    database_url: str = "sqlite:///./rexera.db"
    db_pool_size: int = 10
    db_max_overflow: int = 20

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    # Supabase auth
    skip_auth: bool = False
    supabase_jwt_secret: str = ""
    jwt_audience: str = "authenticated"

    cron_secret: Optional[str] = None

    # n8n
    n8n_base_url: str = ""
    n8n_api_key: str = ""
    n8n_payoff_workflow_id: Optional[str] = None
    n8n_webhook_url: Optional[str] = None
    n8n_timeout_seconds: float = 30.0

    @property
    def cors_origin_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
