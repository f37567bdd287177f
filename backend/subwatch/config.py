"""
Application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Subwatch"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/db.sqlite"

    # Manual subscription path (empty string disables it)
    subscription_tag: str = "subscriptions"

    # Detection tuning
    interval_consistency_tolerance: float = 0.5  # stddev must stay below avg * tolerance
    similarity_threshold: float = 0.7  # Jaro-Winkler score a description must exceed
    min_occurrences: int = 3
    min_interval_days: int = 5
    max_interval_days: int = 400
    stale_floor_days: int = 90
    manual_default_interval_days: int = 30

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()
