"""Application configuration."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Service
    app_name: str = "Action Intent Engine"
    log_level: str = "INFO"

    # Menu
    menu_file: Optional[str] = None  # YAML catalog used when a request carries no menu

    # Confidence scoring
    history_window: int = 20  # Rolling outcomes kept per session
    neutral_accuracy: float = 0.7  # Historical accuracy for sessions without outcomes
    history_idle_minutes: int = 120  # Sessions with no outcome for this long are forgotten

    # Confirmation protocol
    action_ttl_minutes: int = 30
    cleanup_interval_seconds: float = 300  # How often expired actions and idle sessions are swept

    # Recommendations
    max_recommendations: int = 3

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


settings = Settings()
