import logging
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    # Upstream Configuration
    upstream_kind: Literal["html", "api"] = Field(
        "html",
        description="Shape of the upstream source: 'html' scrapes the matches page, 'api' reads a JSON match list.",
    )
    upstream_url: str = Field(
        "https://www.hltv.org/matches",
        description="URL fetched once per team per cycle (matches page or JSON endpoint).",
    )
    upstream_base_url: str = Field(
        "https://www.hltv.org",
        description="Base used to build absolute match links from relative hrefs.",
    )
    user_agent: str = Field(
        "EsportsMatchNotifier/1.0 (+https://example.com)",
        description="User-Agent header sent to the upstream source.",
    )
    fetch_timeout_seconds: float = Field(20.0, gt=0)
    fetch_max_attempts: int = Field(
        3, ge=1, description="Total attempts for one upstream fetch (1 = no retry)."
    )

    # Delivery Configuration
    delivery_timeout_seconds: float = Field(10.0, gt=0)
    delivery_max_attempts: int = Field(
        1, ge=1, description="Total attempts for one webhook delivery (1 = no retry)."
    )
    notification_style: Literal["content", "embed"] = Field(
        "content",
        description="'content' posts a plain message, 'embed' posts a Discord embed.",
    )

    # Polling Configuration
    poll_interval_minutes: float = Field(10.0, gt=0)
    poll_on_startup: bool = Field(
        False, description="Run one cycle immediately when the scheduler starts."
    )

    # Persistence
    state_file: str = Field(
        "esports_subscriptions.json",
        description="JSON file holding subscriptions and seen match ids.",
    )

    # HTTP API
    host: str = "0.0.0.0"
    port: int = Field(3000, ge=1, le=65535)

    # Logging Configuration
    log_level: str = Field(
        "INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."
    )

    # Pydantic Settings Configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


def load_settings() -> AppSettings:
    """Loads and validates application settings."""
    try:
        settings = AppSettings()
        log_level_upper = settings.log_level.upper()
        # Validate log_level even if loaded from .env
        if log_level_upper not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            logging.warning(
                f"Invalid LOG_LEVEL '{settings.log_level}' found in .env or default. Using INFO."
            )
            settings.log_level = "INFO"
        else:
            settings.log_level = log_level_upper
        return settings
    except Exception as e:
        logging.exception(f"Error loading application settings: {e}")
        raise SystemExit("Failed to load application settings. Exiting.")


settings: AppSettings = load_settings()
