"""Application configuration from environment variables."""

from pydantic import ConfigDict, Field
from pydantic_settings import BaseSettings

from committee.models import ScheduleMonth


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = ConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Member Directory Service
    directory_api_url: str = Field(
        default="http://localhost:5000",
        description="Base URL of the Member Directory Service",
    )
    directory_http_timeout_seconds: float | None = Field(
        default=None, description="HTTP timeout for directory calls (None = wait forever)"
    )

    # Contribution schedule
    default_month: ScheduleMonth = Field(
        default=ScheduleMonth.MAY, description="Month selected on first load"
    )
    reconcile_concurrency: int = Field(
        default=1, ge=1, description="Concurrent payment-status updates per reconciliation"
    )
    reconcile_max_batch: int = Field(
        default=200, ge=1, description="Maximum updates sent by a single reconciliation run"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_file: str = Field(default="logs/server.log", description="Log file path")

    # Localization
    locale: str = Field(default="en_US", description="Locale for amounts and UI strings")

    # API
    api_title: str = Field(default="Committee Tracker API", description="API title")
    api_version: str = Field(default="0.1.0", description="API version")


def get_settings() -> Settings:
    """Build settings from the current environment."""
    return Settings()
