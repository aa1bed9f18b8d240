"""Application configuration using pydantic-settings."""

from datetime import time
from functools import lru_cache
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "rainwake"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Redis
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (durable key-value store)",
    )

    # Calendar
    timezone: str = Field(
        default="Asia/Seoul",
        description="Reference timezone for calendar dates and times of day",
    )

    # Weather
    weather_base_url: str = Field(
        default="https://api.open-meteo.com/",
        description="Open-Meteo API base URL",
    )
    weather_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Forecast request timeout in seconds",
    )
    forecast_days: int = Field(default=2, ge=1, le=16, description="Forecast days to request")
    forecast_cache_ttl_hours: int = Field(
        default=6,
        ge=1,
        description="Forecast cache validity in hours",
    )

    # Location
    location_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Timeout for a live location fix",
    )
    device_latitude: float | None = Field(default=None, description="Device latitude")
    device_longitude: float | None = Field(default=None, description="Device longitude")
    device_location_name: str | None = Field(default=None, description="Place name of the device location")

    # Alarms
    inexact_buffer_minutes: int = Field(
        default=10,
        ge=0,
        description="Minutes an inexact alarm is moved earlier",
    )
    pre_check_offset_minutes: int = Field(
        default=60,
        ge=1,
        description="Minutes before the notification time the pre-check alarm fires",
    )
    exact_alarms_allowed: bool = Field(
        default=True,
        description="Whether the local alarm manager grants exact wake-ups",
    )

    # Periodic re-checks
    recheck_times: list[time] = Field(
        default_factory=lambda: [time(0, 0), time(4, 0), time(12, 0), time(21, 0)],
        description="Times of day for the coarse periodic weather check",
    )
    recheck_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Maximum attempts per periodic weather check",
    )
    recheck_retry_base_delay: float = Field(
        default=30.0,
        ge=0,
        description="Base delay in seconds for periodic check retries",
    )

    # Failure / duplicate policy
    failure_threshold: int = Field(
        default=3,
        ge=1,
        description="Consecutive failures before a failure notification is shown",
    )
    duplicate_suppression_enabled: bool = Field(
        default=True,
        description="Skip the precipitation notification if one was shown today",
    )

    # Notification
    notification_webhook_url: str = Field(
        default="",
        description="Webhook receiving rendered notifications",
    )
    notification_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Webhook request timeout in seconds",
    )

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
