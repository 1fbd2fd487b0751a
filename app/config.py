"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Activity Log Store Configuration
    log_store_base_url: str = Field(
        default="http://localhost:3000/api",
        description="Base URL for the activity log store API"
    )
    log_store_api_key: str = Field(
        default="",
        description="API key for authentication against the log store"
    )
    log_store_timeout: float = Field(
        default=30.0,
        description="Request timeout in seconds for log store calls"
    )

    # Retry Configuration
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of retry attempts for API calls"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=1,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )

    # Yield History Parameters
    yield_activity_type: str = Field(
        default="yield_update",
        description="Activity type marking a log record as a yield change"
    )
    trend_daily_max_days: int = Field(
        default=31,
        description="Longest window (in days) charted with daily buckets"
    )
    trend_weekly_max_days: int = Field(
        default=180,
        description="Longest window (in days) charted with weekly buckets"
    )
    default_period: str = Field(
        default="30days",
        description="Preset used when no valid period or date range is given"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client"
    )

    # Application Settings
    app_name: str = Field(
        default="Orchard Yield History Service",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)


# Global settings instance
settings = Settings()
