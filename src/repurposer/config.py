"""Pydantic settings for application configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection settings."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = Field(
        default="sqlite+aiosqlite:///./repurposer.db",
        description="SQLAlchemy async database URL",
    )
    pool_size: int = Field(
        default=5,
        ge=1,
        le=100,
        description="Connection pool size (ignored for SQLite)",
    )
    max_overflow: int = Field(
        default=10,
        ge=0,
        le=100,
        description="Max connections beyond pool size (ignored for SQLite)",
    )
    echo: bool = Field(
        default=False,
        description="Echo SQL statements",
    )


class YouTubeSettings(BaseSettings):
    """YouTube Data API settings."""

    model_config = SettingsConfigDict(env_prefix="YOUTUBE_")

    api_key: str = Field(
        default="",
        description="YouTube Data API key",
    )
    base_url: str = Field(
        default="https://www.googleapis.com/youtube/v3",
        description="YouTube Data API base URL",
    )
    cache_ttl_seconds: int = Field(
        default=1800,
        ge=0,
        description="How long cached API responses stay fresh",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for YouTube API calls in seconds",
    )


class JobRunnerSettings(BaseSettings):
    """Apify actor settings used for transcript scraping."""

    model_config = SettingsConfigDict(env_prefix="APIFY_")

    token: str = Field(
        default="",
        description="Apify API token",
    )
    base_url: str = Field(
        default="https://api.apify.com/v2",
        description="Apify API base URL",
    )
    actor_id: str = Field(
        default="CTQcdDtqW5dvELvur",
        description="Actor that scrapes YouTube transcripts",
    )
    poll_interval_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Delay between run status polls",
    )
    max_poll_attempts: int = Field(
        default=600,
        ge=1,
        description="Status polls before a run is given up on",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP timeout for Apify calls in seconds",
    )


class OpenAISettings(BaseSettings):
    """OpenAI API settings."""

    model_config = SettingsConfigDict(env_prefix="OPENAI_")

    api_key: str = Field(
        default="",
        description="OpenAI API key",
    )
    base_url: str | None = Field(
        default=None,
        description="Override for OpenAI-compatible endpoints",
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Model used for content generation",
    )
    max_tokens: int = Field(
        default=4096,
        ge=1,
        description="Max tokens for completion",
    )
    temperature: float = Field(
        default=0.7,
        ge=0,
        le=2,
        description="Temperature for completion",
    )


class UsageSettings(BaseSettings):
    """Token metering settings."""

    model_config = SettingsConfigDict(env_prefix="USAGE_")

    default_plan_name: str = Field(
        default="Free",
        description="Plan name reported for users without a subscription",
    )
    default_allowance: int = Field(
        default=10000,
        ge=0,
        description="Monthly tokens for users without a subscription",
    )
    policy: Literal["advisory", "enforce"] = Field(
        default="advisory",
        description="Whether exceeding the allowance is logged or rejected",
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    json_format: bool = Field(
        default=True,
        description="Use JSON format for logs",
    )


class APISettings(BaseSettings):
    """API server settings."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="API server port",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:5173"],
        description="Allowed CORS origins",
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="",
        env_nested_delimiter="__",
    )

    service_name: str = Field(
        default="content-repurposer",
        description="Service name for logging",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    youtube: YouTubeSettings = Field(default_factory=YouTubeSettings)
    apify: JobRunnerSettings = Field(default_factory=JobRunnerSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    usage: UsageSettings = Field(default_factory=UsageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    api: APISettings = Field(default_factory=APISettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        The application settings.
    """
    return Settings()


def refresh_settings() -> Settings:
    """Clear settings cache and return fresh settings.

    Returns:
        Fresh application settings.
    """
    get_settings.cache_clear()
    return get_settings()
