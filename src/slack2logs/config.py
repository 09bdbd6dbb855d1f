"""Configuration management for slack2logs.

Uses pydantic-settings for environment variable validation and type safety.
All configuration is loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from typing import Annotated, Any, Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class SlackSettings(BaseSettings):
    """Slack API and collection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SLACK_",
        extra="ignore",
    )

    bot_token: SecretStr = Field(
        ...,
        description="Bot user OAuth token for the workspace (xoxb-...)",
    )
    app_token: SecretStr | None = Field(
        default=None,
        description="App-level token for Socket Mode (xapp-...), required for live mode",
    )
    channels: Annotated[list[str], NoDecode] = Field(
        ...,
        description="Comma-separated channel IDs to collect messages from",
    )
    batch_flush_interval: float = Field(
        default=10.0,
        gt=0,
        description="Interval in seconds for flushing buffered live messages",
    )
    history_page_size: int = Field(
        default=500,
        ge=1,
        le=1000,
        description="Number of messages requested per history or replies page",
    )
    rate_limit_retry_delay: float = Field(
        default=10.0,
        ge=0,
        description="Delay in seconds before retrying a rate-limited page",
    )
    channel_capacity: int = Field(
        default=1,
        ge=1,
        description="Capacity of the record and thread queues",
    )

    @field_validator("bot_token")
    @classmethod
    def validate_bot_token(cls, v: SecretStr) -> SecretStr:
        """Validate that bot token has correct prefix."""
        token = v.get_secret_value()
        if not token.startswith("xoxb-"):
            raise ValueError("Bot token must start with 'xoxb-'")
        return v

    @field_validator("app_token")
    @classmethod
    def validate_app_token(cls, v: SecretStr | None) -> SecretStr | None:
        """Validate that app token has correct prefix."""
        if v is None:
            return v
        token = v.get_secret_value()
        if not token.startswith("xapp-"):
            raise ValueError("App token must start with 'xapp-'")
        return v

    @field_validator("channels", mode="before")
    @classmethod
    def split_channels(cls, v: Any) -> Any:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    @field_validator("channels")
    @classmethod
    def validate_channels(cls, v: list[str]) -> list[str]:
        """Require at least one channel to listen to."""
        if not v:
            raise ValueError("At least one slack channel should be defined")
        return v


class VictoriaLogsSettings(BaseSettings):
    """VictoriaLogs delivery configuration."""

    model_config = SettingsConfigDict(
        env_prefix="VMLOGS_",
        extra="ignore",
    )

    addr: str = Field(
        default="http://localhost:9428",
        description="VictoriaLogs address to perform import requests",
    )
    user: str = Field(
        default="",
        description="Username for VictoriaLogs HTTP server's basic auth",
    )
    password: SecretStr | None = Field(
        default=None,
        description="Password for VictoriaLogs HTTP server's basic auth",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Timeout in seconds for a single import request",
    )

    @model_validator(mode="after")
    def validate_basic_auth(self) -> "VictoriaLogsSettings":
        """A password without a username cannot build a basic auth header."""
        if self.password is not None and self.password.get_secret_value() and not self.user:
            raise ValueError("missing `username` for basic authorization")
        return self


class AppSettings(BaseSettings):
    """Application-level configuration."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    log_format: Literal["json", "console"] = Field(
        default="console",
        alias="LOG_FORMAT",
        description="Log output format: 'json' for production, 'console' for development",
    )
    run_mode: Literal["live", "backfill"] = Field(
        default="live",
        alias="RUN_MODE",
        description="Collect live events or backfill channel history",
    )
    app_name: str = Field(
        default="slack2logs",
        description="Application name for logging and identification",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )
    http_host: str = Field(
        default="0.0.0.0",
        alias="HTTP_LISTEN_HOST",
        description="Host to bind the metrics and health server",
    )
    http_port: int = Field(
        default=8420,
        alias="HTTP_LISTEN_PORT",
        description="Port to bind the metrics and health server",
    )
    http_max_graceful_shutdown: float = Field(
        default=3.0,
        alias="HTTP_MAX_GRACEFUL_SHUTDOWN",
        description="Maximum duration in seconds for a graceful HTTP server shutdown",
    )


class Settings(BaseSettings):
    """Main settings class that aggregates all configuration sections.

    Usage:
        from slack2logs.config import get_settings

        settings = get_settings()
        channels = settings.slack.channels
        vmlogs_addr = settings.vmlogs.addr
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    slack: SlackSettings = Field(default_factory=SlackSettings)
    vmlogs: VictoriaLogsSettings = Field(default_factory=VictoriaLogsSettings)
    app: AppSettings = Field(default_factory=AppSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload settings if needed.

    Returns:
        Settings: The application settings instance.
    """
    return Settings()
