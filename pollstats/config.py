"""Application configuration management using Pydantic Settings.

This module loads and validates environment variables using Pydantic Settings.
All configuration is loaded from environment variables or a .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Attributes:
        database_url: PostgreSQL connection string
        database_pool_size: Number of connections to maintain in pool
        database_max_overflow: Maximum overflow connections beyond pool_size
        database_connect_timeout: Seconds to wait when connecting or checking out a connection
        redis_url: Redis connection string (cache disabled when unset)
        redis_socket_timeout: Socket timeout for cache operations in seconds
        slack_webhook_url: Incoming webhook for chat alerts (no-op when unset)
        email_user: SMTP username for alert emails (no-op when unset)
        email_password: SMTP password for alert emails
        high_value_price_threshold: Monthly price above which a response is high value
        environment: Application environment (development, staging, production)
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        port: Port the HTTP server listens on
        allowed_origins: List of allowed CORS origins
    """

    # Database Configuration
    database_url: str = Field(
        description="PostgreSQL connection string"
    )
    database_pool_size: int = Field(
        default=5,
        description="Number of database connections in pool"
    )
    database_max_overflow: int = Field(
        default=10,
        description="Maximum overflow connections beyond pool size"
    )
    database_connect_timeout: int = Field(
        default=10,
        description="Seconds to wait for a new database connection or a pooled one"
    )

    # Cache Configuration
    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection string for the aggregate cache"
    )
    redis_socket_timeout: float = Field(
        default=2.0,
        description="Socket timeout in seconds for cache operations"
    )
    stats_cache_ttl: int = Field(
        default=3600,
        description="Expiry in seconds of the cached aggregate stats"
    )
    analytics_cache_ttl: int = Field(
        default=300,
        description="Expiry in seconds of the cached analytics snapshot"
    )
    daily_counter_ttl: int = Field(
        default=86400,
        description="Expiry in seconds of the per-day submission counter"
    )
    analytics_window_days: int = Field(
        default=30,
        description="Trailing window in days covered by the analytics snapshot"
    )

    # Chat Notification Configuration
    slack_webhook_url: Optional[str] = Field(
        default=None,
        description="Incoming webhook URL for chat alerts"
    )
    slack_channel: str = Field(
        default="#general",
        description="Channel that receives submission alerts"
    )
    slack_username: str = Field(
        default="VendFinder Poll Bot",
        description="Display name used for chat alerts"
    )
    slack_icon_emoji: str = Field(
        default=":bar_chart:",
        description="Icon used for chat alerts"
    )
    webhook_timeout: float = Field(
        default=10.0,
        description="Timeout in seconds for chat webhook calls"
    )

    # Email Notification Configuration
    email_user: Optional[str] = Field(
        default=None,
        description="SMTP username"
    )
    email_password: Optional[str] = Field(
        default=None,
        description="SMTP password"
    )
    email_smtp_host: str = Field(
        default="smtp.gmail.com",
        description="SMTP server host"
    )
    email_smtp_port: int = Field(
        default=587,
        description="SMTP server port (STARTTLS)"
    )
    email_sender: str = Field(
        default="VendFinder Poll System <noreply@vendfinder.com>",
        description="From header of alert emails"
    )
    email_recipient: str = Field(
        default="alerts@vendfinder.com",
        description="Inbox that receives alert emails"
    )

    # Notification Rules
    high_value_price_threshold: int = Field(
        default=20,
        description="Monthly price strictly above which a response is high value"
    )

    # Application Configuration
    environment: str = Field(
        default="development",
        description="Application environment"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    port: int = Field(
        default=3000,
        description="Port the HTTP server listens on"
    )
    allowed_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = {"development", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v_upper

    @field_validator("redis_url", "slack_webhook_url", "email_user", "email_password")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty environment values as unset."""
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("redis_url", "slack_webhook_url")
    @classmethod
    def strip_url(cls, v: Optional[str]) -> Optional[str]:
        """Drop surrounding whitespace, such as the newline of a mounted secret file."""
        return v.strip() if v is not None else v

    def get_allowed_origins_list(self) -> List[str]:
        """Parse allowed_origins string into a list."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def email_configured(self) -> bool:
        """Check if SMTP credentials are present."""
        return bool(self.email_user and self.email_password)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton

    Note:
        Uses lru_cache to ensure settings are only loaded once
        and shared across the application.
    """
    return Settings()
