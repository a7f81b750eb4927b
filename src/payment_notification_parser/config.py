"""Configuration management for the payment notification parser.

This module handles application configuration using Pydantic settings.
Configuration can be loaded from environment variables or .env files.
"""

from decimal import Decimal
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from payment_notification_parser.parsing.sources import APP_ID_SOURCES


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with
    the PAYNOTE_ prefix (e.g., PAYNOTE_NOTIFICATION_LISTENER_ENABLED).
    List settings are read as JSON arrays.
    """

    model_config = SettingsConfigDict(
        env_prefix="PAYNOTE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Listener Configuration
    notification_listener_enabled: bool = Field(
        default=True,
        description="Feature flag gating whether posted notifications are parsed at all",
    )
    allowed_packages: list[str] = Field(
        default_factory=lambda: sorted(APP_ID_SOURCES),
        description="Application identifiers whose notifications are inspected",
    )
    worker_count: int = Field(
        default=4,
        ge=1,
        description="Number of worker threads used by the listener to run parses",
    )

    # Parser Configuration
    extra_payment_keywords: list[str] = Field(
        default_factory=list,
        description="Additional phrases that mark a notification as payment related",
    )
    extra_income_keywords: list[str] = Field(
        default_factory=list,
        description="Additional phrases that mark a transaction as income",
    )
    extra_expense_keywords: list[str] = Field(
        default_factory=list,
        description="Additional phrases that mark a transaction as expense",
    )
    max_amount: Decimal = Field(
        default=Decimal("1000000"),
        gt=0,
        description="Amounts at or above this value are treated as non-monetary numbers",
    )

    # Event Channel Configuration
    event_buffer_capacity: int = Field(
        default=10,
        ge=1,
        description="Per-subscriber buffer size before the oldest payment event is dropped",
    )

    # Application Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
