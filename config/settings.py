"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
List values (keywords, statuses) are read from env as JSON arrays,
e.g. DROP_ACTION_KEYWORDS='["הורדה", "הצבה"]'.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, model_validator
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
    )

    # ===================
    # SHEETS BACKEND
    # ===================
    sheets_script_url: Optional[str] = Field(
        None,
        description="Google Apps Script web app deployment URL"
    )
    sheets_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="HTTP timeout per request to the Apps Script backend"
    )
    sheets_max_retries: int = Field(
        default=5,
        ge=0,
        le=10,
        description="Retries after the first failed request"
    )
    sheets_retry_base_delay_ms: int = Field(
        default=100,
        ge=0,
        le=10000,
        description="Base delay for exponential backoff (2^attempt * base)"
    )

    # ===================
    # ACTION TYPE VOCABULARY
    # ===================
    drop_action_keywords: list[str] = Field(
        default=["הורדה", "הצבה"],
        description="Substrings marking an action type as a container drop"
    )
    pickup_action_keywords: list[str] = Field(
        default=["העלאה", "הוצאה"],
        description="Substrings marking an action type as a container pickup"
    )

    # ===================
    # STATUS VOCABULARY
    # ===================
    active_statuses: list[str] = Field(
        default=["פעיל", "פתוח", "ממתין/לא תקין", "חורג"],
        description="Raw status values meaning the order is still open"
    )
    closed_statuses: list[str] = Field(
        default=["סגור"],
        description="Raw status values meaning the order is closed"
    )
    overdue_status_label: str = Field(
        default="overdue",
        description="Status assigned to active orders past the overdue threshold"
    )
    new_order_status: str = Field(
        default="פתוח",
        description="Raw status given to new and duplicated orders"
    )
    overdue_raw_statuses: list[str] = Field(
        default=["חורג"],
        description="Raw status values already marking an order overdue in the sheet"
    )

    # ===================
    # ALERT THRESHOLDS
    # ===================
    overdue_threshold_days: int = Field(
        default=21,
        ge=1,
        le=365,
        description="Days in use after which an active order is overdue"
    )
    alert_soft_days: int = Field(
        default=10,
        ge=0,
        le=365,
        description="Days in use to trigger a SOFT alert"
    )
    alert_warning_days: int = Field(
        default=14,
        ge=0,
        le=365,
        description="Days in use to trigger a WARNING alert"
    )
    alert_critical_days: int = Field(
        default=21,
        ge=0,
        le=365,
        description="Days in use to trigger a CRITICAL alert"
    )
    expected_end_upcoming_days: int = Field(
        default=7,
        ge=0,
        le=60,
        description="Look-ahead window for expected end dates about to pass"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )
    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://localhost:5173",
            "https://script.google.com",
        ],
        description="Origins allowed to call the API (dashboard, Apps Script sidebar)"
    )

    @model_validator(mode="after")
    def check_alert_thresholds(self) -> "Settings":
        """Alert thresholds must be non-decreasing: soft <= warning <= critical."""
        if not (self.alert_soft_days <= self.alert_warning_days <= self.alert_critical_days):
            raise ValueError(
                "alert thresholds must satisfy soft <= warning <= critical"
            )
        return self

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def sheets_configured(self) -> bool:
        """Check if the Apps Script backend URL is set."""
        return bool(self.sheets_script_url)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
