# backend/tn_scheduler/config.py
from functools import lru_cache
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import (
    COMPLETION_API_URL,
    COMPLETION_MODEL,
    COMPLETION_TIMEOUT_SECONDS,
    DEFAULT_TIMEZONE,
    DEFINITIONS_FILENAME,
    EXECUTION_RESULTS_FILENAME,
    RESULT_RETENTION_DAYS,
    SMTP_TIMEOUT_SECONDS,
    WEATHER_API_URL,
    WEATHER_RETENTION_DAYS,
    WEATHER_SNAPSHOTS_FILENAME,
    WEATHER_TIMEOUT_SECONDS,
    WEBHOOK_TIMEOUT_SECONDS,
    YAHOO_WEATHER_API_URL,
)
from .enums import LogLevel


class Settings(BaseSettings):
    environment: str = "development"

    # ============= PATH CONFIGURATION =============
    # All record files live under data_directory

    data_directory: str = "./data"

    @property
    def data_path(self) -> Path:
        """Get data directory as Path object"""
        return Path(self.data_directory)

    @property
    def definitions_file(self) -> Path:
        return self.data_path / DEFINITIONS_FILENAME

    @property
    def execution_results_file(self) -> Path:
        return self.data_path / EXECUTION_RESULTS_FILENAME

    @property
    def weather_snapshots_file(self) -> Path:
        return self.data_path / WEATHER_SNAPSHOTS_FILENAME

    def ensure_directories(self) -> None:
        """Create the data directory if it doesn't exist"""
        self.data_path.mkdir(parents=True, exist_ok=True)

    # Scheduling
    timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        description="IANA timezone used for naive inputs and cron evaluation",
    )

    # Logging
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    log_file: Optional[str] = Field(
        default=None, description="Log file path (optional)"
    )

    # Webhook delivery
    webhook_url: Optional[str] = Field(
        default=None, description="Endpoint receiving reminder webhooks"
    )
    webhook_timeout_seconds: float = Field(
        default=WEBHOOK_TIMEOUT_SECONDS, gt=0, le=120
    )

    # Email delivery
    smtp_host: Optional[str] = None
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_secure: bool = Field(
        default=False, description="Use implicit TLS (SMTP_SSL) instead of STARTTLS"
    )
    smtp_user: Optional[str] = None
    smtp_pass: Optional[str] = None
    email_to: Optional[str] = None
    smtp_timeout_seconds: float = Field(default=SMTP_TIMEOUT_SECONDS, gt=0, le=120)

    @property
    def email_configured(self) -> bool:
        """Email transport exists only when host and credentials are all set"""
        return bool(self.smtp_host and self.smtp_user and self.smtp_pass)

    # Text completion
    completion_api_key: Optional[str] = Field(
        default=None, description="API key for the text-completion service"
    )
    completion_api_url: str = COMPLETION_API_URL
    completion_model: str = COMPLETION_MODEL
    completion_timeout_seconds: float = Field(
        default=COMPLETION_TIMEOUT_SECONDS, gt=0, le=300
    )

    # Weather polling (optional)
    weather_api_key: Optional[str] = None
    weather_api_url: str = WEATHER_API_URL
    yahoo_weather_api_key: Optional[str] = None
    yahoo_weather_api_url: str = YAHOO_WEATHER_API_URL
    weather_timeout_seconds: float = Field(
        default=WEATHER_TIMEOUT_SECONDS, gt=0, le=120
    )

    # Retention
    weather_retention_days: int = Field(default=WEATHER_RETENTION_DAYS, ge=1)
    result_retention_days: int = Field(default=RESULT_RETENTION_DAYS, ge=1)

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v) -> LogLevel:
        """Validate log level is one of the allowed values"""
        if isinstance(v, LogLevel):
            return v
        allowed_levels = LogLevel.__members__.keys()
        v_upper = str(v).upper()
        if v_upper not in allowed_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: {', '.join(allowed_levels)}"
            )
        return LogLevel[v_upper]

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values"""
        allowed_envs = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in allowed_envs:
            raise ValueError(
                f"Invalid environment '{v}'. Must be one of: {', '.join(allowed_envs)}"
            )
        return v_lower

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone '{v}'") from e
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, built on first use."""
    return Settings()
