"""
Configuration management with environment variable support and validation.

Design principles:
- Environment-specific configs (dev, staging, prod)
- Validation at startup (fail fast)
- Type safety with Pydantic
- "Today" is always derived from one configured timezone
"""

import os
from datetime import date, datetime
from functools import lru_cache
from typing import Literal, cast
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Load environment variables from .env file
load_dotenv()


class SchedulingConfig(BaseModel):
    """Defaults applied by the scheduling engine."""

    timezone: str = Field(default="Asia/Seoul", description="IANA timezone used to derive today")
    projection_horizon_days: int = Field(
        default=365, gt=0, description="How far ahead service calendars are projected"
    )
    default_reminder_days_before: int = Field(
        default=7, ge=0, description="Reminder lead time for newly created services"
    )
    upcoming_window_days: int = Field(
        default=7, ge=0, description="Window used by upcoming-service queries and summaries"
    )

    @field_validator("timezone")
    def validate_timezone(cls, v):
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v


class BatchConfig(BaseModel):
    """Fan-out limits for population-wide recomputation."""

    max_concurrent_items: int = Field(
        default=8, gt=0, description="Maximum number of subjects computed at once"
    )
    item_timeout_seconds: float = Field(
        default=10.0, gt=0.0, description="Timeout for a single subject computation"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)
    batch: BatchConfig = Field(default_factory=BatchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    scheduling_config = SchedulingConfig(
        timezone=os.getenv("SCHEDULE_TIMEZONE", "Asia/Seoul"),
        projection_horizon_days=int(os.getenv("PROJECTION_HORIZON_DAYS", "365")),
        default_reminder_days_before=int(os.getenv("DEFAULT_REMINDER_DAYS_BEFORE", "7")),
        upcoming_window_days=int(os.getenv("UPCOMING_WINDOW_DAYS", "7")),
    )

    batch_config = BatchConfig(
        max_concurrent_items=int(os.getenv("BATCH_MAX_CONCURRENT_ITEMS", "8")),
        item_timeout_seconds=float(os.getenv("BATCH_ITEM_TIMEOUT_SECONDS", "10.0")),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        scheduling=scheduling_config,
        batch=batch_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def today(tz: str | None = None) -> date:
    """Current calendar date in the configured (or given) timezone."""
    zone = ZoneInfo(tz or get_config().scheduling.timezone)
    return datetime.now(zone).date()
