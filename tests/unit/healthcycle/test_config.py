"""
Tests for configuration management in `healthcycle/config.py`.

Covers:
- Environment parsing and debug defaults
- Logging level coercion to the expected Literal
- Scheduling and batch overrides
- Timezone validation and today()
- get_config cache behavior
- AppConfig validation (debug only allowed in development)
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from healthcycle.config import (
    AppConfig,
    LoggingConfig,
    SchedulingConfig,
    get_config,
    load_config_from_env,
    today,
)
from healthcycle.observability import configure_logging


@pytest.fixture(autouse=True)
def clear_config_cache() -> Iterator[None]:
    """Ensure get_config cache is cleared before and after each test."""
    get_config.cache_clear()
    yield
    get_config.cache_clear()


def test_load_config_dev_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")
    for name in ("LOG_LEVEL", "SCHEDULE_TIMEZONE", "PROJECTION_HORIZON_DAYS"):
        monkeypatch.delenv(name, raising=False)

    config = load_config_from_env()

    assert config.environment == "development"
    assert config.debug is True
    assert config.logging.format == "console"
    assert config.scheduling.timezone == "Asia/Seoul"
    assert config.scheduling.projection_horizon_days == 365


def test_production_uses_json_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "prod")

    config = load_config_from_env()

    assert config.environment == "production"
    assert config.debug is False
    assert config.logging.format == "json"


def test_scheduling_and_batch_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SCHEDULE_TIMEZONE", "UTC")
    monkeypatch.setenv("PROJECTION_HORIZON_DAYS", "90")
    monkeypatch.setenv("DEFAULT_REMINDER_DAYS_BEFORE", "3")
    monkeypatch.setenv("UPCOMING_WINDOW_DAYS", "14")
    monkeypatch.setenv("BATCH_MAX_CONCURRENT_ITEMS", "4")
    monkeypatch.setenv("BATCH_ITEM_TIMEOUT_SECONDS", "2.5")

    config = load_config_from_env()

    assert config.scheduling.timezone == "UTC"
    assert config.scheduling.projection_horizon_days == 90
    assert config.scheduling.default_reminder_days_before == 3
    assert config.scheduling.upcoming_window_days == 14
    assert config.batch.max_concurrent_items == 4
    assert config.batch.item_timeout_seconds == 2.5


def test_invalid_horizon_fails_fast(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROJECTION_HORIZON_DAYS", "0")
    with pytest.raises(ValueError):
        load_config_from_env()


def test_unknown_timezone_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown timezone"):
        SchedulingConfig(timezone="Mars/Olympus_Mons")


def test_logging_level_literal_coercion(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "staging")

    monkeypatch.setenv("LOG_LEVEL", "unknown")
    assert load_config_from_env().logging.level == "INFO"

    monkeypatch.setenv("LOG_LEVEL", "error")
    assert load_config_from_env().logging.level == "ERROR"


def test_get_config_cache(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ENVIRONMENT", "development")

    c1 = get_config()
    c2 = get_config()
    assert c1 is c2


def test_today_uses_given_timezone() -> None:
    expected = datetime.now(ZoneInfo("Pacific/Kiritimati")).date()
    result = today("Pacific/Kiritimati")
    assert isinstance(result, date)
    # Allow for a date rollover between the two calls
    assert (result - expected).days in (0, 1)


def test_app_config_debug_only_in_dev_validation() -> None:
    with pytest.raises(ValueError, match="debug mode is only allowed"):
        AppConfig(environment="production", debug=True)


def test_configure_logging_accepts_both_formats() -> None:
    configure_logging(LoggingConfig(format="console", level="DEBUG"))
    configure_logging(LoggingConfig(format="json", level="INFO"))
