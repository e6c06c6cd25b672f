"""
Centralized configuration with environment variable overrides.

Operating hours, slot granularity, conflict semantics and page sizes are
configurable here. Nothing is hardcoded in the scheduling logic.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from petcare_scheduling.logging_context import install_request_id_filter

load_dotenv()

logger = logging.getLogger(__name__)

CONFLICT_MODES = ("exact", "overlap")


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_time(env_var: str, default: str) -> time:
    """Parse an HH:MM clock time from an env var."""
    raw = os.getenv(env_var, default)
    try:
        return datetime.strptime(raw.strip(), "%H:%M").time()
    except (ValueError, TypeError, AttributeError):
        raise ValueError(
            f"Invalid HH:MM time for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class SchedulingConfig:
    """Offering window and conflict rules for the slot generator and resolver."""

    open_time: time = _safe_time("SCHEDULING_OPEN_TIME", "09:00")
    close_time: time = _safe_time("SCHEDULING_CLOSE_TIME", "18:00")
    slot_granularity_minutes: int = _safe_int("SLOT_GRANULARITY_MINUTES", "60")
    booking_horizon_days: int = _safe_int("BOOKING_HORIZON_DAYS", "14")
    conflict_mode: str = os.getenv("CONFLICT_MODE", "exact").strip().lower()
    timezone: str = os.getenv("SCHEDULING_TIMEZONE", "").strip()


@dataclass(frozen=True)
class CalendarConfig:
    """Calendar and booking list presentation settings."""

    bookings_per_page: int = _safe_int("BOOKINGS_PER_PAGE", "6")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    calendar: CalendarConfig = field(default_factory=CalendarConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    service_name: str = os.getenv("SERVICE_NAME", "petcare-scheduling")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    sched = config.scheduling
    if sched.close_time < sched.open_time:
        raise ValueError(
            "SCHEDULING_CLOSE_TIME must not be earlier than SCHEDULING_OPEN_TIME, "
            f"got {sched.open_time:%H:%M}-{sched.close_time:%H:%M}"
        )
    if sched.slot_granularity_minutes < 1:
        raise ValueError(
            f"SLOT_GRANULARITY_MINUTES must be >= 1, got {sched.slot_granularity_minutes}"
        )
    if sched.booking_horizon_days < 1:
        raise ValueError(
            f"BOOKING_HORIZON_DAYS must be >= 1, got {sched.booking_horizon_days}"
        )
    if sched.conflict_mode not in CONFLICT_MODES:
        raise ValueError(
            f"CONFLICT_MODE must be one of {CONFLICT_MODES}, got {sched.conflict_mode!r}"
        )
    if sched.timezone:
        try:
            ZoneInfo(sched.timezone)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(
                f"SCHEDULING_TIMEZONE is not a known IANA zone: {sched.timezone!r}"
            ) from None
    if config.calendar.bookings_per_page < 1:
        raise ValueError(
            f"BOOKINGS_PER_PAGE must be >= 1, got {config.calendar.bookings_per_page}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] [%(request_id)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    install_request_id_filter(logging.getLogger().handlers)
    logger.info(
        "Configuration loaded for '%s' (window %s-%s every %d min, %s conflicts)",
        config.service_name,
        config.scheduling.open_time.strftime("%H:%M"),
        config.scheduling.close_time.strftime("%H:%M"),
        config.scheduling.slot_granularity_minutes,
        config.scheduling.conflict_mode,
    )
    return config


# Singleton instance
settings = load_config()
