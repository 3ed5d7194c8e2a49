"""
Centralized configuration with environment variable overrides.

Slotting defaults, booking limits and demo tenant settings are
configurable here. Nothing is hardcoded in scheduling or store logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from booking_engine.logging_context import configure_logging

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_bool(env_var: str, default: str) -> bool:
    """Parse a boolean flag from an env var (true/false, yes/no, 1/0)."""
    raw = os.getenv(env_var, default).strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"Invalid boolean for {env_var}: {raw!r}")


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation and booking composition settings."""

    buffer_at_interval_end: bool = _safe_bool("SLOT_BUFFER_AT_INTERVAL_END", "false")
    max_services_per_booking: int = _safe_int("MAX_SERVICES_PER_BOOKING", "10")
    min_slot_interval_minutes: int = _safe_int("MIN_SLOT_INTERVAL_MINUTES", "5")


@dataclass(frozen=True)
class DemoConfig:
    """Seed values for the in-memory demo tenant."""

    tenant_name: str = os.getenv("DEMO_TENANT_NAME", "Studio Bella Vista")
    open_time: str = os.getenv("DEMO_OPEN_TIME", "08:00")
    close_time: str = os.getenv("DEMO_CLOSE_TIME", "20:00")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    demo: DemoConfig = field(default_factory=DemoConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "booking-engine")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.scheduling.max_services_per_booking < 1:
        raise ValueError(
            "MAX_SERVICES_PER_BOOKING must be >= 1, "
            f"got {config.scheduling.max_services_per_booking}"
        )
    if config.scheduling.min_slot_interval_minutes < 1:
        raise ValueError(
            "MIN_SLOT_INTERVAL_MINUTES must be >= 1, "
            f"got {config.scheduling.min_slot_interval_minutes}"
        )

    for name, value in [
        ("DEMO_OPEN_TIME", config.demo.open_time),
        ("DEMO_CLOSE_TIME", config.demo.close_time),
    ]:
        hours, sep, minutes = value.partition(":")
        if not (sep and hours.isdigit() and minutes.isdigit()
                and 0 <= int(hours) <= 23 and 0 <= int(minutes) <= 59):
            raise ValueError(f"{name} must be HH:MM, got {value!r}")
    if config.demo.open_time >= config.demo.close_time:
        raise ValueError(
            f"DEMO_OPEN_TIME must be before DEMO_CLOSE_TIME, "
            f"got {config.demo.open_time} >= {config.demo.close_time}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    configure_logging(config.log_level)
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
