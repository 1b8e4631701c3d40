"""Specialized settings adapters for the availability engine."""

from __future__ import annotations

from app.core.config import get_settings
from app.services.availability_engine import AvailabilityConfig


def get_availability_config(timezone: str | None = None) -> AvailabilityConfig:
    """Return engine configuration, optionally pinned to another timezone."""

    settings = get_settings()
    return AvailabilityConfig(
        timezone=timezone or settings.booking_timezone,
        default_slot_duration_minutes=settings.booking_default_slot_minutes,
    )
