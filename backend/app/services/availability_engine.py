"""Slot generation and double-booking checks for appointment calendars.

Everything in this module is pure: callers load weekly templates, date
exceptions and existing bookings, convert them into the dataclasses below
and pass an explicit ``AvailabilityConfig``. No database access happens here.

``has_overlap`` only answers for the snapshot it is handed. Inserting a
booking after a negative answer is safe only while the caller serializes
"check then insert" per calendar owner (see ``appointment_service``) or the
storage layer rejects overlapping rows itself.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from typing import Any, TypeAlias
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

DEFAULT_TIMEZONE = "Europe/Paris"
DEFAULT_SLOT_DURATION_MINUTES = 60

_TIME_OF_DAY = re.compile(r"([0-1]?[0-9]|2[0-3]):([0-5][0-9])")
_NON_BLOCKING_STATUSES = frozenset({"cancelled"})


class InvalidInputError(ValueError):
    """Raised when availability inputs cannot be interpreted."""


class InvalidIntervalError(InvalidInputError):
    """Raised when an interval does not start strictly before it ends."""


@dataclass(slots=True, frozen=True)
class AvailabilityConfig:
    """Calendar-wide knobs threaded into every entry point."""

    timezone: str = DEFAULT_TIMEZONE
    default_slot_duration_minutes: int = DEFAULT_SLOT_DURATION_MINUTES

    @property
    def tzinfo(self) -> ZoneInfo:
        return resolve_timezone(self.timezone)


@dataclass(slots=True, frozen=True)
class WeeklyTemplate:
    """Recurring weekday window; ``day_of_week`` uses 0 = Sunday.

    ``buffer_before`` and ``max_appointments`` are carried through to
    ``WeeklyRule`` but slot generation does not enforce them.
    """

    day_of_week: int
    start_time: str | time
    end_time: str | time
    slot_duration: int = DEFAULT_SLOT_DURATION_MINUTES
    buffer_before: int = 0
    buffer_after: int = 0
    max_appointments: int = 1
    is_active: bool = True


@dataclass(slots=True, frozen=True)
class DateException:
    """Override for a single calendar day."""

    date: date
    is_available: bool = False
    start_time: str | time | None = None
    end_time: str | time | None = None

    @property
    def overrides_hours(self) -> bool:
        return (
            self.is_available
            and self.start_time is not None
            and self.end_time is not None
            and self.start_time != ""
            and self.end_time != ""
        )


@dataclass(slots=True, frozen=True)
class ExistingBooking:
    """Already stored appointment; naive instants are read as UTC."""

    start_time: datetime
    end_time: datetime
    status: str = "confirmed"
    booking_id: Any = None

    @property
    def blocks(self) -> bool:
        return _status_value(self.status) not in _NON_BLOCKING_STATUSES


@dataclass(slots=True, frozen=True)
class GeneratedSlot:
    start_time: datetime
    end_time: datetime
    available: bool


@dataclass(slots=True, frozen=True)
class WeeklyRule:
    """Effective rule derived from an active weekly template."""

    start_minute: int
    end_minute: int
    duration_minutes: int
    buffer_after_minutes: int
    buffer_before_minutes: int = 0
    max_appointments: int = 1


@dataclass(slots=True, frozen=True)
class OverrideRule:
    """Effective rule synthesized from an exception's replacement hours."""

    start_minute: int
    end_minute: int
    duration_minutes: int
    buffer_after_minutes: int = 0
    max_appointments: int = 1


EffectiveRule: TypeAlias = WeeklyRule | OverrideRule


@dataclass(slots=True, frozen=True)
class DayResolution:
    """Rules that apply to one local day.

    ``closed`` is only set when an exception blocks the whole day, which lets
    callers tell "closed" apart from "nothing configured".
    """

    day: date
    rules: tuple[EffectiveRule, ...]
    closed: bool = False


def resolve_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError) as exc:
        raise InvalidInputError(f"Unknown timezone {name!r}") from exc


def parse_time_of_day(value: str | time) -> int:
    """Return minutes since local midnight for an ``HH:MM`` value."""
    if isinstance(value, time):
        return value.hour * 60 + value.minute
    if not isinstance(value, str):
        raise InvalidInputError(f"Expected an HH:MM string, got {value!r}")
    match = _TIME_OF_DAY.fullmatch(value.strip())
    if match is None:
        raise InvalidInputError(f"Invalid time of day {value!r}; expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def day_of_week(day: date) -> int:
    """Weekday index with Sunday as 0 and Saturday as 6."""
    return day.isoweekday() % 7


def _status_value(status: Any) -> str:
    return str(getattr(status, "value", status))


def _as_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def _as_local_date(value: date, tz: ZoneInfo) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(tz).date()
    return value


def _local_instant(day: date, minute: int, tz: ZoneInfo) -> datetime | None:
    """UTC instant of a local wall-clock minute, or ``None`` inside a DST gap."""
    wall_clock = datetime.combine(day, time(minute // 60, minute % 60), tzinfo=tz)
    instant = wall_clock.astimezone(UTC)
    if instant.astimezone(tz).replace(tzinfo=None) != wall_clock.replace(tzinfo=None):
        return None
    return instant


def _check_interval(start: datetime, end: datetime) -> tuple[datetime, datetime]:
    start_utc = _as_utc(start)
    end_utc = _as_utc(end)
    if start_utc >= end_utc:
        raise InvalidIntervalError("Interval start must be before its end")
    return start_utc, end_utc


def _blocking_windows(
    bookings: Iterable[ExistingBooking],
) -> list[tuple[datetime, datetime]]:
    return [
        (_as_utc(booking.start_time), _as_utc(booking.end_time))
        for booking in bookings
        if booking.blocks
    ]


def _weekly_rule(template: WeeklyTemplate) -> WeeklyRule:
    if template.slot_duration <= 0:
        raise InvalidInputError("Slot duration must be positive")
    if template.buffer_after < 0 or template.buffer_before < 0:
        raise InvalidInputError("Buffers cannot be negative")
    return WeeklyRule(
        start_minute=parse_time_of_day(template.start_time),
        end_minute=parse_time_of_day(template.end_time),
        duration_minutes=template.slot_duration,
        buffer_after_minutes=template.buffer_after,
        buffer_before_minutes=template.buffer_before,
        max_appointments=template.max_appointments,
    )


def find_exception(
    day: date,
    exceptions: Iterable[DateException],
    *,
    config: AvailabilityConfig | None = None,
) -> DateException | None:
    """Return the first exception recorded for ``day``."""
    tz = (config or AvailabilityConfig()).tzinfo
    target = _as_local_date(day, tz)
    for exception in exceptions:
        if _as_local_date(exception.date, tz) == target:
            return exception
    return None


def resolve_day(
    day: date,
    templates: Sequence[WeeklyTemplate],
    exceptions: Sequence[DateException],
    *,
    config: AvailabilityConfig | None = None,
) -> DayResolution:
    config = config or AvailabilityConfig()
    if config.default_slot_duration_minutes <= 0:
        raise InvalidInputError("Default slot duration must be positive")
    target = _as_local_date(day, config.tzinfo)

    exception = find_exception(target, exceptions, config=config)
    if exception is not None and not exception.is_available:
        return DayResolution(day=target, rules=(), closed=True)

    if exception is not None and exception.overrides_hours:
        override = OverrideRule(
            start_minute=parse_time_of_day(exception.start_time),  # type: ignore[arg-type]
            end_minute=parse_time_of_day(exception.end_time),  # type: ignore[arg-type]
            duration_minutes=config.default_slot_duration_minutes,
        )
        return DayResolution(day=target, rules=(override,))

    weekday = day_of_week(target)
    rules = tuple(
        _weekly_rule(template)
        for template in templates
        if template.is_active and template.day_of_week == weekday
    )
    return DayResolution(day=target, rules=rules)


def _slots_for_rule(
    day: date,
    rule: EffectiveRule,
    *,
    tz: ZoneInfo,
    blocked: Sequence[tuple[datetime, datetime]],
) -> list[GeneratedSlot]:
    slots: list[GeneratedSlot] = []
    step = rule.duration_minutes + rule.buffer_after_minutes
    cursor = rule.start_minute
    while cursor + rule.duration_minutes <= rule.end_minute:
        slot_start = _local_instant(day, cursor, tz)
        if slot_start is None:
            cursor += step
            continue
        slot_end = slot_start + timedelta(minutes=rule.duration_minutes)
        conflicting = any(
            busy_start < slot_end and busy_end > slot_start
            for busy_start, busy_end in blocked
        )
        slots.append(
            GeneratedSlot(start_time=slot_start, end_time=slot_end, available=not conflicting)
        )
        cursor += step
    return slots


def _generate_for_day(
    day: date,
    templates: Sequence[WeeklyTemplate],
    exceptions: Sequence[DateException],
    blocked: Sequence[tuple[datetime, datetime]],
    config: AvailabilityConfig,
) -> list[GeneratedSlot]:
    resolution = resolve_day(day, templates, exceptions, config=config)
    tz = config.tzinfo
    generated: list[GeneratedSlot] = []
    # Overlapping templates on one weekday are emitted as-is, never merged.
    for rule in resolution.rules:
        generated.extend(_slots_for_rule(resolution.day, rule, tz=tz, blocked=blocked))
    return generated


def generate_day_slots(
    day: date,
    templates: Sequence[WeeklyTemplate],
    exceptions: Sequence[DateException],
    existing_bookings: Iterable[ExistingBooking],
    *,
    config: AvailabilityConfig | None = None,
) -> list[GeneratedSlot]:
    """Build the ordered slot list for one local calendar day.

    A blocking exception yields ``[]``. An available exception with both
    times replaces every weekly template for the day with a single window
    of ``config.default_slot_duration_minutes`` slots and no buffer.
    Otherwise every active template for the weekday contributes slots, in
    input order. Slot starts are wall-clock positions in ``config.timezone``
    returned as UTC instants; starts that fall in a spring-forward gap are
    skipped and every slot ends exactly ``slot_duration`` minutes later.
    """
    config = config or AvailabilityConfig()
    blocked = _blocking_windows(existing_bookings)
    return _generate_for_day(day, templates, exceptions, blocked, config)


def iter_days(start_date: date, end_date_exclusive: date) -> Iterable[date]:
    current = start_date
    while current < end_date_exclusive:
        yield current
        current += timedelta(days=1)


def generate_range_slots(
    start_date: date,
    end_date_exclusive: date,
    templates: Sequence[WeeklyTemplate],
    exceptions: Sequence[DateException],
    existing_bookings: Iterable[ExistingBooking],
    *,
    config: AvailabilityConfig | None = None,
) -> dict[str, list[GeneratedSlot]]:
    """Map every ``YYYY-MM-DD`` in ``[start, end)`` to its slots.

    Days without availability still get a key with an empty list.
    """
    config = config or AvailabilityConfig()
    tz = config.tzinfo
    first = _as_local_date(start_date, tz)
    last = _as_local_date(end_date_exclusive, tz)
    if last < first:
        raise InvalidInputError("Range end must not be before its start")

    blocked = _blocking_windows(existing_bookings)
    return {
        day.isoformat(): _generate_for_day(day, templates, exceptions, blocked, config)
        for day in iter_days(first, last)
    }


def closed_days(
    start_date: date,
    end_date_exclusive: date,
    exceptions: Sequence[DateException],
    *,
    config: AvailabilityConfig | None = None,
) -> list[str]:
    """ISO dates in ``[start, end)`` blocked outright by an exception."""
    config = config or AvailabilityConfig()
    closed: list[str] = []
    for day in iter_days(start_date, end_date_exclusive):
        exception = find_exception(day, exceptions, config=config)
        if exception is not None and not exception.is_available:
            closed.append(day.isoformat())
    return closed


def find_conflicts(
    candidate_start: datetime,
    candidate_end: datetime,
    existing_bookings: Iterable[ExistingBooking],
) -> list[ExistingBooking]:
    """Return non-cancelled bookings overlapping ``[start, end)``.

    Touching endpoints do not conflict.
    """
    start, end = _check_interval(candidate_start, candidate_end)
    return [
        booking
        for booking in existing_bookings
        if booking.blocks
        and _as_utc(booking.start_time) < end
        and _as_utc(booking.end_time) > start
    ]


def has_overlap(
    candidate_start: datetime,
    candidate_end: datetime,
    existing_bookings: Iterable[ExistingBooking],
) -> bool:
    """Whether ``[start, end)`` collides with any non-cancelled booking."""
    return bool(find_conflicts(candidate_start, candidate_end, existing_bookings))


__all__ = [
    "AvailabilityConfig",
    "DateException",
    "DayResolution",
    "EffectiveRule",
    "ExistingBooking",
    "GeneratedSlot",
    "InvalidInputError",
    "InvalidIntervalError",
    "OverrideRule",
    "WeeklyRule",
    "WeeklyTemplate",
    "closed_days",
    "day_of_week",
    "find_conflicts",
    "find_exception",
    "generate_day_slots",
    "generate_range_slots",
    "has_overlap",
    "parse_time_of_day",
    "resolve_day",
    "resolve_timezone",
]
