"""Tests for the pure slot generation and overlap engine."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta

import pytest

from app.services.availability_engine import (
    AvailabilityConfig,
    DateException,
    ExistingBooking,
    GeneratedSlot,
    InvalidInputError,
    InvalidIntervalError,
    OverrideRule,
    WeeklyRule,
    WeeklyTemplate,
    closed_days,
    day_of_week,
    find_conflicts,
    generate_day_slots,
    generate_range_slots,
    has_overlap,
    parse_time_of_day,
    resolve_day,
)

PARIS = AvailabilityConfig(timezone="Europe/Paris", default_slot_duration_minutes=60)
UTC_CONFIG = AvailabilityConfig(timezone="UTC", default_slot_duration_minutes=30)

MONDAY = date(2026, 1, 12)
MORNING = WeeklyTemplate(day_of_week=1, start_time="09:00", end_time="12:00")


def _utc(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime.combine(day, time(hour, minute), tzinfo=UTC)


def _windows(slots: list[GeneratedSlot]) -> list[tuple[datetime, datetime, bool]]:
    return [(slot.start_time, slot.end_time, slot.available) for slot in slots]


def test_booked_hour_is_marked_unavailable() -> None:
    # Paris is UTC+1 in January: local 10:00-11:00 is 09:00-10:00Z.
    booking = ExistingBooking(
        start_time=_utc(MONDAY, 9), end_time=_utc(MONDAY, 10), status="confirmed"
    )

    slots = generate_day_slots(MONDAY, [MORNING], [], [booking], config=PARIS)

    assert _windows(slots) == [
        (_utc(MONDAY, 8), _utc(MONDAY, 9), True),
        (_utc(MONDAY, 9), _utc(MONDAY, 10), False),
        (_utc(MONDAY, 10), _utc(MONDAY, 11), True),
    ]


def test_blocking_exception_yields_no_slots() -> None:
    exception = DateException(date=MONDAY, is_available=False)

    assert generate_day_slots(MONDAY, [MORNING], [exception], [], config=PARIS) == []
    resolution = resolve_day(MONDAY, [MORNING], [exception], config=PARIS)
    assert resolution.closed is True
    assert resolution.rules == ()


def test_partial_overlap_and_cancelled_booking() -> None:
    day = date(2026, 1, 15)
    booking = ExistingBooking(start_time=_utc(day, 10), end_time=_utc(day, 11))
    cancelled = ExistingBooking(
        start_time=_utc(day, 10), end_time=_utc(day, 11), status="cancelled"
    )

    assert has_overlap(_utc(day, 10, 30), _utc(day, 11, 30), [booking]) is True
    assert has_overlap(_utc(day, 10, 30), _utc(day, 11, 30), [cancelled]) is False


def test_generation_is_deterministic() -> None:
    booking = ExistingBooking(start_time=_utc(MONDAY, 9), end_time=_utc(MONDAY, 10))

    first = generate_day_slots(MONDAY, [MORNING], [], [booking], config=PARIS)
    second = generate_day_slots(MONDAY, [MORNING], [], [booking], config=PARIS)

    assert first == second


def test_available_exception_replaces_templates() -> None:
    exception = DateException(
        date=MONDAY, is_available=True, start_time="14:00", end_time="16:00"
    )
    afternoon = WeeklyTemplate(
        day_of_week=1, start_time="09:00", end_time="12:00", slot_duration=15, buffer_after=30
    )

    slots = generate_day_slots(MONDAY, [afternoon], [exception], [], config=PARIS)

    assert _windows(slots) == [
        (_utc(MONDAY, 13), _utc(MONDAY, 14), True),
        (_utc(MONDAY, 14), _utc(MONDAY, 15), True),
    ]
    resolution = resolve_day(MONDAY, [afternoon], [exception], config=PARIS)
    assert resolution.rules == (
        OverrideRule(start_minute=14 * 60, end_minute=16 * 60, duration_minutes=60),
    )


def test_available_exception_without_hours_keeps_templates() -> None:
    exception = DateException(date=MONDAY, is_available=True)

    slots = generate_day_slots(MONDAY, [MORNING], [exception], [], config=PARIS)

    assert len(slots) == 3


def test_override_uses_configured_default_duration() -> None:
    exception = DateException(
        date=MONDAY, is_available=True, start_time="10:00", end_time="11:00"
    )

    slots = generate_day_slots(MONDAY, [], [exception], [], config=UTC_CONFIG)

    assert [slot.start_time for slot in slots] == [
        _utc(MONDAY, 10),
        _utc(MONDAY, 10, 30),
    ]


def test_buffer_after_spaces_slots() -> None:
    template = WeeklyTemplate(
        day_of_week=1, start_time="09:00", end_time="12:00", slot_duration=45, buffer_after=15
    )

    slots = generate_day_slots(MONDAY, [template], [], [], config=UTC_CONFIG)

    assert _windows(slots) == [
        (_utc(MONDAY, 9), _utc(MONDAY, 9, 45), True),
        (_utc(MONDAY, 10), _utc(MONDAY, 10, 45), True),
        (_utc(MONDAY, 11), _utc(MONDAY, 11, 45), True),
    ]


def test_last_slot_must_fit_before_window_end() -> None:
    template = WeeklyTemplate(
        day_of_week=1, start_time="09:00", end_time="10:30", slot_duration=60
    )

    slots = generate_day_slots(MONDAY, [template], [], [], config=UTC_CONFIG)

    assert len(slots) == 1
    assert slots[0].end_time == _utc(MONDAY, 10)


def test_buffer_before_and_capacity_are_carried_not_enforced() -> None:
    template = WeeklyTemplate(
        day_of_week=1,
        start_time="09:00",
        end_time="11:00",
        buffer_before=30,
        max_appointments=3,
    )

    resolution = resolve_day(MONDAY, [template], [], config=UTC_CONFIG)
    slots = generate_day_slots(MONDAY, [template], [], [], config=UTC_CONFIG)

    assert resolution.rules == (
        WeeklyRule(
            start_minute=540,
            end_minute=660,
            duration_minutes=60,
            buffer_after_minutes=0,
            buffer_before_minutes=30,
            max_appointments=3,
        ),
    )
    assert [slot.start_time for slot in slots] == [_utc(MONDAY, 9), _utc(MONDAY, 10)]


def test_cancelled_bookings_never_block_slots() -> None:
    booking = ExistingBooking(
        start_time=_utc(MONDAY, 9), end_time=_utc(MONDAY, 10), status="cancelled"
    )

    slots = generate_day_slots(MONDAY, [MORNING], [], [booking], config=PARIS)

    assert all(slot.available for slot in slots)


def test_enum_statuses_are_normalized() -> None:
    from app.models import AppointmentStatus

    cancelled = ExistingBooking(
        start_time=_utc(MONDAY, 9),
        end_time=_utc(MONDAY, 10),
        status=AppointmentStatus.CANCELLED,
    )
    pending = ExistingBooking(
        start_time=_utc(MONDAY, 9),
        end_time=_utc(MONDAY, 10),
        status=AppointmentStatus.PENDING,
    )

    assert cancelled.blocks is False
    assert pending.blocks is True


def test_overlap_is_symmetric() -> None:
    a = (_utc(MONDAY, 9), _utc(MONDAY, 10, 30))
    b = (_utc(MONDAY, 10), _utc(MONDAY, 11))

    assert has_overlap(*a, [ExistingBooking(*b)]) == has_overlap(*b, [ExistingBooking(*a)])
    assert has_overlap(*a, [ExistingBooking(*b)]) is True


def test_touching_intervals_do_not_overlap() -> None:
    booking = ExistingBooking(start_time=_utc(MONDAY, 10), end_time=_utc(MONDAY, 11))

    assert has_overlap(_utc(MONDAY, 9), _utc(MONDAY, 10), [booking]) is False
    assert has_overlap(_utc(MONDAY, 11), _utc(MONDAY, 12), [booking]) is False


def test_containment_overlaps() -> None:
    booking = ExistingBooking(start_time=_utc(MONDAY, 9), end_time=_utc(MONDAY, 12))

    assert has_overlap(_utc(MONDAY, 10), _utc(MONDAY, 11), [booking]) is True
    assert find_conflicts(_utc(MONDAY, 8), _utc(MONDAY, 13), [booking]) == [booking]


def test_overlap_with_no_bookings_is_false() -> None:
    assert has_overlap(_utc(MONDAY, 9), _utc(MONDAY, 10), []) is False


@pytest.mark.parametrize(
    ("start", "end"),
    [
        (_utc(MONDAY, 10), _utc(MONDAY, 10)),
        (_utc(MONDAY, 11), _utc(MONDAY, 10)),
    ],
)
def test_invalid_candidate_interval(start: datetime, end: datetime) -> None:
    with pytest.raises(InvalidIntervalError):
        has_overlap(start, end, [])


def test_naive_instants_are_read_as_utc() -> None:
    booking = ExistingBooking(
        start_time=datetime(2026, 1, 12, 10, 0), end_time=datetime(2026, 1, 12, 11, 0)
    )

    assert has_overlap(_utc(MONDAY, 10, 30), _utc(MONDAY, 10, 45), [booking]) is True


def test_range_has_a_key_for_every_day() -> None:
    start = date(2026, 1, 10)  # Saturday
    end = date(2026, 1, 17)

    slots = generate_range_slots(start, end, [MORNING], [], [], config=PARIS)

    assert list(slots) == [
        "2026-01-10",
        "2026-01-11",
        "2026-01-12",
        "2026-01-13",
        "2026-01-14",
        "2026-01-15",
        "2026-01-16",
    ]
    assert len(slots["2026-01-12"]) == 3
    assert slots["2026-01-10"] == []
    assert slots["2026-01-13"] == []


def test_empty_range_and_reversed_range() -> None:
    assert generate_range_slots(MONDAY, MONDAY, [MORNING], [], [], config=PARIS) == {}
    with pytest.raises(InvalidInputError):
        generate_range_slots(MONDAY, date(2026, 1, 11), [MORNING], [], [], config=PARIS)


def test_closed_days_lists_only_blocking_exceptions() -> None:
    exceptions = [
        DateException(date=date(2026, 1, 13), is_available=False),
        DateException(
            date=date(2026, 1, 14), is_available=True, start_time="10:00", end_time="12:00"
        ),
        DateException(date=date(2026, 2, 1), is_available=False),
    ]

    assert closed_days(MONDAY, date(2026, 1, 19), exceptions, config=PARIS) == [
        "2026-01-13"
    ]


def test_wall_clock_is_kept_across_daylight_saving_changes() -> None:
    sunday = WeeklyTemplate(day_of_week=0, start_time="09:00", end_time="10:00")
    before = date(2026, 3, 22)
    after = date(2026, 3, 29)
    autumn = date(2026, 10, 25)

    (winter_slot,) = generate_day_slots(before, [sunday], [], [], config=PARIS)
    (summer_slot,) = generate_day_slots(after, [sunday], [], [], config=PARIS)
    (fall_back_slot,) = generate_day_slots(autumn, [sunday], [], [], config=PARIS)

    assert winter_slot.start_time == _utc(before, 8)
    assert summer_slot.start_time == _utc(after, 7)
    assert fall_back_slot.start_time == _utc(autumn, 8)
    assert summer_slot.end_time - summer_slot.start_time == fall_back_slot.end_time - fall_back_slot.start_time


def test_spring_forward_skips_missing_local_hour() -> None:
    night = WeeklyTemplate(day_of_week=0, start_time="01:00", end_time="04:00")
    day = date(2026, 3, 29)

    slots = generate_day_slots(day, [night], [], [], config=PARIS)

    # 02:00 local does not exist; 01:00 is UTC+1 and 03:00 is UTC+2.
    assert _windows(slots) == [
        (_utc(day, 0), _utc(day, 1), True),
        (_utc(day, 1), _utc(day, 2), True),
    ]
    assert all(slot.end_time - slot.start_time == timedelta(hours=1) for slot in slots)


def test_fall_back_slots_keep_their_duration() -> None:
    night = WeeklyTemplate(day_of_week=0, start_time="01:00", end_time="04:00")
    day = date(2026, 10, 25)

    slots = generate_day_slots(day, [night], [], [], config=PARIS)

    assert _windows(slots) == [
        (_utc(date(2026, 10, 24), 23), _utc(day, 0), True),
        (_utc(day, 0), _utc(day, 1), True),
        (_utc(day, 2), _utc(day, 3), True),
    ]
    assert all(slot.end_time - slot.start_time == timedelta(hours=1) for slot in slots)


@pytest.mark.parametrize("value", ["9", "24:00", "12:60", "noon", "", "9:5"])
def test_malformed_time_of_day_is_rejected(value: str) -> None:
    with pytest.raises(InvalidInputError):
        parse_time_of_day(value)


def test_time_of_day_accepts_single_digit_hours() -> None:
    assert parse_time_of_day("9:05") == 545
    assert parse_time_of_day("23:59") == 1439
    assert parse_time_of_day(time(7, 30)) == 450


def test_malformed_template_surfaces_invalid_input() -> None:
    broken = WeeklyTemplate(day_of_week=1, start_time="9am", end_time="12:00")

    with pytest.raises(InvalidInputError):
        generate_day_slots(MONDAY, [broken], [], [], config=PARIS)


def test_non_positive_duration_is_rejected() -> None:
    broken = WeeklyTemplate(
        day_of_week=1, start_time="09:00", end_time="12:00", slot_duration=0
    )

    with pytest.raises(InvalidInputError):
        generate_day_slots(MONDAY, [broken], [], [], config=PARIS)


def test_unknown_timezone_is_rejected() -> None:
    with pytest.raises(InvalidInputError):
        generate_day_slots(
            MONDAY, [MORNING], [], [], config=AvailabilityConfig(timezone="Mars/Olympus")
        )


def test_duplicate_templates_are_not_merged() -> None:
    slots = generate_day_slots(MONDAY, [MORNING, MORNING], [], [], config=PARIS)

    assert len(slots) == 6
    assert _windows(slots[:3]) == _windows(slots[3:])


def test_inactive_templates_are_ignored() -> None:
    inactive = WeeklyTemplate(
        day_of_week=1, start_time="09:00", end_time="12:00", is_active=False
    )

    assert generate_day_slots(MONDAY, [inactive], [], [], config=PARIS) == []


def test_window_shorter_than_duration_yields_nothing() -> None:
    template = WeeklyTemplate(
        day_of_week=1, start_time="09:00", end_time="09:30", slot_duration=60
    )

    assert generate_day_slots(MONDAY, [template], [], [], config=PARIS) == []


def test_sunday_is_day_zero() -> None:
    assert day_of_week(date(2026, 1, 11)) == 0
    assert day_of_week(MONDAY) == 1
    assert day_of_week(date(2026, 1, 17)) == 6

    sunday = WeeklyTemplate(day_of_week=0, start_time="10:00", end_time="11:00")
    assert generate_day_slots(date(2026, 1, 11), [sunday], [], [], config=PARIS)
    assert generate_day_slots(MONDAY, [sunday], [], [], config=PARIS) == []
