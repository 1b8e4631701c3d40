"""Weekly templates, date exceptions and slot listings for a calendar owner."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.settings import get_availability_config
from app.models import (
    Appointment,
    AppointmentStatus,
    AvailabilityException,
    User,
    WeeklyAvailability,
)
from app.schemas.availability import AvailabilityExceptionCreate, WeeklyAvailabilityUpsert
from app.services import user_service
from app.services.availability_engine import (
    AvailabilityConfig,
    DateException,
    ExistingBooking,
    GeneratedSlot,
    InvalidInputError,
    WeeklyTemplate,
    closed_days,
    generate_range_slots,
    resolve_timezone,
)

logger = logging.getLogger(__name__)


class AvailabilityNotFoundError(ValueError):
    """Raised when a template or exception does not belong to the owner."""


@dataclass(slots=True, frozen=True)
class AvailabilityWindow:
    """Generated slots for ``[start_date, end_date)`` on one calendar."""

    owner_id: uuid.UUID
    timezone: str
    start_date: date
    end_date: date
    slots: dict[str, list[GeneratedSlot]]
    closed_dates: list[date]


def to_weekly_template(row: WeeklyAvailability) -> WeeklyTemplate:
    return WeeklyTemplate(
        day_of_week=row.day_of_week,
        start_time=row.start_time,
        end_time=row.end_time,
        slot_duration=row.slot_duration_minutes,
        buffer_before=row.buffer_before_minutes,
        buffer_after=row.buffer_after_minutes,
        max_appointments=row.max_appointments,
        is_active=row.is_active,
    )


def to_date_exception(row: AvailabilityException) -> DateException:
    return DateException(
        date=row.date,
        is_available=row.is_available,
        start_time=row.start_time,
        end_time=row.end_time,
    )


def to_existing_booking(row: Appointment) -> ExistingBooking:
    return ExistingBooking(
        start_time=row.start_at,
        end_time=row.end_at,
        status=row.status.value,
        booking_id=row.id,
    )


def resolve_config(owner: User, timezone: str | None = None) -> AvailabilityConfig:
    """Requested timezone, then the owner's, then the configured default."""
    config = get_availability_config(timezone or owner.timezone)
    resolve_timezone(config.timezone)
    return config


async def list_templates(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    active_only: bool = False,
) -> list[WeeklyAvailability]:
    stmt: Select[tuple[WeeklyAvailability]] = (
        select(WeeklyAvailability)
        .where(WeeklyAvailability.user_id == owner_id)
        .order_by(
            WeeklyAvailability.day_of_week.asc(),
            WeeklyAvailability.start_time.asc(),
            WeeklyAvailability.created_at.asc(),
        )
    )
    if active_only:
        stmt = stmt.where(WeeklyAvailability.is_active.is_(True))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def _get_template(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    template_id: uuid.UUID,
) -> WeeklyAvailability:
    template = await session.get(WeeklyAvailability, template_id)
    if template is None or template.user_id != owner_id:
        raise AvailabilityNotFoundError("Availability template not found")
    return template


async def upsert_template(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    payload: WeeklyAvailabilityUpsert,
) -> WeeklyAvailability:
    values = payload.model_dump(exclude={"id"})
    if payload.id is None:
        template = WeeklyAvailability(user_id=owner_id, **values)
        session.add(template)
    else:
        template = await _get_template(
            session, owner_id=owner_id, template_id=payload.id
        )
        for key, value in values.items():
            setattr(template, key, value)
    await session.commit()
    await session.refresh(template)
    return template


async def delete_template(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    template_id: uuid.UUID,
) -> None:
    template = await _get_template(session, owner_id=owner_id, template_id=template_id)
    await session.delete(template)
    await session.commit()


async def list_exceptions(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[AvailabilityException]:
    """Exceptions with ``start_date <= date <= end_date``, oldest first."""
    stmt: Select[tuple[AvailabilityException]] = (
        select(AvailabilityException)
        .where(AvailabilityException.user_id == owner_id)
        .order_by(
            AvailabilityException.date.asc(),
            AvailabilityException.created_at.asc(),
        )
    )
    if start_date is not None:
        stmt = stmt.where(AvailabilityException.date >= start_date)
    if end_date is not None:
        stmt = stmt.where(AvailabilityException.date <= end_date)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_exception(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    payload: AvailabilityExceptionCreate,
) -> AvailabilityException:
    exception = AvailabilityException(
        user_id=owner_id,
        date=payload.date,
        is_available=payload.is_available,
        start_time=payload.start_time,
        end_time=payload.end_time,
        reason=payload.reason,
    )
    session.add(exception)
    await session.commit()
    await session.refresh(exception)
    return exception


async def delete_exception(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    exception_id: uuid.UUID,
) -> None:
    exception = await session.get(AvailabilityException, exception_id)
    if exception is None or exception.user_id != owner_id:
        raise AvailabilityNotFoundError("Availability exception not found")
    await session.delete(exception)
    await session.commit()


async def load_blocking_bookings(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    range_start: datetime,
    range_end: datetime,
    exclude_appointment_id: uuid.UUID | None = None,
) -> list[ExistingBooking]:
    """Non-cancelled appointments intersecting ``[range_start, range_end)``."""
    stmt: Select[tuple[Appointment]] = select(Appointment).where(
        Appointment.user_id == owner_id,
        Appointment.status != AppointmentStatus.CANCELLED,
        Appointment.end_at > range_start.astimezone(UTC),
        Appointment.start_at < range_end.astimezone(UTC),
    )
    if exclude_appointment_id is not None:
        stmt = stmt.where(Appointment.id != exclude_appointment_id)
    result = await session.execute(stmt)
    return [to_existing_booking(row) for row in result.scalars().all()]


async def list_available_slots(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    start_date: date | None = None,
    days: int = 7,
    timezone: str | None = None,
) -> AvailabilityWindow:
    """Slots for ``days`` local days from ``start_date`` (today when omitted)."""
    max_days = get_settings().booking_max_range_days
    if days < 1 or days > max_days:
        raise InvalidInputError(f"days must be between 1 and {max_days}")

    owner = await user_service.get_active_owner(session, owner_id)
    config = resolve_config(owner, timezone)
    tz = config.tzinfo
    if start_date is None:
        start_date = datetime.now(tz).date()
    end_date = start_date + timedelta(days=days)
    range_start = datetime.combine(start_date, time.min, tzinfo=tz)
    range_end = datetime.combine(end_date, time.min, tzinfo=tz)

    template_rows = await list_templates(session, owner_id=owner_id, active_only=True)
    exception_rows = await list_exceptions(
        session,
        owner_id=owner_id,
        start_date=start_date,
        end_date=end_date - timedelta(days=1),
    )
    bookings = await load_blocking_bookings(
        session,
        owner_id=owner_id,
        range_start=range_start,
        range_end=range_end,
    )

    templates = [to_weekly_template(row) for row in template_rows]
    exceptions = [to_date_exception(row) for row in exception_rows]
    slots = generate_range_slots(
        start_date, end_date, templates, exceptions, bookings, config=config
    )
    closed = closed_days(start_date, end_date, exceptions, config=config)
    logger.debug(
        "Generated %d slot(s) over %d day(s) for owner %s",
        sum(len(day_slots) for day_slots in slots.values()),
        days,
        owner_id,
    )
    return AvailabilityWindow(
        owner_id=owner_id,
        timezone=config.timezone,
        start_date=start_date,
        end_date=end_date,
        slots=slots,
        closed_dates=[date.fromisoformat(value) for value in closed],
    )
