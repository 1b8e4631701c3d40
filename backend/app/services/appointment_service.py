"""Booking and lifecycle management for calendar appointments."""

from __future__ import annotations

import asyncio
import logging
import uuid
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, date, datetime, time, timedelta
from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    PaymentStatus,
    User,
    UserStatus,
)
from app.schemas.appointment import (
    AppointmentCreate,
    AppointmentStats,
    AppointmentUpdate,
    PublicBookingCreate,
)
from app.services import availability_service
from app.services.availability_engine import (
    InvalidIntervalError,
    find_conflicts,
    resolve_timezone,
)
from app.services.user_service import OwnerNotFoundError

logger = logging.getLogger(__name__)

_owner_locks: weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock] = (
    weakref.WeakValueDictionary()
)


class BookingConflictError(ValueError):
    """Raised when a requested interval overlaps an existing appointment."""


class AppointmentNotFoundError(ValueError):
    """Raised when an appointment does not exist on the owner's calendar."""


def _normalize_datetime(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def _normalize_interval(start_at: datetime, end_at: datetime) -> tuple[datetime, datetime]:
    start = _normalize_datetime(start_at)
    end = _normalize_datetime(end_at)
    if start >= end:
        raise InvalidIntervalError("end_at must be after start_at")
    return start, end


def _owner_lock(owner_id: uuid.UUID) -> asyncio.Lock:
    lock = _owner_locks.get(owner_id)
    if lock is None:
        lock = asyncio.Lock()
        _owner_locks[owner_id] = lock
    return lock


@asynccontextmanager
async def _owner_critical_section(
    session: AsyncSession, owner_id: uuid.UUID
) -> AsyncIterator[User]:
    """Serialize check-then-insert for one calendar.

    The in-process lock covers a single worker; the row lock covers
    concurrent workers on databases that honour ``FOR UPDATE``.
    """
    lock = _owner_lock(owner_id)
    async with lock:
        stmt: Select[tuple[User]] = (
            select(User).where(User.id == owner_id).with_for_update()
        )
        result = await session.execute(stmt)
        owner = result.scalar_one_or_none()
        if owner is None or owner.status != UserStatus.ACTIVE:
            await session.rollback()
            raise OwnerNotFoundError("Calendar owner not found")
        try:
            yield owner
        except Exception:
            await session.rollback()
            raise


async def _ensure_no_overlap(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    start_at: datetime,
    end_at: datetime,
    exclude_appointment_id: uuid.UUID | None = None,
) -> None:
    bookings = await availability_service.load_blocking_bookings(
        session,
        owner_id=owner_id,
        range_start=start_at,
        range_end=end_at,
        exclude_appointment_id=exclude_appointment_id,
    )
    conflicts = find_conflicts(start_at, end_at, bookings)
    if conflicts:
        logger.info(
            "Booking conflict for owner %s at %s-%s (%d overlapping)",
            owner_id,
            start_at.isoformat(),
            end_at.isoformat(),
            len(conflicts),
        )
        raise BookingConflictError("Time slot overlaps an existing appointment")


def _payment_defaults(appointment_type: AppointmentType) -> dict[str, Any]:
    if appointment_type is AppointmentType.FREE:
        return {"is_paid": True, "payment_status": PaymentStatus.PAID}
    return {"is_paid": False, "payment_status": PaymentStatus.PENDING}


async def get_appointment(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    appointment_id: uuid.UUID,
) -> Appointment:
    appointment = await session.get(Appointment, appointment_id)
    if appointment is None or appointment.user_id != owner_id:
        raise AppointmentNotFoundError("Appointment not found")
    return appointment


async def list_appointments(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    status: AppointmentStatus | None = None,
    appointment_type: AppointmentType | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: int = 100,
) -> list[Appointment]:
    """Owner's appointments, newest start first."""
    stmt: Select[tuple[Appointment]] = select(Appointment).where(
        Appointment.user_id == owner_id
    )
    if status is not None:
        stmt = stmt.where(Appointment.status == status)
    if appointment_type is not None:
        stmt = stmt.where(Appointment.type == appointment_type)
    if start_date is not None:
        stmt = stmt.where(Appointment.start_at >= _normalize_datetime(start_date))
    if end_date is not None:
        stmt = stmt.where(Appointment.start_at < _normalize_datetime(end_date))
    stmt = stmt.order_by(Appointment.start_at.desc()).limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def create_appointment(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    payload: AppointmentCreate,
) -> Appointment:
    start_at, end_at = _normalize_interval(payload.start_at, payload.end_at)
    resolve_timezone(payload.timezone)
    values = payload.model_dump(exclude={"start_at", "end_at"})

    async with _owner_critical_section(session, owner_id):
        if payload.status is not AppointmentStatus.CANCELLED:
            await _ensure_no_overlap(
                session, owner_id=owner_id, start_at=start_at, end_at=end_at
            )
        appointment = Appointment(
            user_id=owner_id,
            start_at=start_at,
            end_at=end_at,
            **values,
            **_payment_defaults(payload.type),
        )
        session.add(appointment)
        await session.commit()

    await session.refresh(appointment)
    logger.info(
        "Appointment %s created for owner %s at %s",
        appointment.id,
        owner_id,
        start_at.isoformat(),
    )
    return appointment


async def book_public_appointment(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    payload: PublicBookingCreate,
) -> Appointment:
    """Book a pending free appointment from a public booking page."""
    start_at, end_at = _normalize_interval(payload.start_at, payload.end_at)

    async with _owner_critical_section(session, owner_id) as owner:
        timezone = availability_service.resolve_config(owner, payload.timezone).timezone
        await _ensure_no_overlap(
            session, owner_id=owner_id, start_at=start_at, end_at=end_at
        )
        appointment = Appointment(
            user_id=owner_id,
            title=payload.title,
            start_at=start_at,
            end_at=end_at,
            timezone=timezone,
            status=AppointmentStatus.PENDING,
            type=AppointmentType.FREE,
            attendee_name=payload.attendee_name,
            attendee_email=str(payload.attendee_email),
            attendee_phone=payload.attendee_phone,
            notes=payload.notes,
            **_payment_defaults(AppointmentType.FREE),
        )
        session.add(appointment)
        await session.commit()

    await session.refresh(appointment)
    logger.info(
        "Public booking %s created for owner %s at %s",
        appointment.id,
        owner_id,
        start_at.isoformat(),
    )
    return appointment


async def update_appointment(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    appointment_id: uuid.UUID,
    payload: AppointmentUpdate,
) -> Appointment:
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("timezone") is not None:
        resolve_timezone(changes["timezone"])

    async with _owner_critical_section(session, owner_id):
        appointment = await get_appointment(
            session, owner_id=owner_id, appointment_id=appointment_id
        )
        start_at = changes.pop("start_at", None) or appointment.start_at
        end_at = changes.pop("end_at", None) or appointment.end_at
        start_at, end_at = _normalize_interval(start_at, end_at)
        new_status = changes.get("status") or appointment.status

        moved = (
            start_at != _normalize_datetime(appointment.start_at)
            or end_at != _normalize_datetime(appointment.end_at)
        )
        reactivated = (
            appointment.status is AppointmentStatus.CANCELLED
            and new_status is not AppointmentStatus.CANCELLED
        )
        if (moved or reactivated) and new_status is not AppointmentStatus.CANCELLED:
            await _ensure_no_overlap(
                session,
                owner_id=owner_id,
                start_at=start_at,
                end_at=end_at,
                exclude_appointment_id=appointment.id,
            )

        appointment.start_at = start_at
        appointment.end_at = end_at
        for key, value in changes.items():
            setattr(appointment, key, value)
        if new_status is AppointmentStatus.CANCELLED and appointment.cancelled_at is None:
            appointment.cancelled_at = datetime.now(UTC)
            logger.info("Appointment %s cancelled", appointment.id)
        elif reactivated:
            appointment.cancelled_at = None
            appointment.cancellation_reason = None
        await session.commit()

    await session.refresh(appointment)
    return appointment


async def cancel_appointment(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    appointment_id: uuid.UUID,
    reason: str | None = None,
) -> Appointment:
    appointment = await get_appointment(
        session, owner_id=owner_id, appointment_id=appointment_id
    )
    if appointment.status is AppointmentStatus.CANCELLED:
        raise ValueError("Appointment is already cancelled")
    appointment.status = AppointmentStatus.CANCELLED
    appointment.cancellation_reason = reason
    appointment.cancelled_at = datetime.now(UTC)
    await session.commit()
    await session.refresh(appointment)
    logger.info("Appointment %s cancelled", appointment.id)
    return appointment


async def confirm_appointment(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    appointment_id: uuid.UUID,
) -> Appointment:
    appointment = await get_appointment(
        session, owner_id=owner_id, appointment_id=appointment_id
    )
    if appointment.status is AppointmentStatus.CANCELLED:
        raise ValueError("Cancelled appointments cannot be confirmed")
    if appointment.type is AppointmentType.PAID and not appointment.is_paid:
        raise ValueError("Payment required before confirmation")
    appointment.status = AppointmentStatus.CONFIRMED
    await session.commit()
    await session.refresh(appointment)
    logger.info("Appointment %s confirmed", appointment.id)
    return appointment


async def complete_appointment(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    appointment_id: uuid.UUID,
) -> Appointment:
    appointment = await get_appointment(
        session, owner_id=owner_id, appointment_id=appointment_id
    )
    if appointment.status is AppointmentStatus.CANCELLED:
        raise ValueError("Cancelled appointments cannot be completed")
    appointment.status = AppointmentStatus.COMPLETED
    await session.commit()
    await session.refresh(appointment)
    logger.info("Appointment %s completed", appointment.id)
    return appointment


async def delete_appointment(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    appointment_id: uuid.UUID,
) -> None:
    appointment = await get_appointment(
        session, owner_id=owner_id, appointment_id=appointment_id
    )
    await session.delete(appointment)
    await session.commit()
    logger.info("Appointment %s deleted", appointment_id)


def _month_bounds(now: datetime) -> tuple[datetime, datetime]:
    first = date(now.year, now.month, 1)
    following = (first + timedelta(days=32)).replace(day=1)
    return (
        datetime.combine(first, time.min, tzinfo=UTC),
        datetime.combine(following, time.min, tzinfo=UTC),
    )


async def get_stats(
    session: AsyncSession,
    *,
    owner_id: uuid.UUID,
    now: datetime | None = None,
) -> AppointmentStats:
    """Counts for appointments starting in the current UTC calendar month."""
    current = _normalize_datetime(now or datetime.now(UTC))
    month_start, month_end = _month_bounds(current)
    appointments = await list_appointments(
        session,
        owner_id=owner_id,
        start_date=month_start,
        end_date=month_end,
        limit=10_000,
    )

    def count(status: AppointmentStatus) -> int:
        return sum(1 for item in appointments if item.status is status)

    paid_type = [item for item in appointments if item.type is AppointmentType.PAID]
    return AppointmentStats(
        total=len(appointments),
        pending=count(AppointmentStatus.PENDING),
        confirmed=count(AppointmentStatus.CONFIRMED),
        completed=count(AppointmentStatus.COMPLETED),
        cancelled=count(AppointmentStatus.CANCELLED),
        paid=sum(1 for item in appointments if item.is_paid),
        unpaid=sum(1 for item in paid_type if not item.is_paid),
        total_revenue=sum(item.price for item in paid_type if item.is_paid),
        upcoming=sum(
            1
            for item in appointments
            if item.status
            not in (AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED)
            and _normalize_datetime(item.start_at) > current
        ),
    )
