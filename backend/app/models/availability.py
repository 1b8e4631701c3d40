"""Weekly availability templates and date-specific exceptions."""

from __future__ import annotations

import datetime as dt
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, Date, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.models.mixins import TimestampMixin

if TYPE_CHECKING:  # pragma: no cover - typing only imports
    from app.models.user import User


class WeeklyAvailability(TimestampMixin, Base):
    """Recurring bookable window for one weekday (0 = Sunday)."""

    __tablename__ = "weekly_availability"
    __table_args__ = (
        Index("ix_weekly_availability_owner_day", "user_id", "day_of_week"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    slot_duration_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=60
    )
    buffer_before_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    buffer_after_minutes: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    max_appointments: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    owner: Mapped["User"] = relationship("User", back_populates="weekly_availability")


class AvailabilityException(TimestampMixin, Base):
    """Closure or replacement hours for a single calendar date."""

    __tablename__ = "availability_exceptions"
    __table_args__ = (
        Index("ix_availability_exceptions_owner_date", "user_id", "date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    start_time: Mapped[str | None] = mapped_column(String(5))
    end_time: Mapped[str | None] = mapped_column(String(5))
    reason: Mapped[str | None] = mapped_column(String(255))

    owner: Mapped["User"] = relationship(
        "User", back_populates="availability_exceptions"
    )
