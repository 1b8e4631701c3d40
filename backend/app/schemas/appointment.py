"""Pydantic schemas for appointment endpoints."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.appointment import AppointmentStatus, AppointmentType, PaymentStatus


class AppointmentBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    location: str | None = Field(default=None, max_length=255)
    meeting_url: str | None = Field(default=None, max_length=500)
    start_at: datetime
    end_at: datetime
    timezone: str = "Europe/Paris"
    type: AppointmentType = AppointmentType.FREE
    price: int = Field(default=0, ge=0, description="Minor currency units")
    currency: str = Field(default="EUR", min_length=3, max_length=3)
    attendee_name: str | None = Field(default=None, max_length=255)
    attendee_email: EmailStr | None = None
    attendee_phone: str | None = Field(default=None, max_length=32)
    notes: str | None = None


class AppointmentCreate(AppointmentBase):
    """Payload to book an appointment on the caller's calendar."""

    status: AppointmentStatus = AppointmentStatus.PENDING


class AppointmentUpdate(BaseModel):
    """Partial update; changing times re-runs the overlap check."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    location: str | None = Field(default=None, max_length=255)
    meeting_url: str | None = Field(default=None, max_length=500)
    start_at: datetime | None = None
    end_at: datetime | None = None
    timezone: str | None = None
    status: AppointmentStatus | None = None
    type: AppointmentType | None = None
    price: int | None = Field(default=None, ge=0)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    attendee_name: str | None = Field(default=None, max_length=255)
    attendee_email: EmailStr | None = None
    attendee_phone: str | None = Field(default=None, max_length=32)
    notes: str | None = None
    cancellation_reason: str | None = None


class AppointmentCancel(BaseModel):
    reason: str | None = None


class PublicBookingCreate(BaseModel):
    """Booking request coming from a public booking page."""

    title: str = Field(default="Appointment", min_length=1, max_length=255)
    start_at: datetime
    end_at: datetime
    timezone: str | None = None
    attendee_name: str = Field(min_length=1, max_length=255)
    attendee_email: EmailStr
    attendee_phone: str | None = Field(default=None, max_length=32)
    notes: str | None = None


class AppointmentRead(AppointmentBase):
    id: uuid.UUID
    user_id: uuid.UUID
    status: AppointmentStatus
    is_paid: bool
    payment_status: PaymentStatus
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("start_at", "end_at", "cancelled_at", "created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # SQLite drops tzinfo on round trip; values are always stored as UTC.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class AppointmentStats(BaseModel):
    """Counts for the current calendar month."""

    total: int
    pending: int
    confirmed: int
    completed: int
    cancelled: int
    paid: int
    unpaid: int
    total_revenue: int
    upcoming: int
