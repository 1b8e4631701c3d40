"""Schemas for weekly availability, exceptions and generated slots."""

from __future__ import annotations

import uuid
import datetime as dt
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

_HH_MM = r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$"


def _minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class WeeklyAvailabilityBase(BaseModel):
    day_of_week: int = Field(ge=0, le=6, description="0 = Sunday")
    start_time: str = Field(pattern=_HH_MM)
    end_time: str = Field(pattern=_HH_MM)
    slot_duration_minutes: int = Field(default=60, ge=15)
    buffer_before_minutes: int = Field(default=0, ge=0)
    buffer_after_minutes: int = Field(default=0, ge=0)
    max_appointments: int = Field(default=1, ge=1)
    is_active: bool = True

    @model_validator(mode="after")
    def _check_window(self) -> "WeeklyAvailabilityBase":
        if _minutes(self.end_time) <= _minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class WeeklyAvailabilityUpsert(WeeklyAvailabilityBase):
    """Create a template, or replace an existing one when ``id`` is set."""

    id: uuid.UUID | None = None


class WeeklyAvailabilityRead(WeeklyAvailabilityBase):
    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AvailabilityExceptionCreate(BaseModel):
    date: dt.date
    is_available: bool = False
    start_time: str | None = Field(default=None, pattern=_HH_MM)
    end_time: str | None = Field(default=None, pattern=_HH_MM)
    reason: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def _check_override(self) -> "AvailabilityExceptionCreate":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be provided together")
        if self.start_time is not None and self.end_time is not None:
            if _minutes(self.end_time) <= _minutes(self.start_time):
                raise ValueError("end_time must be after start_time")
        return self


class AvailabilityExceptionRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    date: dt.date
    is_available: bool
    start_time: str | None = None
    end_time: str | None = None
    reason: str | None = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TimeSlotRead(BaseModel):
    """One generated booking window."""

    start_time: datetime
    end_time: datetime
    available: bool

    model_config = ConfigDict(from_attributes=True)


class AvailableSlotsResponse(BaseModel):
    """Slots keyed by local ``YYYY-MM-DD`` for every day in range."""

    owner_id: uuid.UUID
    timezone: str
    start_date: date
    end_date: date
    slots: dict[str, list[TimeSlotRead]]
    closed_dates: list[date]
