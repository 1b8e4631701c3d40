"""Schema exports."""

from app.schemas.appointment import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentRead,
    AppointmentStats,
    AppointmentUpdate,
    PublicBookingCreate,
)
from app.schemas.auth import Token
from app.schemas.availability import (
    AvailabilityExceptionCreate,
    AvailabilityExceptionRead,
    AvailableSlotsResponse,
    TimeSlotRead,
    WeeklyAvailabilityRead,
    WeeklyAvailabilityUpsert,
)
from app.schemas.user import UserCreate, UserRead

__all__ = [
    "AppointmentCancel",
    "AppointmentCreate",
    "AppointmentRead",
    "AppointmentStats",
    "AppointmentUpdate",
    "AvailabilityExceptionCreate",
    "AvailabilityExceptionRead",
    "AvailableSlotsResponse",
    "PublicBookingCreate",
    "TimeSlotRead",
    "Token",
    "UserCreate",
    "UserRead",
    "WeeklyAvailabilityRead",
    "WeeklyAvailabilityUpsert",
]
