"""ORM models package export."""

from app.models.appointment import (
    Appointment,
    AppointmentStatus,
    AppointmentType,
    PaymentStatus,
)
from app.models.availability import AvailabilityException, WeeklyAvailability
from app.models.user import User, UserRole, UserStatus

__all__ = [
    "Appointment",
    "AppointmentStatus",
    "AppointmentType",
    "AvailabilityException",
    "PaymentStatus",
    "User",
    "UserRole",
    "UserStatus",
    "WeeklyAvailability",
]
