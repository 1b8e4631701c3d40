"""Translate service-layer errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException, status

from app.services.appointment_service import (
    AppointmentNotFoundError,
    BookingConflictError,
)
from app.services.availability_service import AvailabilityNotFoundError
from app.services.user_service import OwnerNotFoundError

_NOT_FOUND = (AppointmentNotFoundError, AvailabilityNotFoundError, OwnerNotFoundError)


def http_error(exc: ValueError) -> HTTPException:
    """Map a domain ``ValueError`` onto 404, 409 or 400."""
    if isinstance(exc, _NOT_FOUND):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, BookingConflictError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(exc))


__all__ = ["http_error"]
