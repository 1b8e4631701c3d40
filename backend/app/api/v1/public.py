"""Unauthenticated booking page endpoints."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.errors import http_error
from app.api.rate_limit import PUBLIC_RATE_DEP
from app.schemas.appointment import AppointmentRead, PublicBookingCreate
from app.schemas.availability import AvailableSlotsResponse
from app.services import appointment_service, availability_service

router = APIRouter()


@router.get(
    "/calendars/{owner_id}/slots",
    response_model=AvailableSlotsResponse,
    summary="Public slot listing for a calendar",
    dependencies=[PUBLIC_RATE_DEP],
)
async def list_public_slots(
    owner_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    start_date: Annotated[date | None, Query(alias="date")] = None,
    days: Annotated[int, Query(ge=1)] = 7,
    timezone: str | None = None,
) -> AvailableSlotsResponse:
    try:
        window = await availability_service.list_available_slots(
            session,
            owner_id=owner_id,
            start_date=start_date,
            days=days,
            timezone=timezone,
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return AvailableSlotsResponse.model_validate(window, from_attributes=True)


@router.post(
    "/calendars/{owner_id}/appointments",
    response_model=AppointmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Book a slot from a public booking page",
    dependencies=[PUBLIC_RATE_DEP],
)
async def book_public_appointment(
    owner_id: uuid.UUID,
    payload: PublicBookingCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
) -> AppointmentRead:
    try:
        appointment = await appointment_service.book_public_appointment(
            session, owner_id=owner_id, payload=payload
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return AppointmentRead.model_validate(appointment)
