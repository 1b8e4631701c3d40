"""Appointment management for the authenticated calendar owner."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.errors import http_error
from app.api.rate_limit import DEFAULT_RATE_DEP
from app.models import AppointmentStatus, AppointmentType, User
from app.schemas.appointment import (
    AppointmentCancel,
    AppointmentCreate,
    AppointmentRead,
    AppointmentStats,
    AppointmentUpdate,
)
from app.services import appointment_service

router = APIRouter(dependencies=[DEFAULT_RATE_DEP])


@router.get(
    "",
    response_model=list[AppointmentRead],
    summary="List appointments",
)
async def list_appointments(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
    status_filter: Annotated[AppointmentStatus | None, Query(alias="status")] = None,
    type_filter: Annotated[AppointmentType | None, Query(alias="type")] = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
) -> list[AppointmentRead]:
    rows = await appointment_service.list_appointments(
        session,
        owner_id=current_user.id,
        status=status_filter,
        appointment_type=type_filter,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
    )
    return [AppointmentRead.model_validate(row) for row in rows]


@router.get(
    "/stats",
    response_model=AppointmentStats,
    summary="Appointment statistics for the current month",
)
async def appointment_stats(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AppointmentStats:
    return await appointment_service.get_stats(session, owner_id=current_user.id)


@router.post(
    "",
    response_model=AppointmentRead,
    status_code=status.HTTP_201_CREATED,
    summary="Book an appointment",
)
async def create_appointment(
    payload: AppointmentCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AppointmentRead:
    try:
        appointment = await appointment_service.create_appointment(
            session, owner_id=current_user.id, payload=payload
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return AppointmentRead.model_validate(appointment)


@router.get(
    "/{appointment_id}",
    response_model=AppointmentRead,
    summary="Get appointment",
)
async def get_appointment(
    appointment_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AppointmentRead:
    try:
        appointment = await appointment_service.get_appointment(
            session, owner_id=current_user.id, appointment_id=appointment_id
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return AppointmentRead.model_validate(appointment)


@router.patch(
    "/{appointment_id}",
    response_model=AppointmentRead,
    summary="Update appointment",
)
async def update_appointment(
    appointment_id: uuid.UUID,
    payload: AppointmentUpdate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AppointmentRead:
    try:
        appointment = await appointment_service.update_appointment(
            session,
            owner_id=current_user.id,
            appointment_id=appointment_id,
            payload=payload,
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return AppointmentRead.model_validate(appointment)


@router.delete(
    "/{appointment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete appointment",
)
async def delete_appointment(
    appointment_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> Response:
    try:
        await appointment_service.delete_appointment(
            session, owner_id=current_user.id, appointment_id=appointment_id
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{appointment_id}/cancel",
    response_model=AppointmentRead,
    summary="Cancel appointment",
)
async def cancel_appointment(
    appointment_id: uuid.UUID,
    payload: AppointmentCancel,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AppointmentRead:
    try:
        appointment = await appointment_service.cancel_appointment(
            session,
            owner_id=current_user.id,
            appointment_id=appointment_id,
            reason=payload.reason,
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return AppointmentRead.model_validate(appointment)


@router.post(
    "/{appointment_id}/confirm",
    response_model=AppointmentRead,
    summary="Confirm appointment",
)
async def confirm_appointment(
    appointment_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AppointmentRead:
    try:
        appointment = await appointment_service.confirm_appointment(
            session, owner_id=current_user.id, appointment_id=appointment_id
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return AppointmentRead.model_validate(appointment)


@router.post(
    "/{appointment_id}/complete",
    response_model=AppointmentRead,
    summary="Mark appointment completed",
)
async def complete_appointment(
    appointment_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AppointmentRead:
    try:
        appointment = await appointment_service.complete_appointment(
            session, owner_id=current_user.id, appointment_id=appointment_id
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return AppointmentRead.model_validate(appointment)
