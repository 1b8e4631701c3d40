"""Weekly availability, date exceptions and slot listings for the caller."""

from __future__ import annotations

import uuid
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.api.errors import http_error
from app.api.rate_limit import DEFAULT_RATE_DEP
from app.models import User
from app.schemas.availability import (
    AvailabilityExceptionCreate,
    AvailabilityExceptionRead,
    AvailableSlotsResponse,
    WeeklyAvailabilityRead,
    WeeklyAvailabilityUpsert,
)
from app.services import availability_service

router = APIRouter(dependencies=[DEFAULT_RATE_DEP])


@router.get(
    "/templates",
    response_model=list[WeeklyAvailabilityRead],
    summary="List weekly availability templates",
)
async def list_templates(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> list[WeeklyAvailabilityRead]:
    rows = await availability_service.list_templates(session, owner_id=current_user.id)
    return [WeeklyAvailabilityRead.model_validate(row) for row in rows]


@router.put(
    "/templates",
    response_model=WeeklyAvailabilityRead,
    summary="Create or replace a weekly availability template",
)
async def upsert_template(
    payload: WeeklyAvailabilityUpsert,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> WeeklyAvailabilityRead:
    try:
        template = await availability_service.upsert_template(
            session, owner_id=current_user.id, payload=payload
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return WeeklyAvailabilityRead.model_validate(template)


@router.delete(
    "/templates/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a weekly availability template",
)
async def delete_template(
    template_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> Response:
    try:
        await availability_service.delete_template(
            session, owner_id=current_user.id, template_id=template_id
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/exceptions",
    response_model=list[AvailabilityExceptionRead],
    summary="List date exceptions",
)
async def list_exceptions(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[AvailabilityExceptionRead]:
    rows = await availability_service.list_exceptions(
        session,
        owner_id=current_user.id,
        start_date=start_date,
        end_date=end_date,
    )
    return [AvailabilityExceptionRead.model_validate(row) for row in rows]


@router.post(
    "/exceptions",
    response_model=AvailabilityExceptionRead,
    status_code=status.HTTP_201_CREATED,
    summary="Close a date or replace its hours",
)
async def create_exception(
    payload: AvailabilityExceptionCreate,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> AvailabilityExceptionRead:
    exception = await availability_service.create_exception(
        session, owner_id=current_user.id, payload=payload
    )
    return AvailabilityExceptionRead.model_validate(exception)


@router.delete(
    "/exceptions/{exception_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a date exception",
)
async def delete_exception(
    exception_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
) -> Response:
    try:
        await availability_service.delete_exception(
            session, owner_id=current_user.id, exception_id=exception_id
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get(
    "/slots",
    response_model=AvailableSlotsResponse,
    summary="List generated slots for the caller's calendar",
)
async def list_slots(
    session: Annotated[AsyncSession, Depends(deps.get_db_session)],
    current_user: Annotated[User, Depends(deps.get_current_active_user)],
    start_date: Annotated[date | None, Query(alias="date")] = None,
    days: Annotated[int, Query(ge=1)] = 7,
    timezone: str | None = None,
) -> AvailableSlotsResponse:
    try:
        window = await availability_service.list_available_slots(
            session,
            owner_id=current_user.id,
            start_date=start_date,
            days=days,
            timezone=timezone,
        )
    except ValueError as exc:
        raise http_error(exc) from exc
    return AvailableSlotsResponse.model_validate(window, from_attributes=True)
