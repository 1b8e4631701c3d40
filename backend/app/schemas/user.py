"""User-related schemas."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.models.user import UserRole, UserStatus
from app.services.availability_engine import resolve_timezone


class UserBase(BaseModel):
    """Shared user fields."""

    email: EmailStr
    first_name: str
    last_name: str
    role: UserRole = Field(default=UserRole.MEMBER)
    timezone: str | None = None

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str | None) -> str | None:
        if value is not None:
            resolve_timezone(value)
        return value


class UserCreate(UserBase):
    """Payload for creating a user."""

    password: str = Field(min_length=8)
    status: UserStatus = UserStatus.ACTIVE


class UserRead(UserBase):
    """Serialized user response."""

    id: uuid.UUID
    status: UserStatus

    model_config = ConfigDict(from_attributes=True)
