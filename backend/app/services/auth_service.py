"""Credential checks and token issuance for calendar owners."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.security import create_access_token, verify_password
from app.models.user import User, UserStatus
from app.schemas.auth import Token
from app.services import user_service

logger = logging.getLogger(__name__)


async def authenticate_user(
    session: AsyncSession, email: str, password: str
) -> User | None:
    """Return the active user matching the credentials, else ``None``."""
    user = await user_service.get_user_by_email(session, email=email.lower())
    if user is None or not verify_password(password, user.hashed_password):
        return None
    if user.status != UserStatus.ACTIVE:
        logger.info("Login refused for %s user %s", user.status.value, user.id)
        return None
    return user


def issue_token(user: User) -> Token:
    """Bearer token carrying the user id as subject and the role claim."""
    expires_in = get_settings().access_token_expire_minutes * 60
    access_token = create_access_token(str(user.id), role=user.role.value)
    return Token(access_token=access_token, expires_in=expires_in)
