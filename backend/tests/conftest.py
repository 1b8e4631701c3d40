"""Test fixtures for the booking backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")

from app.core.config import get_settings
from app.core.security import get_password_hash
from app.db.base import Base
from app.db.session import dispose_engine, get_sessionmaker
from app.main import app
from app.models import User, UserRole, UserStatus

OWNER_EMAIL = "owner@example.com"
OWNER_PASSWORD = "Passw0rd!"


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


async def create_owner(
    db_url: str,
    *,
    email: str = OWNER_EMAIL,
    password: str = OWNER_PASSWORD,
    timezone: str | None = "Europe/Paris",
    status: UserStatus = UserStatus.ACTIVE,
) -> User:
    sessionmaker = get_sessionmaker(db_url)
    async with sessionmaker() as session:
        owner = User(
            email=email,
            hashed_password=get_password_hash(password),
            first_name="Camille",
            last_name="Owner",
            role=UserRole.MEMBER,
            status=status,
            timezone=timezone,
        )
        session.add(owner)
        await session.commit()
        await session.refresh(owner)
        return owner


@pytest_asyncio.fixture()
async def owner(reset_database: None, db_url: str) -> User:
    """Active calendar owner in Europe/Paris."""
    return await create_owner(db_url)


@pytest.fixture()
def make_owner(reset_database: None, db_url: str):
    """Factory for additional calendar owners."""

    async def _make(**kwargs: object) -> User:
        return await create_owner(db_url, **kwargs)  # type: ignore[arg-type]

    return _make


@pytest_asyncio.fixture()
async def app_context(owner: User) -> AsyncIterator[dict[str, object]]:
    """Yield an async client and the seeded owner's credentials."""
    context: dict[str, object] = {
        "owner_id": owner.id,
        "owner_email": OWNER_EMAIL,
        "owner_password": OWNER_PASSWORD,
    }
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        context["client"] = client
        yield context
