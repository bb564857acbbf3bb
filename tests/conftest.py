"""Shared fixtures: in-memory SQLite database, seeded users and an artist."""

import os

# Settings are read at import time; set them before any glambook import.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["PLATFORM_TIMEZONE"] = "UTC"
os.environ["MISSING_AVAILABILITY_POLICY"] = "fallback"
os.environ["ENV"] = "test"
os.environ["SMTP_HOST"] = ""

from collections.abc import AsyncGenerator
from datetime import date, datetime

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

import glambook.models  # noqa: F401 - register tables
from glambook.core.db import get_session
from glambook.core.security import create_access_token
from glambook.main import app
from glambook.models.artist import Artist
from glambook.models.availability import ArtistAvailabilityConfig
from glambook.models.user import User, UserRole

# 2030-01-07 is a Monday; 2030-01-05 a Saturday.
MONDAY = date(2030, 1, 7)
SATURDAY = date(2030, 1, 5)
BEFORE_MONDAY = datetime(2030, 1, 1, 0, 0)

EXAMPLE_CONFIG = ArtistAvailabilityConfig(
    working_days=[1, 2, 3, 4, 5],
    start_time="10:00",
    end_time="12:00",
    session_duration=60,
    break_between_sessions=0,
)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as s:
        yield s


async def _add_user(session: AsyncSession, email: str, role: UserRole, name: str) -> User:
    user = User(email=email, full_name=name, role=role)
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user


@pytest_asyncio.fixture
async def customer(session) -> User:
    user = await _add_user(session, "customer@example.com", UserRole.CUSTOMER, "Cara Customer")
    await session.commit()
    return user


@pytest_asyncio.fixture
async def other_customer(session) -> User:
    user = await _add_user(session, "other@example.com", UserRole.CUSTOMER, "Olly Other")
    await session.commit()
    return user


@pytest_asyncio.fixture
async def admin(session) -> User:
    user = await _add_user(session, "admin@example.com", UserRole.ADMIN, "Ada Admin")
    await session.commit()
    return user


@pytest_asyncio.fixture
async def artist_user(session) -> User:
    user = await _add_user(session, "artist@example.com", UserRole.ARTIST, "Mia Makeup")
    await session.commit()
    return user


@pytest_asyncio.fixture
async def artist(session, artist_user) -> Artist:
    artist = Artist(
        user_id=artist_user.id,
        display_name="Mia Makeup",
        category="bridal",
        default_price=120.0,
        availability_settings=EXAMPLE_CONFIG.to_storage(),
    )
    session.add(artist)
    await session.commit()
    await session.refresh(artist)
    return artist


@pytest_asyncio.fixture
async def unconfigured_artist(session) -> Artist:
    user = await _add_user(session, "newbie@example.com", UserRole.ARTIST, "Nina New")
    artist = Artist(user_id=user.id, display_name="Nina New")
    session.add(artist)
    await session.commit()
    await session.refresh(artist)
    return artist


@pytest.fixture
def auth_header():
    def _make(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user.id, role=user.role.value)}"}

    return _make


@pytest_asyncio.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _override_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
