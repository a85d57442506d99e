"""Shared test fixtures.

Tests run against a fresh in-memory SQLite database per test, with tables
created from the ORM models, so no external services are needed.
"""

from __future__ import annotations

import os
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date

os.environ["SQ_DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SQ_REDIS_URL"] = ""
os.environ["SQ_JWT_ALGORITHM"] = "HS256"
os.environ["SQ_JWT_SECRET"] = "test-secret-key-with-enough-length-for-hs256"
os.environ["SQ_JWT_ISSUER"] = "studyquest-test"
os.environ["SQ_LOG_FORMAT"] = "console"
os.environ["SQ_STREAK_TIMEZONE"] = "UTC"

import jwt  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from studyquest.auth.jwt import reset_keys  # noqa: E402
from studyquest.config import get_settings  # noqa: E402
from studyquest.database import close_db, get_engine, get_session_factory, init_db  # noqa: E402
from studyquest.db.models import Base, UserProgress  # noqa: E402
from studyquest.gamification.seed import seed_badges  # noqa: E402

TEST_USER_ID = "user-1"


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    reset_keys()
    yield
    get_settings.cache_clear()
    reset_keys()


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[None, None]:
    """Initialize the in-memory database with all tables."""
    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Session on the shared in-memory database."""
    async with get_session_factory()() as session:
        yield session


@pytest_asyncio.fixture
async def seeded_db(db_session: AsyncSession) -> AsyncSession:
    """Session with the badge catalogue seeded."""
    await seed_badges(db_session)
    return db_session


MakeUser = Callable[..., Awaitable[UserProgress]]


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> MakeUser:
    """Factory for progress rows in an arbitrary starting state."""

    async def _make(
        user_id: str = TEST_USER_ID,
        *,
        points: int = 0,
        streak: int = 0,
        longest_streak: int | None = None,
        last_active_date: date | None = None,
    ) -> UserProgress:
        progress = UserProgress(
            user_id=user_id,
            points=points,
            level=points // 500 + 1,
            streak=streak,
            longest_streak=streak if longest_streak is None else longest_streak,
            last_active_date=last_active_date,
        )
        db_session.add(progress)
        await db_session.commit()
        return progress

    return _make


def make_token(user_id: str = TEST_USER_ID, *, expires_in: int = 3600, **claims: object) -> str:
    """HS256 access token as issued by the identity provider."""
    settings = get_settings()
    now = int(time.time())
    payload = {
        "sub": user_id,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": now,
        "exp": now + expires_in,
        **claims,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token()}"}


@pytest_asyncio.fixture
async def client(seeded_db: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app, sharing the test database."""
    from studyquest.main import create_app

    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
