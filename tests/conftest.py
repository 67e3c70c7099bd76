"""
Test configuration.

SECRET_KEY and DATABASE_URL must be set before anything under ``app`` is
imported: settings are read once and the signing key has no default.
Each test gets its own in-memory SQLite database (StaticPool keeps the single
connection alive for the whole test).
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-0123456789abcdef0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.security import KIND_GUEST, KIND_REGISTERED, Identity
from app.db.base import Base
from app.db.session import get_db
from app.main import app
from app.models import GuestSession, LearningModule, User


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory):
    """Async httpx client over ASGI; get_db is bound to the test database."""

    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Data helpers
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture
async def module(db) -> LearningModule:
    mod = LearningModule(title="Waves 101", content_type="theory", difficulty_level="beginner", order_index=1)
    db.add(mod)
    await db.commit()
    await db.refresh(mod)
    return mod


@pytest_asyncio.fixture
async def user(db) -> User:
    # hash is never checked in service-level tests
    u = User(name="Grace", email="grace@example.com", hashed_password="not-a-real-hash")
    db.add(u)
    await db.commit()
    await db.refresh(u)
    return u


@pytest.fixture
def user_identity(user) -> Identity:
    return Identity(id=user.id, kind=KIND_REGISTERED, email=user.email)


@pytest_asyncio.fixture
async def guest_identity(db) -> Identity:
    from app.services.guest_sessions import create_guest_session

    guest: GuestSession = await create_guest_session(db, "Bob")
    return Identity(id=guest.id, kind=KIND_GUEST, session_id=guest.session_id, username=guest.username)
