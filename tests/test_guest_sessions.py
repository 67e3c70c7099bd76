"""Guest session lifecycle: creation, lazy expiry and invalidation."""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from app.core.errors import AuthError, AuthReason, ValidationError
from app.models import GuestSession
from app.services.guest_sessions import (
    create_guest_session,
    get_guest_session,
    invalidate_guest_session,
    validate_guest_session,
)

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_create_trims_username_and_sets_expiry(db):
    guest = await create_guest_session(db, "  Bob  ", now=T0)
    assert guest.username == "Bob"
    assert guest.is_active
    assert len(guest.session_id) == 36
    assert guest.expires_at - guest.created_at == timedelta(hours=1)


@pytest.mark.asyncio
async def test_session_ids_are_unique(db):
    a = await create_guest_session(db, "Bob")
    b = await create_guest_session(db, "Bob")
    assert a.session_id != b.session_id


@pytest.mark.asyncio
@pytest.mark.parametrize("username", [None, "", "   ", "B", " B "])
async def test_short_username_rejected(db, username):
    with pytest.raises(ValidationError):
        await create_guest_session(db, username)
    count = (await db.execute(select(func.count(GuestSession.id)))).scalar_one()
    assert count == 0


@pytest.mark.asyncio
async def test_valid_until_one_hour(db):
    guest = await create_guest_session(db, "Bob", now=T0)

    assert (await validate_guest_session(db, guest.id, now=T0)).id == guest.id
    assert (await validate_guest_session(db, guest.id, now=T0 + timedelta(minutes=59, seconds=59))).id == guest.id

    for later in (T0 + timedelta(hours=1), T0 + timedelta(hours=2)):
        with pytest.raises(AuthError) as exc:
            await validate_guest_session(db, guest.id, now=later)
        assert exc.value.reason is AuthReason.EXPIRED


@pytest.mark.asyncio
async def test_invalidate_is_idempotent(db):
    guest = await create_guest_session(db, "Bob")

    await invalidate_guest_session(db, guest.id)
    await invalidate_guest_session(db, guest.id)
    await invalidate_guest_session(db, 9999)

    with pytest.raises(AuthError):
        await validate_guest_session(db, guest.id)

    # soft delete: the row is still there
    row = (await db.execute(select(GuestSession).where(GuestSession.id == guest.id))).scalar_one()
    await db.refresh(row)
    assert row.is_active is False


@pytest.mark.asyncio
async def test_unknown_session_is_rejected(db):
    with pytest.raises(AuthError):
        await validate_guest_session(db, 12345)


@pytest.mark.asyncio
async def test_profile_lookup_ignores_inactive_sessions(db):
    from app.core.errors import NotFoundError

    guest = await create_guest_session(db, "Bob")
    assert (await get_guest_session(db, guest.id)).username == "Bob"

    await invalidate_guest_session(db, guest.id)
    with pytest.raises(NotFoundError):
        await get_guest_session(db, guest.id)
