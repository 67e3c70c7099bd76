"""Guest session registry: create, validate and invalidate time-boxed anonymous identities."""
import logging
import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.errors import (
    AuthError,
    AuthReason,
    NotFoundError,
    NotFoundResource,
    ValidationError,
    ValidationReason,
)
from app.models.guest_session import GuestSession

logger = logging.getLogger(__name__)

MIN_USERNAME_LENGTH = 2
MAX_USERNAME_LENGTH = 100


def _clean_username(username: str | None) -> str:
    name = (username or "").strip()
    if not name:
        raise ValidationError(ValidationReason.EMPTY_FIELD, "username", "Username is required")
    if len(name) < MIN_USERNAME_LENGTH or len(name) > MAX_USERNAME_LENGTH:
        raise ValidationError(
            ValidationReason.OUT_OF_RANGE,
            "username",
            f"Username must be between {MIN_USERNAME_LENGTH} and {MAX_USERNAME_LENGTH} characters",
        )
    return name


async def create_guest_session(
    db: AsyncSession,
    username: str | None,
    now: datetime | None = None,
) -> GuestSession:
    """Persist a new active guest session expiring guest_session_ttl_minutes from now."""
    name = _clean_username(username)
    now = now or datetime.now(timezone.utc)
    ttl = timedelta(minutes=get_settings().guest_session_ttl_minutes)

    guest = GuestSession(
        session_id=str(uuid.uuid4()),
        username=name,
        created_at=now,
        expires_at=now + ttl,
        is_active=True,
    )
    db.add(guest)
    await db.commit()
    await db.refresh(guest)
    logger.info("Guest session %s created", guest.id)
    return guest


async def validate_guest_session(
    db: AsyncSession,
    guest_id: int,
    now: datetime | None = None,
) -> GuestSession:
    """Return the session if it is active and not yet expired.

    Expiry is evaluated here, at read time; expired rows are never swept.
    """
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        select(GuestSession).where(
            GuestSession.id == guest_id,
            GuestSession.is_active.is_(True),
            GuestSession.expires_at > now,
        )
    )
    guest = result.scalar_one_or_none()
    if guest is None:
        logger.info("Guest session %s rejected: inactive or expired", guest_id)
        raise AuthError(AuthReason.EXPIRED, "Guest session expired")
    return guest


async def get_guest_session(db: AsyncSession, guest_id: int) -> GuestSession:
    result = await db.execute(
        select(GuestSession).where(GuestSession.id == guest_id, GuestSession.is_active.is_(True))
    )
    guest = result.scalar_one_or_none()
    if guest is None:
        raise NotFoundError(NotFoundResource.SESSION, "Session not found")
    return guest


async def invalidate_guest_session(db: AsyncSession, guest_id: int) -> None:
    """Soft-deactivate; calling it again (or for an unknown id) changes nothing."""
    await db.execute(update(GuestSession).where(GuestSession.id == guest_id).values(is_active=False))
    await db.commit()
    logger.info("Guest session %s invalidated", guest_id)
