"""Registered accounts: registration, login and profile lookup."""
import logging
import re
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    AuthError,
    AuthReason,
    ConflictError,
    NotFoundError,
    NotFoundResource,
    ValidationError,
    ValidationReason,
)
from app.core.security import hash_password, issue_registered_token, verify_password
from app.models.user import User

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MIN_NAME_LENGTH = 2
MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 255
MIN_PASSWORD_LENGTH = 6
# bcrypt hard limit (UTF-8 bytes)
MAX_PASSWORD_BYTES = 72


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def _validate_registration(name: str | None, email: str, password: str | None) -> str:
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValidationError(ValidationReason.EMPTY_FIELD, "name", "Name is required")
    if not MIN_NAME_LENGTH <= len(clean_name) <= MAX_NAME_LENGTH:
        raise ValidationError(
            ValidationReason.OUT_OF_RANGE,
            "name",
            f"Name must be between {MIN_NAME_LENGTH} and {MAX_NAME_LENGTH} characters",
        )
    if not email:
        raise ValidationError(ValidationReason.EMPTY_FIELD, "email", "Email is required")
    if len(email) > MAX_EMAIL_LENGTH:
        raise ValidationError(
            ValidationReason.OUT_OF_RANGE, "email", f"Email cannot exceed {MAX_EMAIL_LENGTH} characters"
        )
    if not EMAIL_RE.match(email):
        raise ValidationError(ValidationReason.OUT_OF_RANGE, "email", "Invalid email")

    pwd = password or ""
    if len(pwd) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            ValidationReason.OUT_OF_RANGE,
            "password",
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
        )
    if len(pwd.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(ValidationReason.OUT_OF_RANGE, "password", "Password is too long")
    return clean_name


async def _find_by_email(db: AsyncSession, email: str) -> User | None:
    result = await db.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def register_user(
    db: AsyncSession,
    name: str | None,
    email: str | None,
    password: str | None,
) -> tuple[User, str]:
    """Create a student account and return it with a registered-identity token."""
    email_norm = normalize_email(email)
    clean_name = _validate_registration(name, email_norm, password)

    if await _find_by_email(db, email_norm) is not None:
        raise ConflictError("Email is already registered", field="email")

    user = User(
        name=clean_name,
        email=email_norm,
        hashed_password=hash_password(password),
        user_type="student",
        is_active=True,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # a concurrent registration won the unique index
        await db.rollback()
        raise ConflictError("Email is already registered", field="email")
    await db.refresh(user)

    logger.info("Registered user %s", user.id)
    return user, issue_registered_token(user)


async def authenticate_user(db: AsyncSession, email: str | None, password: str | None) -> tuple[User, str]:
    """Check credentials, stamp last_login and return the user with a fresh token."""
    email_norm = normalize_email(email)
    if not email_norm or not password:
        raise AuthError(AuthReason.INVALID, "Invalid credentials")

    user = await _find_by_email(db, email_norm)
    if user is None or not verify_password(password, user.hashed_password):
        logger.info("Failed login attempt")
        raise AuthError(AuthReason.INVALID, "Invalid credentials")
    if not user.is_active:
        raise AuthError(AuthReason.INACTIVE, "Account is deactivated")

    user.last_login = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(user)

    logger.info("User %s logged in", user.id)
    return user, issue_registered_token(user)


async def get_active_user(db: AsyncSession, user_id: int) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise NotFoundError(NotFoundResource.USER, "User not found or inactive")
    return user
