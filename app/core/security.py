"""Password hashing and signed identity tokens (JWT) for registered users and guests."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from app.core.config import get_settings
from app.core.errors import AuthError, AuthReason

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

KIND_REGISTERED = "registered"
KIND_GUEST = "guest"
IDENTITY_KINDS = (KIND_REGISTERED, KIND_GUEST)


@dataclass(frozen=True)
class Identity:
    """Normalized caller principal. For guests, id is the guest session row id."""

    id: int
    kind: str
    session_id: str | None = None
    email: str | None = None
    username: str | None = None

    @property
    def is_guest(self) -> bool:
        return self.kind == KIND_GUEST


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def issue_token(claims: dict[str, Any], ttl: timedelta) -> str:
    """Sign a claim set; iat/exp are added here."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    to_encode = dict(claims)
    to_encode.update({"iat": now, "exp": now + ttl})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def issue_registered_token(user) -> str:
    settings = get_settings()
    return issue_token(
        {"userId": user.id, "email": user.email, "kind": KIND_REGISTERED},
        timedelta(minutes=settings.registered_token_ttl_minutes),
    )


def issue_guest_token(guest) -> str:
    settings = get_settings()
    return issue_token(
        {
            "guestId": guest.id,
            "sessionId": guest.session_id,
            "username": guest.username,
            "kind": KIND_GUEST,
        },
        timedelta(minutes=settings.guest_token_ttl_minutes),
    )


def verify_token(token: str | None) -> Identity:
    """Check signature and expiry, then normalize the claims into an Identity.

    Raises AuthError with reason MISSING, EXPIRED or INVALID. The ``kind``
    claim is mandatory: a token without one is never promoted to a
    registered identity.
    """
    if not token:
        raise AuthError(AuthReason.MISSING, "Access token required")

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except ExpiredSignatureError:
        raise AuthError(AuthReason.EXPIRED, "Token expired")
    except JWTError:
        raise AuthError(AuthReason.INVALID, "Invalid token")

    kind = payload.get("kind")
    if kind not in IDENTITY_KINDS:
        raise AuthError(AuthReason.INVALID, "Token has no valid kind claim")

    subject = payload.get("userId")
    if subject is None:
        subject = payload.get("guestId")
    try:
        subject_id = int(subject)
    except (TypeError, ValueError):
        raise AuthError(AuthReason.INVALID, "Token has no subject")

    if kind == KIND_GUEST and not payload.get("sessionId"):
        raise AuthError(AuthReason.INVALID, "Guest token has no session id")

    return Identity(
        id=subject_id,
        kind=kind,
        session_id=payload.get("sessionId"),
        email=payload.get("email"),
        username=payload.get("username"),
    )
