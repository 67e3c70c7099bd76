"""Request dependencies: bearer token -> verified, still-valid Identity."""
from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import AuthError, AuthReason, NotFoundError
from app.core.security import Identity, verify_token
from app.db.session import get_db
from app.services.accounts import get_active_user
from app.services.guest_sessions import validate_guest_session

bearer = HTTPBearer(auto_error=False)


def get_token_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
) -> Identity:
    """Signature and expiry only; no store access."""
    return verify_token(credentials.credentials if credentials else None)


async def get_current_identity(
    identity: Annotated[Identity, Depends(get_token_identity)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Identity:
    """Verified identity whose guest session or user account is still usable."""
    if identity.is_guest:
        await validate_guest_session(db, identity.id)
    else:
        try:
            await get_active_user(db, identity.id)
        except NotFoundError:
            raise AuthError(AuthReason.INACTIVE, "User not found or inactive")
    return identity


CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
