"""Auth routes: register, login, guest sessions, verify, logout, profile. Bearer-token auth."""
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import CurrentIdentity, get_token_identity
from app.core.errors import AuthError, AuthReason, NotFoundError
from app.core.security import Identity, issue_guest_token
from app.db.session import get_db
from app.schemas.auth import (
    AuthOutSchema,
    GuestAuthOutSchema,
    GuestCreateSchema,
    GuestOutSchema,
    LoginSchema,
    RegisterSchema,
    UserOutSchema,
    UserProfileSchema,
    VerifyOutSchema,
)
from app.services.accounts import authenticate_user, get_active_user, register_user
from app.services.guest_sessions import (
    create_guest_session,
    get_guest_session,
    invalidate_guest_session,
    validate_guest_session,
)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthOutSchema, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Create a student account and return a 24h token."""
    user, token = await register_user(db, body.name, body.email, body.password)
    return AuthOutSchema(
        message="User registered successfully",
        user=UserOutSchema.model_validate(user),
        token=token,
    )


@router.post("/login", response_model=AuthOutSchema)
async def login(
    body: LoginSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    user, token = await authenticate_user(db, body.email, body.password)
    return AuthOutSchema(message="Login successful", user=UserOutSchema.model_validate(user), token=token)


@router.post("/guest", response_model=GuestAuthOutSchema)
async def create_guest(
    body: GuestCreateSchema,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Start a one-hour anonymous session."""
    guest = await create_guest_session(db, body.username)
    return GuestAuthOutSchema(
        message="Guest session created",
        guest=GuestOutSchema.model_validate(guest),
        token=issue_guest_token(guest),
    )


@router.get("/verify", response_model=VerifyOutSchema)
async def verify(
    identity: Annotated[Identity, Depends(get_token_identity)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Check the token and that the guest session or account behind it is still usable."""
    if identity.is_guest:
        guest = await validate_guest_session(db, identity.id)
        return VerifyOutSchema(valid=True, user=GuestOutSchema.model_validate(guest))

    try:
        user = await get_active_user(db, identity.id)
    except NotFoundError:
        raise AuthError(AuthReason.INACTIVE, "User not found or inactive")
    return VerifyOutSchema(valid=True, user=UserOutSchema.model_validate(user))


@router.post("/logout")
async def logout(
    identity: Annotated[Identity, Depends(get_token_identity)],
    db: Annotated[AsyncSession, Depends(get_db)],
):
    """Guest sessions are deactivated; registered tokens simply lapse."""
    if identity.is_guest:
        await invalidate_guest_session(db, identity.id)
    return {"message": "Logout successful"}


@router.get("/profile", response_model=UserProfileSchema | GuestOutSchema)
async def profile(
    identity: CurrentIdentity,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    if identity.is_guest:
        guest = await get_guest_session(db, identity.id)
        return GuestOutSchema.model_validate(guest)
    user = await get_active_user(db, identity.id)
    return UserProfileSchema.model_validate(user)
