"""Pydantic schemas for registration, login and guest sessions."""
from datetime import datetime

from pydantic import BaseModel


class RegisterSchema(BaseModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None


class LoginSchema(BaseModel):
    email: str | None = None
    password: str | None = None


class GuestCreateSchema(BaseModel):
    username: str | None = None


class UserOutSchema(BaseModel):
    id: int
    name: str
    email: str
    user_type: str

    class Config:
        from_attributes = True


class UserProfileSchema(UserOutSchema):
    created_at: datetime | None = None
    last_login: datetime | None = None


class GuestOutSchema(BaseModel):
    id: int
    session_id: str
    username: str
    user_type: str = "guest"
    expires_at: datetime

    class Config:
        from_attributes = True


class AuthOutSchema(BaseModel):
    message: str
    user: UserOutSchema
    token: str


class GuestAuthOutSchema(BaseModel):
    message: str
    guest: GuestOutSchema
    token: str


class VerifyOutSchema(BaseModel):
    valid: bool
    user: UserOutSchema | GuestOutSchema
