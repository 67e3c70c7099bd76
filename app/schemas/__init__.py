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
from app.schemas.games import GameResultOutSchema, GameResultSubmitSchema, LeaderboardOutSchema, RankedEntrySchema
from app.schemas.progress import (
    ProgressCompleteSchema,
    ProgressOutSchema,
    ProgressSummarySchema,
    ProgressUpdateSchema,
    ProgressWriteOutSchema,
)

__all__ = [
    "AuthOutSchema",
    "GuestAuthOutSchema",
    "GuestCreateSchema",
    "GuestOutSchema",
    "LoginSchema",
    "RegisterSchema",
    "UserOutSchema",
    "UserProfileSchema",
    "VerifyOutSchema",
    "GameResultOutSchema",
    "GameResultSubmitSchema",
    "LeaderboardOutSchema",
    "RankedEntrySchema",
    "ProgressCompleteSchema",
    "ProgressOutSchema",
    "ProgressSummarySchema",
    "ProgressUpdateSchema",
    "ProgressWriteOutSchema",
]
