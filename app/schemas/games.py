"""Pydantic schemas for game results and leaderboards."""
from datetime import datetime
from typing import Any

from pydantic import BaseModel


class GameResultSubmitSchema(BaseModel):
    game_type: str | None = None
    score: int | None = None
    level_reached: int | None = None
    time_played: int | None = None
    metadata: Any = None


class GameResultOutSchema(BaseModel):
    message: str
    result_id: int
    score: int
    level_reached: int


class RankedEntrySchema(BaseModel):
    rank: int
    score: int
    level_reached: int
    time_played: int
    played_at: datetime | None = None
    player_name: str
    player_type: str

    class Config:
        from_attributes = True


class LeaderboardOutSchema(BaseModel):
    game_type: str
    total_entries: int
    leaderboard: list[RankedEntrySchema]
