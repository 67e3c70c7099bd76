"""Game routes: result submission, leaderboards and statistics."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import CurrentIdentity
from app.db.session import get_db
from app.schemas.games import (
    GameResultOutSchema,
    GameResultSubmitSchema,
    LeaderboardOutSchema,
    RankedEntrySchema,
)
from app.services.games import player_stats, record_game_result
from app.services.leaderboard import personal_best, system_stats, top_results

router = APIRouter(prefix="/api/games", tags=["games"])


@router.post("/result", response_model=GameResultOutSchema, status_code=status.HTTP_201_CREATED)
async def submit_result(
    body: GameResultSubmitSchema,
    identity: CurrentIdentity,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    result = await record_game_result(
        db,
        identity,
        game_type=body.game_type,
        score=body.score,
        level_reached=body.level_reached,
        time_played=body.time_played,
        metadata=body.metadata,
    )
    return GameResultOutSchema(
        message="Result saved",
        result_id=result.id,
        score=result.score,
        level_reached=result.level_reached,
    )


@router.get("/leaderboard/{game_type}", response_model=LeaderboardOutSchema)
async def leaderboard(
    game_type: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: Annotated[str | None, Query()] = None,
):
    """Public leaderboard. ``limit`` is taken as raw text so bad values fall back to the default."""
    entries = await top_results(db, game_type, limit)
    return LeaderboardOutSchema(
        game_type=game_type,
        total_entries=len(entries),
        leaderboard=[RankedEntrySchema.model_validate(e) for e in entries],
    )


@router.get("/stats")
async def stats(
    identity: CurrentIdentity,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    return await player_stats(db, identity)


@router.get("/personal-best/{game_type}")
async def get_personal_best(
    game_type: str,
    identity: CurrentIdentity,
    db: Annotated[AsyncSession, Depends(get_db)],
):
    return await personal_best(db, identity, game_type)


@router.get("/system-stats")
async def get_system_stats(db: Annotated[AsyncSession, Depends(get_db)]):
    return await system_stats(db)
