"""Game results: append-only recording and per-player statistics."""
import json
import logging
from typing import Any

from sqlalchemy import ColumnElement, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ValidationError, ValidationReason
from app.core.security import Identity
from app.models.game_result import GameResult

logger = logging.getLogger(__name__)

RECENT_GAMES_LIMIT = 10
MAX_GAME_TYPE_LENGTH = 64


def _require(value: Any, field: str) -> None:
    if value is None:
        raise ValidationError(ValidationReason.MISSING_FIELD, field, f"{field} is required")


def owner_filter(identity: Identity) -> ColumnElement[bool]:
    """WHERE clause selecting the rows that belong to this identity."""
    if identity.is_guest:
        return GameResult.guest_session_id == identity.id
    return GameResult.user_id == identity.id


def decode_metadata(raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError:
        return raw


async def record_game_result(
    db: AsyncSession,
    identity: Identity,
    game_type: str | None,
    score: int | None,
    level_reached: int | None,
    time_played: int | None,
    metadata: Any = None,
) -> GameResult:
    """Validate and insert one game attempt. Results are never updated afterwards."""
    for value, field in (
        (game_type, "game_type"),
        (score, "score"),
        (level_reached, "level_reached"),
        (time_played, "time_played"),
    ):
        _require(value, field)

    game_type = game_type.strip()
    if not game_type:
        raise ValidationError(ValidationReason.EMPTY_FIELD, "game_type", "game_type cannot be empty")
    if len(game_type) > MAX_GAME_TYPE_LENGTH:
        raise ValidationError(
            ValidationReason.OUT_OF_RANGE,
            "game_type",
            f"game_type cannot exceed {MAX_GAME_TYPE_LENGTH} characters",
        )
    if score < 0:
        raise ValidationError(ValidationReason.OUT_OF_RANGE, "score", "score cannot be negative")
    if level_reached < 1:
        raise ValidationError(ValidationReason.OUT_OF_RANGE, "level_reached", "level_reached must be at least 1")
    if time_played < 0:
        raise ValidationError(ValidationReason.OUT_OF_RANGE, "time_played", "time_played cannot be negative")

    owner = GameResult.owner_columns(
        user_id=None if identity.is_guest else identity.id,
        guest_session_id=identity.id if identity.is_guest else None,
    )
    result = GameResult(
        **owner,
        game_type=game_type,
        score=score,
        level_reached=level_reached,
        time_played=time_played,
        metadata_json=json.dumps(metadata) if metadata is not None else None,
    )
    db.add(result)
    await db.commit()
    await db.refresh(result)

    logger.info("Recorded %s result %s (%s)", game_type, result.id, identity.kind)
    return result


async def player_stats(db: AsyncSession, identity: Identity) -> dict:
    """Overall aggregates, per-game-type aggregates and the most recent games."""
    owned = owner_filter(identity)

    general = (
        await db.execute(
            select(
                func.count(GameResult.id).label("total_games_played"),
                func.count(func.distinct(GameResult.game_type)).label("unique_games_played"),
                func.max(GameResult.score).label("best_score"),
                func.avg(GameResult.score).label("average_score"),
                func.max(GameResult.level_reached).label("highest_level"),
                func.avg(GameResult.level_reached).label("average_level"),
                func.sum(GameResult.time_played).label("total_time_played"),
                func.min(GameResult.played_at).label("first_game"),
                func.max(GameResult.played_at).label("last_game"),
            ).where(owned)
        )
    ).mappings().one()

    best_score = func.max(GameResult.score).label("best_score")
    by_type = (
        await db.execute(
            select(
                GameResult.game_type,
                func.count(GameResult.id).label("games_played"),
                best_score,
                func.avg(GameResult.score).label("average_score"),
                func.max(GameResult.level_reached).label("highest_level"),
                func.sum(GameResult.time_played).label("total_time"),
            )
            .where(owned)
            .group_by(GameResult.game_type)
            .order_by(desc(best_score), GameResult.game_type)
        )
    ).mappings().all()

    recent = (
        await db.execute(
            select(
                GameResult.game_type,
                GameResult.score,
                GameResult.level_reached,
                GameResult.time_played,
                GameResult.played_at,
            )
            .where(owned)
            .order_by(GameResult.played_at.desc(), GameResult.id.desc())
            .limit(RECENT_GAMES_LIMIT)
        )
    ).mappings().all()

    return {
        "general": dict(general),
        "by_game_type": [dict(row) for row in by_type],
        "recent_games": [dict(row) for row in recent],
    }
