"""Leaderboard ranking and aggregate statistics over game results."""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import case, desc, func, literal, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.security import Identity
from app.models.game_result import GameResult
from app.models.guest_session import GuestSession
from app.models.user import User
from app.services.games import decode_metadata, owner_filter

ANONYMOUS_NAME = "Anonymous"
POPULAR_GAMES_LIMIT = 5
ACTIVITY_WINDOW_DAYS = 7

# score desc, then level desc, then faster time; id keeps full ties stable
RANKING_ORDER = (
    GameResult.score.desc(),
    GameResult.level_reached.desc(),
    GameResult.time_played.asc(),
    GameResult.id.asc(),
)


@dataclass
class RankedEntry:
    rank: int
    score: int
    level_reached: int
    time_played: int
    played_at: datetime | None
    player_name: str
    player_type: str


def clamp_limit(raw: Any) -> int:
    """Parse a requested leaderboard size.

    Missing, non-numeric and zero values fall back to the default; anything
    else is clamped into [1, max].
    """
    settings = get_settings()
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return settings.leaderboard_default_limit
    if limit == 0:
        return settings.leaderboard_default_limit
    return max(1, min(limit, settings.leaderboard_max_limit))


async def top_results(db: AsyncSession, game_type: str, limit: Any = None) -> list[RankedEntry]:
    """Best results for a game type; ranks are sequential, ties never share one."""
    player_name = func.coalesce(User.name, GuestSession.username, literal(ANONYMOUS_NAME))
    player_type = case(
        (User.id.is_not(None), literal("registered")),
        (GuestSession.id.is_not(None), literal("guest")),
        else_=literal("anonymous"),
    )
    result = await db.execute(
        select(
            GameResult.score,
            GameResult.level_reached,
            GameResult.time_played,
            GameResult.played_at,
            player_name.label("player_name"),
            player_type.label("player_type"),
        )
        .outerjoin(User, GameResult.user_id == User.id)
        .outerjoin(GuestSession, GameResult.guest_session_id == GuestSession.id)
        .where(GameResult.game_type == game_type)
        .order_by(*RANKING_ORDER)
        .limit(clamp_limit(limit))
    )
    return [RankedEntry(rank=position, **row) for position, row in enumerate(result.mappings().all(), start=1)]


async def personal_best(db: AsyncSession, identity: Identity, game_type: str) -> dict:
    owned = owner_filter(identity)
    summary = (
        await db.execute(
            select(
                func.max(GameResult.score).label("best_score"),
                func.max(GameResult.level_reached).label("highest_level"),
                func.min(GameResult.time_played).label("fastest_time"),
                func.count(GameResult.id).label("times_played"),
                func.avg(GameResult.score).label("average_score"),
                func.max(GameResult.played_at).label("last_played"),
            ).where(owned, GameResult.game_type == game_type)
        )
    ).mappings().one()

    best = (
        await db.execute(
            select(GameResult)
            .where(owned, GameResult.game_type == game_type)
            .order_by(*RANKING_ORDER)
            .limit(1)
        )
    ).scalar_one_or_none()

    best_game = None
    if best is not None:
        best_game = {
            "score": best.score,
            "level_reached": best.level_reached,
            "time_played": best.time_played,
            "played_at": best.played_at,
            "metadata": decode_metadata(best.metadata_json),
        }
    return {"game_type": game_type, "summary": dict(summary), "best_game": best_game}


async def system_stats(db: AsyncSession, now: datetime | None = None) -> dict:
    """Platform-wide aggregates, most played game types and daily activity for the last week."""
    players = func.count(func.distinct(GameResult.user_id)) + func.count(func.distinct(GameResult.guest_session_id))

    overall = (
        await db.execute(
            select(
                func.count(GameResult.id).label("total_games_played"),
                players.label("unique_players"),
                func.count(func.distinct(GameResult.game_type)).label("available_games"),
                func.max(GameResult.score).label("highest_score_ever"),
                func.avg(GameResult.score).label("global_average_score"),
                func.max(GameResult.level_reached).label("highest_level_ever"),
                func.sum(GameResult.time_played).label("total_playtime_seconds"),
            )
        )
    ).mappings().one()

    times_played = func.count(GameResult.id).label("times_played")
    popular = (
        await db.execute(
            select(
                GameResult.game_type,
                times_played,
                players.label("unique_players"),
                func.max(GameResult.score).label("highest_score"),
                func.avg(GameResult.score).label("average_score"),
            )
            .group_by(GameResult.game_type)
            .order_by(desc(times_played), GameResult.game_type)
            .limit(POPULAR_GAMES_LIMIT)
        )
    ).mappings().all()

    now = now or datetime.now(timezone.utc)
    game_date = func.date(GameResult.played_at).label("game_date")
    weekly = (
        await db.execute(
            select(
                game_date,
                func.count(GameResult.id).label("games_played"),
                players.label("active_players"),
            )
            .where(GameResult.played_at >= now - timedelta(days=ACTIVITY_WINDOW_DAYS))
            .group_by(game_date)
            .order_by(desc(game_date))
        )
    ).mappings().all()

    return {
        "global": dict(overall),
        "popular_games": [dict(row) for row in popular],
        "weekly_activity": [dict(row) for row in weekly],
    }
