from app.services.accounts import authenticate_user, get_active_user, register_user
from app.services.games import player_stats, record_game_result
from app.services.guest_sessions import create_guest_session, invalidate_guest_session, validate_guest_session
from app.services.leaderboard import clamp_limit, personal_best, system_stats, top_results
from app.services.progress import complete_progress, get_or_create_progress, upsert_progress

__all__ = [
    "authenticate_user",
    "get_active_user",
    "register_user",
    "player_stats",
    "record_game_result",
    "create_guest_session",
    "invalidate_guest_session",
    "validate_guest_session",
    "clamp_limit",
    "personal_best",
    "system_stats",
    "top_results",
    "complete_progress",
    "get_or_create_progress",
    "upsert_progress",
]
