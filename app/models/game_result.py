"""GameResult model: append-only log of game attempts, owned by a user or a guest session."""
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from app.core.errors import ValidationError, ValidationReason
from app.db.session import Base


class GameResult(Base):
    __tablename__ = "game_results"
    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (guest_session_id IS NULL)",
            name="ck_game_results_single_owner",
        ),
        CheckConstraint("score >= 0", name="ck_game_results_score"),
        CheckConstraint("level_reached >= 1", name="ck_game_results_level"),
        CheckConstraint("time_played >= 0", name="ck_game_results_time"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    guest_session_id = Column(Integer, ForeignKey("guest_sessions.id"), nullable=True, index=True)

    game_type = Column(String(64), nullable=False, index=True)
    score = Column(Integer, nullable=False)
    level_reached = Column(Integer, nullable=False)
    time_played = Column(Integer, nullable=False)  # seconds
    # "metadata" is reserved on declarative classes
    metadata_json = Column("metadata", Text, nullable=True)
    played_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @staticmethod
    def owner_columns(user_id: int | None, guest_session_id: int | None) -> dict:
        """Return the owner columns, refusing rows owned by both or by neither."""
        if (user_id is None) == (guest_session_id is None):
            raise ValidationError(
                ValidationReason.MISSING_FIELD,
                "owner",
                "A game result belongs to exactly one of a user or a guest session",
            )
        return {"user_id": user_id, "guest_session_id": guest_session_id}
