"""SQLAlchemy declarative base and model imports for Alembic."""
from app.db.session import Base

# Import all models so Alembic can see them
from app.models.game_result import GameResult  # noqa: F401
from app.models.guest_session import GuestSession  # noqa: F401
from app.models.module import LearningModule  # noqa: F401
from app.models.progress import Progress  # noqa: F401
from app.models.user import User  # noqa: F401

__all__ = ["Base", "User", "GuestSession", "LearningModule", "Progress", "GameResult"]
