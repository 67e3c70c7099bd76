from app.models.user import User
from app.models.guest_session import GuestSession
from app.models.module import LearningModule
from app.models.progress import Progress
from app.models.game_result import GameResult

__all__ = ["User", "GuestSession", "LearningModule", "Progress", "GameResult"]
