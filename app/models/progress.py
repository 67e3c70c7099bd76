"""Progress model: one row per (user, module). is_completed mirrors completion_percentage >= 100."""
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.session import Base


class Progress(Base):
    __tablename__ = "progress"
    __table_args__ = (
        UniqueConstraint("user_id", "module_id", name="uq_progress_user_module"),
        CheckConstraint(
            "completion_percentage >= 0 AND completion_percentage <= 100",
            name="ck_progress_percentage_range",
        ),
        CheckConstraint("time_spent >= 0", name="ck_progress_time_spent"),
        CheckConstraint("score >= 0", name="ck_progress_score"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    module_id = Column(Integer, ForeignKey("modules.id"), nullable=False, index=True)

    completion_percentage = Column(Integer, nullable=False, default=0)  # 0-100
    time_spent = Column(Integer, nullable=False, default=0)  # seconds
    score = Column(Integer, nullable=False, default=0)
    is_completed = Column(Boolean, nullable=False, default=False)
    last_accessed = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="progress")
    module = relationship("LearningModule")
