"""GuestSession model: time-boxed anonymous identity, soft-deactivated on logout."""
from sqlalchemy import Boolean, Column, DateTime, Integer, String

from app.db.session import Base


class GuestSession(Base):
    __tablename__ = "guest_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(64), unique=True, nullable=False, index=True)  # uuid4
    username = Column(String(100), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
