"""
RefreshSession model: the single refresh credential a user currently holds.
Fields:
- user_id (String(36)) - FK to users.id, unique: one session per user
- token - the signed refresh token itself, unique
- expires_at - naive UTC; rows past this instant no longer rotate
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from models.base_model import BaseModel, Base


class RefreshSession(BaseModel, Base):
    __tablename__ = "refresh_sessions"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    token = Column(String(512), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime, nullable=False)

    user = relationship("User", back_populates="refresh_session")

    def __repr__(self):
        return f"<RefreshSession user={self.user_id} expires_at={self.expires_at}>"
