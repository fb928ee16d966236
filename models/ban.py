"""
Ban model: a (possibly open-ended) window during which a user is locked out.

A ban is active at instant t iff start_at <= t and (end_at is NULL or end_at > t).
"""
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from models.base_model import BaseModel, Base


class Ban(BaseModel, Base):
    __tablename__ = "bans"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    admin_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    start_at = Column(DateTime, nullable=False)
    end_at = Column(DateTime, nullable=True)
    reason = Column(Text, nullable=False)

    user = relationship("User", back_populates="bans_received", foreign_keys=[user_id])
    admin = relationship("User", foreign_keys=[admin_id])

    __table_args__ = (
        Index("ix_bans_user_window", "user_id", "start_at", "end_at"),
    )

    def __repr__(self):
        return f"<Ban user={self.user_id} {self.start_at} -> {self.end_at}>"
