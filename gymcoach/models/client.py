from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gymcoach.core.utils import new_id
from gymcoach.db.database import Base


class Client(Base):
    """A coach's client. The user row holds login details, this row the roster entry."""

    __tablename__ = "clients"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    coach_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    goals = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    user = relationship("User", foreign_keys=[user_id])
    coach = relationship("User", foreign_keys=[coach_id])

    __table_args__ = (
        Index("ix_clients_coach_active", "coach_id", "is_active"),
        Index("ix_clients_user", "user_id"),
    )
