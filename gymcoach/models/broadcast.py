import enum

from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey, Enum, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gymcoach.core.utils import new_id
from gymcoach.db.database import Base
from gymcoach.db.types import AudienceType


class BroadcastStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    PROCESSING = "processing"
    SENT = "sent"
    CANCELED = "canceled"


class Broadcast(Base):
    """A coach announcement fanned out to many client threads.

    Status lifecycle:
    - scheduled -> processing -> sent
    - scheduled -> canceled
    """

    __tablename__ = "group_messages"

    id = Column(String(36), primary_key=True, default=new_id)
    coach_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=True)
    body = Column(Text, nullable=False)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    require_confirmation = Column(Boolean, default=False, nullable=False)
    audience = Column(AudienceType, nullable=False)
    workout_id = Column(String(36), ForeignKey("workouts.id", ondelete="SET NULL"), nullable=True)
    status = Column(
        Enum(
            BroadcastStatus,
            name="broadcast_status",
            native_enum=False,
            length=20,
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=BroadcastStatus.SCHEDULED,
    )

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    recipients = relationship("BroadcastRecipient", back_populates="broadcast", passive_deletes=True)

    __table_args__ = (
        Index("ix_group_messages_coach", "coach_id"),
        Index("ix_group_messages_status_scheduled", "status", "scheduled_at"),
    )


class BroadcastRecipient(Base):
    """Delivery and confirmation tracking for one (broadcast, client) pair."""

    __tablename__ = "group_message_recipients"

    id = Column(String(36), primary_key=True, default=new_id)
    message_id = Column(String(36), ForeignKey("group_messages.id", ondelete="CASCADE"), nullable=False)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="CASCADE"), nullable=False)
    sent_at = Column(DateTime(timezone=True), nullable=True)
    confirmed_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    broadcast = relationship("Broadcast", back_populates="recipients")

    __table_args__ = (
        UniqueConstraint("message_id", "client_id", name="uq_group_message_recipient"),
        Index("ix_gmr_client", "client_id"),
    )
