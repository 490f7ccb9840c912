from sqlalchemy import Column, String, Text, DateTime, Index
from sqlalchemy.sql import func

from gymcoach.core.utils import new_id
from gymcoach.db.database import Base


class ThreadMessage(Base):
    """A message in the 1:1 thread between a coach and one client.

    ``group_message_id`` points back at the broadcast a message was fanned out
    from. It has no foreign key: the thread must keep rendering if that
    broadcast row goes away.
    """

    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=new_id)
    coach_id = Column(String(36), nullable=False)
    client_id = Column(String(36), nullable=False)
    sender_id = Column(String(36), nullable=False)
    body = Column(Text, nullable=False)
    group_message_id = Column(String(36), nullable=True)
    read_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        Index("ix_messages_thread_created", "coach_id", "client_id", "created_at"),
        Index("ix_messages_group_message", "group_message_id"),
    )
