import enum

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from gymcoach.db.database import Base


class AuditAction(str, enum.Enum):
    LOGIN = "login"
    LOGIN_FAILED = "login_failed"
    REGISTER = "register"
    BROADCAST_CREATED = "broadcast_created"
    BROADCAST_CANCELED = "broadcast_canceled"
    BROADCAST_SENT_NOW = "broadcast_sent_now"
    BROADCAST_CONFIRMED = "broadcast_confirmed"
    CLIENT_CREATED = "client_created"
    CLIENT_UPDATED = "client_updated"
    MESSAGE_SENT = "message_sent"


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)  # null for failed logins
    action = Column(String(50), nullable=False)
    resource_type = Column(String(50), nullable=False)
    resource_id = Column(String(36), nullable=True)
    details = Column(Text, nullable=True)  # JSON string with extra context
    ip_address = Column(String(45), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_audit_user_created", "user_id", "created_at"),
        Index("ix_audit_resource", "resource_type", "resource_id"),
        Index("ix_audit_action_created", "action", "created_at"),
    )
