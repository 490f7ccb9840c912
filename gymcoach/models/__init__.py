from gymcoach.models.user import User, UserRole
from gymcoach.models.client import Client
from gymcoach.models.workout import Workout
from gymcoach.models.message import ThreadMessage
from gymcoach.models.broadcast import Broadcast, BroadcastRecipient, BroadcastStatus
from gymcoach.models.audit_log import AuditLog, AuditAction

__all__ = [
    "User",
    "UserRole",
    "Client",
    "Workout",
    "ThreadMessage",
    "Broadcast",
    "BroadcastRecipient",
    "BroadcastStatus",
    "AuditLog",
    "AuditAction",
]
