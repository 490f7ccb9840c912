import json
import logging
from typing import Any

from sqlalchemy.orm import Session

from gymcoach.core.config import settings
from gymcoach.models.audit_log import AuditAction, AuditLog

logger = logging.getLogger(__name__)


def log_action(
    db: Session,
    *,
    user_id: str | None,
    action: AuditAction,
    resource_type: str,
    resource_id: str | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
) -> None:
    """Insert an audit log entry.

    Uses a SAVEPOINT so that failures in audit logging never corrupt
    the caller's transaction. The caller commits.
    """
    if not settings.audit_log_enabled:
        return
    try:
        with db.begin_nested():
            db.add(AuditLog(
                user_id=user_id,
                action=action.value,
                resource_type=resource_type,
                resource_id=resource_id,
                details=json.dumps(details, default=str) if details else None,
                ip_address=ip_address,
            ))
            db.flush()
    except Exception:
        logger.warning("Failed to write audit log", exc_info=True)
