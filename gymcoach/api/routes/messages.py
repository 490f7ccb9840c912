import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session

from gymcoach.api.deps import get_current_user
from gymcoach.db.database import get_db
from gymcoach.models.audit_log import AuditAction
from gymcoach.models.client import Client
from gymcoach.models.user import User, UserRole
from gymcoach.schemas.message import MarkReadResponse, ThreadMessageCreate, ThreadMessageResponse
from gymcoach.services.audit_service import log_action
from gymcoach.services.threads import get_thread, mark_thread_read, send_thread_message

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["Messages"])


def _authorize_thread(db: Session, current_user: User, coach_id: str, client_id: str) -> None:
    """Coaches may use their own threads; clients only the thread for their own roster entry."""
    if current_user.role == UserRole.ADMIN:
        return
    if current_user.role == UserRole.COACH and current_user.id == coach_id:
        return
    if current_user.role == UserRole.CLIENT:
        own = (
            db.query(Client)
            .filter(
                Client.id == client_id,
                Client.user_id == current_user.id,
                Client.coach_id == coach_id,
            )
            .first()
        )
        if own:
            return
    logger.warning(
        f"User {current_user.id} ({current_user.role.value}) denied access to thread {coach_id}/{client_id}"
    )
    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")


@router.get(
    "/thread/{coach_id}/{client_id}",
    response_model=list[ThreadMessageResponse],
    response_model_exclude_unset=True,
)
def read_thread(
    coach_id: str,
    client_id: str,
    limit: int | None = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get a coach/client thread, broadcast messages included."""
    _authorize_thread(db, current_user, coach_id, client_id)
    return [ThreadMessageResponse(**entry) for entry in get_thread(db, coach_id, client_id, limit=limit)]


@router.post(
    "/thread/{coach_id}/{client_id}",
    response_model=ThreadMessageResponse,
    response_model_exclude_unset=True,
    status_code=status.HTTP_201_CREATED,
)
def post_to_thread(
    coach_id: str,
    client_id: str,
    data: ThreadMessageCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _authorize_thread(db, current_user, coach_id, client_id)
    message = send_thread_message(db, coach_id, client_id, current_user.id, data.body)
    log_action(db, user_id=current_user.id, action=AuditAction.MESSAGE_SENT, resource_type="message",
               resource_id=message.id, details={"length": len(data.body)},
               ip_address=request.client.host if request.client else None)
    db.commit()
    db.refresh(message)

    logger.info(f"Message sent in thread {coach_id}/{client_id} by user {current_user.id}")
    return ThreadMessageResponse(
        id=message.id,
        coach_id=message.coach_id,
        client_id=message.client_id,
        sender_id=message.sender_id,
        body=message.body,
        group_message_id=message.group_message_id,
        created_at=message.created_at,
        read_at=message.read_at,
    )


@router.post("/thread/{coach_id}/{client_id}/mark-read", response_model=MarkReadResponse)
def mark_read(
    coach_id: str,
    client_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Mark the other party's messages in this thread as read."""
    _authorize_thread(db, current_user, coach_id, client_id)
    updated = mark_thread_read(db, coach_id, client_id, current_user.id)
    db.commit()

    logger.debug(f"Marked {updated} messages as read in thread {coach_id}/{client_id}")
    return MarkReadResponse(success=True, marked_count=updated)
