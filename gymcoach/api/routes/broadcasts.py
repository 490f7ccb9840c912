import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymcoach.api.deps import get_current_client, require_role
from gymcoach.db.database import get_db
from gymcoach.models.audit_log import AuditAction
from gymcoach.models.broadcast import Broadcast, BroadcastStatus
from gymcoach.models.client import Client
from gymcoach.models.user import User, UserRole
from gymcoach.models.workout import Workout
from gymcoach.schemas.broadcast import (
    BroadcastCreate,
    BroadcastResponse,
    ConfirmResponse,
    SendNowResponse,
)
from gymcoach.services import broadcast_store as store
from gymcoach.services.audit_service import log_action
from gymcoach.services.broadcast_processor import ProcessOutcome, send_now
from gymcoach.services.confirmation import confirm_broadcast

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Broadcasts"])


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


def _get_owned_broadcast(db: Session, broadcast_id: str, coach: User) -> Broadcast:
    broadcast = store.get_broadcast(db, broadcast_id)
    if not broadcast:
        raise HTTPException(status_code=404, detail="Group message not found")
    if broadcast.coach_id != coach.id:
        logger.warning(f"Coach {coach.id} attempted to act on broadcast {broadcast_id} owned by {broadcast.coach_id}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return broadcast


@router.post(
    "/coach/group-messages",
    response_model=BroadcastResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_group_message(
    data: BroadcastCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.COACH)),
):
    """Schedule a broadcast to the coach's clients."""
    if data.workout_id:
        workout = (
            db.query(Workout)
            .filter(Workout.id == data.workout_id, Workout.coach_id == current_user.id)
            .first()
        )
        if not workout:
            raise HTTPException(status_code=404, detail="Workout not found")

    broadcast = store.create_broadcast(db, current_user.id, data)
    log_action(db, user_id=current_user.id, action=AuditAction.BROADCAST_CREATED,
               resource_type="broadcast", resource_id=broadcast.id,
               details={"audience": data.audience.type, "scheduled_at": data.scheduled_at},
               ip_address=_client_ip(request))
    db.commit()
    db.refresh(broadcast)

    logger.info(
        f"Coach {current_user.id} scheduled broadcast {broadcast.id} "
        f"for {broadcast.scheduled_at} (audience={data.audience.type})"
    )
    return broadcast


@router.get("/coach/group-messages", response_model=list[BroadcastResponse])
def list_group_messages(
    status_filter: BroadcastStatus | None = Query(None, alias="status"),
    limit: int | None = Query(None, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.COACH)),
):
    """List the coach's broadcasts, most recently scheduled first."""
    return store.list_broadcasts(db, current_user.id, status=status_filter, limit=limit)


@router.post("/coach/group-messages/{broadcast_id}/cancel", response_model=BroadcastResponse)
def cancel_group_message(
    broadcast_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.COACH)),
):
    broadcast = _get_owned_broadcast(db, broadcast_id, current_user)
    if not store.cancel_broadcast(db, broadcast_id, current_user.id):
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Only scheduled messages can be canceled (status is {broadcast.status.value})",
        )

    log_action(db, user_id=current_user.id, action=AuditAction.BROADCAST_CANCELED,
               resource_type="broadcast", resource_id=broadcast_id, ip_address=_client_ip(request))
    db.commit()
    db.refresh(broadcast)
    logger.info(f"Coach {current_user.id} canceled broadcast {broadcast_id}")
    return broadcast


@router.post("/coach/group-messages/{broadcast_id}/send-now", response_model=SendNowResponse)
def send_group_message_now(
    broadcast_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.COACH)),
):
    """Deliver a scheduled broadcast immediately instead of waiting for its time."""
    broadcast = _get_owned_broadcast(db, broadcast_id, current_user)
    seen_status = broadcast.status

    try:
        result = send_now(db, broadcast_id, current_user.id)
    except IntegrityError:
        # Processor already rolled back; the broadcast is still scheduled
        logger.warning(f"Broadcast {broadcast_id} could not be sent, audience has unknown clients", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Audience names unknown clients; the message was not sent",
        )
    if result.outcome is ProcessOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Group message not found")
    if result.outcome is ProcessOutcome.NOT_CLAIMED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Only scheduled messages can be sent (status is {seen_status.value})",
        )

    log_action(db, user_id=current_user.id, action=AuditAction.BROADCAST_SENT_NOW,
               resource_type="broadcast", resource_id=broadcast_id,
               details={"recipient_count": result.recipient_count},
               ip_address=_client_ip(request))
    db.commit()
    return SendNowResponse(id=broadcast_id, status=BroadcastStatus.SENT, recipient_count=result.recipient_count)


@router.post("/group-messages/{broadcast_id}/confirm", response_model=ConfirmResponse)
def confirm_group_message(
    broadcast_id: str,
    request: Request,
    db: Session = Depends(get_db),
    client: Client = Depends(get_current_client),
):
    """Acknowledge a broadcast as the logged-in client."""
    confirmed = confirm_broadcast(db, broadcast_id, client.id)
    if confirmed:
        log_action(db, user_id=client.user_id, action=AuditAction.BROADCAST_CONFIRMED,
                   resource_type="broadcast", resource_id=broadcast_id, ip_address=_client_ip(request))
    db.commit()
    return ConfirmResponse(confirmed=confirmed)
