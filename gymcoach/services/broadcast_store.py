"""Persistence for broadcasts, their recipient rows, and the thread messages
a fan-out writes.

Nothing here commits; callers own the transaction.
"""
from datetime import datetime

from sqlalchemy.orm import Session

from gymcoach.core.utils import utcnow
from gymcoach.models.broadcast import Broadcast, BroadcastRecipient, BroadcastStatus
from gymcoach.models.message import ThreadMessage
from gymcoach.schemas.broadcast import BroadcastCreate


def create_broadcast(db: Session, coach_id: str, data: BroadcastCreate, now: datetime | None = None) -> Broadcast:
    now = now or utcnow()
    broadcast = Broadcast(
        coach_id=coach_id,
        title=data.title,
        body=data.body,
        scheduled_at=data.scheduled_at,
        require_confirmation=data.require_confirmation,
        audience=data.audience,
        workout_id=data.workout_id,
        status=BroadcastStatus.SCHEDULED,
        created_at=now,
        updated_at=now,
    )
    db.add(broadcast)
    db.flush()
    return broadcast


def get_broadcast(db: Session, broadcast_id: str) -> Broadcast | None:
    return db.query(Broadcast).filter(Broadcast.id == broadcast_id).first()


def list_broadcasts(
    db: Session,
    coach_id: str,
    status: BroadcastStatus | None = None,
    limit: int | None = None,
) -> list[Broadcast]:
    query = db.query(Broadcast).filter(Broadcast.coach_id == coach_id)
    if status:
        query = query.filter(Broadcast.status == status)
    query = query.order_by(Broadcast.scheduled_at.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def get_due_broadcasts(db: Session, now: datetime | None = None) -> list[Broadcast]:
    now = now or utcnow()
    return (
        db.query(Broadcast)
        .filter(
            Broadcast.status == BroadcastStatus.SCHEDULED,
            Broadcast.scheduled_at <= now,
        )
        .order_by(Broadcast.scheduled_at, Broadcast.id)
        .all()
    )


def _transition(
    db: Session,
    broadcast_id: str,
    from_status: BroadcastStatus,
    to_status: BroadcastStatus,
    now: datetime,
    coach_id: str | None = None,
) -> bool:
    """Conditional status update. True only if this call moved the row."""
    query = db.query(Broadcast).filter(
        Broadcast.id == broadcast_id,
        Broadcast.status == from_status,
    )
    if coach_id is not None:
        query = query.filter(Broadcast.coach_id == coach_id)
    updated = query.update(
        {"status": to_status, "updated_at": now},
        synchronize_session=False,
    )
    return updated == 1


def claim_broadcast(db: Session, broadcast_id: str, coach_id: str | None = None, now: datetime | None = None) -> bool:
    """Move a broadcast from scheduled to processing.

    Exactly one concurrent caller wins; the rest get False.
    """
    return _transition(
        db, broadcast_id, BroadcastStatus.SCHEDULED, BroadcastStatus.PROCESSING,
        now or utcnow(), coach_id=coach_id,
    )


def cancel_broadcast(db: Session, broadcast_id: str, coach_id: str, now: datetime | None = None) -> bool:
    return _transition(
        db, broadcast_id, BroadcastStatus.SCHEDULED, BroadcastStatus.CANCELED,
        now or utcnow(), coach_id=coach_id,
    )


def mark_broadcast_sent(db: Session, broadcast_id: str, now: datetime | None = None) -> bool:
    return _transition(
        db, broadcast_id, BroadcastStatus.PROCESSING, BroadcastStatus.SENT, now or utcnow(),
    )


def existing_recipient_ids(db: Session, broadcast_id: str) -> set[str]:
    rows = (
        db.query(BroadcastRecipient.client_id)
        .filter(BroadcastRecipient.message_id == broadcast_id)
        .all()
    )
    return {client_id for (client_id,) in rows}


def add_thread_message(
    db: Session,
    *,
    coach_id: str,
    client_id: str,
    sender_id: str,
    body: str,
    group_message_id: str | None = None,
    now: datetime | None = None,
) -> ThreadMessage:
    message = ThreadMessage(
        coach_id=coach_id,
        client_id=client_id,
        sender_id=sender_id,
        body=body,
        group_message_id=group_message_id,
        created_at=now or utcnow(),
    )
    db.add(message)
    return message


def add_recipient(db: Session, broadcast_id: str, client_id: str, now: datetime | None = None) -> BroadcastRecipient:
    now = now or utcnow()
    recipient = BroadcastRecipient(
        message_id=broadcast_id,
        client_id=client_id,
        sent_at=now,
        created_at=now,
        updated_at=now,
    )
    db.add(recipient)
    return recipient
