import logging
from datetime import datetime
from typing import Any

from sqlalchemy import desc
from sqlalchemy.orm import Session

from gymcoach.core.utils import utcnow
from gymcoach.models.broadcast import Broadcast, BroadcastRecipient
from gymcoach.models.message import ThreadMessage
from gymcoach.models.workout import Workout
from gymcoach.services.broadcast_store import add_thread_message

logger = logging.getLogger(__name__)


def _base_fields(msg: ThreadMessage) -> dict[str, Any]:
    return {
        "id": msg.id,
        "coach_id": msg.coach_id,
        "client_id": msg.client_id,
        "sender_id": msg.sender_id,
        "body": msg.body,
        "group_message_id": msg.group_message_id,
        "created_at": msg.created_at,
        "read_at": msg.read_at,
    }


def get_thread(db: Session, coach_id: str, client_id: str, limit: int | None = None) -> list[dict[str, Any]]:
    """Messages between a coach and a client, oldest first.

    With ``limit``, only the most recent ``limit`` messages are returned.
    Broadcast-originated messages carry the broadcast's title, confirmation
    requirement, this client's confirmation time, and the linked workout.
    Those keys are omitted when the broadcast no longer exists; the message
    itself is always returned.
    """
    query = (
        db.query(ThreadMessage)
        .filter(ThreadMessage.coach_id == coach_id, ThreadMessage.client_id == client_id)
        .order_by(desc(ThreadMessage.created_at), desc(ThreadMessage.id))
    )
    if limit:
        query = query.limit(limit)
    rows = list(reversed(query.all()))

    # Batch-load broadcast metadata for the page to avoid N+1
    group_ids = {m.group_message_id for m in rows if m.group_message_id}
    broadcasts: dict[str, Broadcast] = {}
    confirmations: dict[str, datetime | None] = {}
    workout_names: dict[str, str] = {}
    if group_ids:
        broadcasts = {
            b.id: b for b in db.query(Broadcast).filter(Broadcast.id.in_(group_ids)).all()
        }
        confirmations = {
            message_id: confirmed_at
            for message_id, confirmed_at in (
                db.query(BroadcastRecipient.message_id, BroadcastRecipient.confirmed_at)
                .filter(
                    BroadcastRecipient.message_id.in_(group_ids),
                    BroadcastRecipient.client_id == client_id,
                )
                .all()
            )
        }
        workout_ids = {b.workout_id for b in broadcasts.values() if b.workout_id}
        if workout_ids:
            workout_names = {
                wid: name
                for wid, name in db.query(Workout.id, Workout.name).filter(Workout.id.in_(workout_ids)).all()
            }

    result = []
    for msg in rows:
        entry = _base_fields(msg)
        broadcast = broadcasts.get(msg.group_message_id) if msg.group_message_id else None
        if broadcast is not None:
            entry["group_message_title"] = broadcast.title
            entry["requires_confirmation"] = bool(broadcast.require_confirmation)
            entry["confirmed_at"] = confirmations.get(broadcast.id)
            entry["workout_id"] = broadcast.workout_id
            if broadcast.workout_id in workout_names:
                entry["workout_name"] = workout_names[broadcast.workout_id]
        elif msg.group_message_id:
            logger.debug(f"Broadcast {msg.group_message_id} for message {msg.id} is gone, skipping enrichment")
        result.append(entry)
    return result


def send_thread_message(db: Session, coach_id: str, client_id: str, sender_id: str, body: str) -> ThreadMessage:
    message = add_thread_message(
        db,
        coach_id=coach_id,
        client_id=client_id,
        sender_id=sender_id,
        body=body,
    )
    db.flush()
    return message


def mark_thread_read(db: Session, coach_id: str, client_id: str, reader_id: str, now: datetime | None = None) -> int:
    """Mark the other party's unread messages in a thread as read. Returns the count."""
    return (
        db.query(ThreadMessage)
        .filter(
            ThreadMessage.coach_id == coach_id,
            ThreadMessage.client_id == client_id,
            ThreadMessage.sender_id != reader_id,
            ThreadMessage.read_at.is_(None),
        )
        .update({"read_at": now or utcnow()}, synchronize_session=False)
    )
