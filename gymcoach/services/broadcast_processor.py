"""Broadcast fan-out.

Processing a broadcast claims it (scheduled -> processing), writes one thread
message and one recipient row per resolved client, and marks it sent. All of
that commits together: if anything fails the transaction is rolled back and
the broadcast is left ``scheduled`` for the next scheduler pass to retry.
"""
import enum
import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from gymcoach.core.utils import utcnow
from gymcoach.services import broadcast_store as store
from gymcoach.services.audience import resolve_audience

logger = logging.getLogger(__name__)


class ProcessOutcome(str, enum.Enum):
    SENT = "sent"
    NOT_FOUND = "not_found"
    NOT_CLAIMED = "not_claimed"


@dataclass(frozen=True)
class ProcessResult:
    outcome: ProcessOutcome
    recipient_count: int = 0


def process_broadcast(
    db: Session,
    broadcast_id: str,
    *,
    coach_id: str | None = None,
    now: datetime | None = None,
) -> ProcessResult:
    """Fan a broadcast out to its audience.

    Missing ids and broadcasts that are no longer ``scheduled`` are no-ops.
    When ``coach_id`` is given the claim also requires ownership. Clients that
    already hold a recipient row for this broadcast are skipped, so running
    this twice never duplicates thread messages.
    """
    now = now or utcnow()

    broadcast = store.get_broadcast(db, broadcast_id)
    if broadcast is None:
        logger.info(f"Broadcast {broadcast_id} not found, nothing to process")
        return ProcessResult(ProcessOutcome.NOT_FOUND)

    seen_status = broadcast.status
    try:
        if not store.claim_broadcast(db, broadcast_id, coach_id=coach_id, now=now):
            db.rollback()
            logger.info(f"Broadcast {broadcast_id} not claimable (status={seen_status.value}), skipping")
            return ProcessResult(ProcessOutcome.NOT_CLAIMED)

        client_ids = resolve_audience(db, broadcast.coach_id, broadcast.audience)
        already_sent = store.existing_recipient_ids(db, broadcast_id)

        written = 0
        for client_id in client_ids:
            if client_id in already_sent:
                continue
            store.add_thread_message(
                db,
                coach_id=broadcast.coach_id,
                client_id=client_id,
                sender_id=broadcast.coach_id,
                body=broadcast.body,
                group_message_id=broadcast.id,
                now=now,
            )
            store.add_recipient(db, broadcast.id, client_id, now=now)
            written += 1

        db.flush()
        store.mark_broadcast_sent(db, broadcast_id, now=now)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Broadcast {broadcast_id} sent | "
        f"recipients={written} | skipped={len(client_ids) - written}"
    )
    return ProcessResult(ProcessOutcome.SENT, recipient_count=written)


def send_now(db: Session, broadcast_id: str, coach_id: str, now: datetime | None = None) -> ProcessResult:
    """Deliver a coach's scheduled broadcast immediately, ignoring ``scheduled_at``."""
    logger.info(f"Coach {coach_id} requested immediate send of broadcast {broadcast_id}")
    return process_broadcast(db, broadcast_id, coach_id=coach_id, now=now)
