import logging
from datetime import datetime
from typing import Callable

from sqlalchemy.orm import Session, sessionmaker

from gymcoach.core.utils import utcnow
from gymcoach.db.database import SessionLocal
from gymcoach.services.broadcast_processor import ProcessOutcome, ProcessResult, process_broadcast
from gymcoach.services.broadcast_store import get_due_broadcasts

logger = logging.getLogger(__name__)

Processor = Callable[[Session, str], ProcessResult]


def dispatch_due_broadcasts(
    session_factory: sessionmaker = SessionLocal,
    processor: Processor = process_broadcast,
    now: datetime | None = None,
) -> int:
    """Process every broadcast that is scheduled and due. Returns how many were sent.

    Broadcasts are handled one after another. A failure on one is logged and
    rolled back (leaving it scheduled for the next pass) and the rest of the
    batch still runs.
    """
    logger.debug("Running broadcast dispatch pass...")

    db: Session = session_factory()
    sent = 0
    failed = 0
    try:
        due_ids = [b.id for b in get_due_broadcasts(db, now or utcnow())]
        db.rollback()
        if not due_ids:
            return 0

        for broadcast_id in due_ids:
            logger.info(f"Processing broadcast {broadcast_id}")
            try:
                result = processor(db, broadcast_id)
            except Exception as e:
                db.rollback()
                failed += 1
                logger.error(f"Failed to process broadcast {broadcast_id} | error={e}", exc_info=True)
                continue
            if result.outcome is ProcessOutcome.SENT:
                sent += 1

        logger.info(
            f"Broadcast dispatch pass complete | "
            f"due={len(due_ids)} | sent={sent} | failed={failed}"
        )
    except Exception as e:
        logger.error(f"Broadcast dispatch pass failed | error={e}", exc_info=True)
        db.rollback()
    finally:
        db.close()
    return sent
