import logging
from datetime import datetime

from sqlalchemy.orm import Session

from gymcoach.core.utils import utcnow
from gymcoach.models.broadcast import BroadcastRecipient

logger = logging.getLogger(__name__)


def confirm_broadcast(db: Session, broadcast_id: str, client_id: str, now: datetime | None = None) -> bool:
    """Record a client's acknowledgement of a broadcast.

    Only the first confirmation sticks. Returns False, without raising, when
    the client has no recipient row for this broadcast or already confirmed.
    The caller is responsible for checking that ``client_id`` is the requester,
    and for committing.
    """
    now = now or utcnow()
    updated = (
        db.query(BroadcastRecipient)
        .filter(
            BroadcastRecipient.message_id == broadcast_id,
            BroadcastRecipient.client_id == client_id,
            BroadcastRecipient.confirmed_at.is_(None),
        )
        .update({"confirmed_at": now, "updated_at": now}, synchronize_session=False)
    )

    if updated:
        logger.info(f"Client {client_id} confirmed broadcast {broadcast_id}")
    else:
        logger.debug(f"No unconfirmed recipient row for broadcast {broadcast_id} / client {client_id}")
    return updated > 0
