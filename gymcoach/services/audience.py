import logging

from sqlalchemy.orm import Session

from gymcoach.models.client import Client
from gymcoach.schemas.audience import AllClientsAudience, ClientListAudience

logger = logging.getLogger(__name__)


def get_active_client_ids(db: Session, coach_id: str) -> list[str]:
    rows = (
        db.query(Client.id)
        .filter(Client.coach_id == coach_id, Client.is_active == True)  # noqa: E712
        .order_by(Client.created_at, Client.id)
        .all()
    )
    return [client_id for (client_id,) in rows]


def resolve_audience(
    db: Session,
    coach_id: str,
    audience: AllClientsAudience | ClientListAudience,
) -> list[str]:
    """Turn an audience descriptor into client ids, as of right now.

    Explicit id lists are returned as given: no check that the clients exist,
    are active, or belong to ``coach_id``. An empty result is not an error.
    """
    if isinstance(audience, AllClientsAudience):
        client_ids = get_active_client_ids(db, coach_id)
    else:
        client_ids = list(audience.ids)
    logger.debug(f"Resolved audience {audience.type} for coach {coach_id} to {len(client_ids)} clients")
    return client_ids
