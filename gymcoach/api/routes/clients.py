import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session, joinedload

from gymcoach.api.deps import require_role
from gymcoach.core.security import get_password_hash, validate_password_strength
from gymcoach.db.database import get_db
from gymcoach.models.audit_log import AuditAction
from gymcoach.models.client import Client
from gymcoach.models.user import User, UserRole
from gymcoach.schemas.client import ClientCreate, ClientResponse, ClientUpdate
from gymcoach.services.audit_service import log_action

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/coach/clients", tags=["Clients"])


def _build_client_response(client: Client) -> ClientResponse:
    user = client.user
    return ClientResponse(
        id=client.id,
        user_id=client.user_id,
        coach_id=client.coach_id,
        first_name=user.first_name if user else "",
        last_name=user.last_name if user else "",
        email=user.email if user else "",
        goals=client.goals,
        is_active=client.is_active,
        created_at=client.created_at,
    )


@router.get("", response_model=list[ClientResponse])
def list_clients(
    is_active: bool | None = Query(None, alias="isActive"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.COACH)),
):
    """List the coach's roster, optionally only active or inactive clients."""
    query = (
        db.query(Client)
        .options(joinedload(Client.user))
        .filter(Client.coach_id == current_user.id)
    )
    if is_active is not None:
        query = query.filter(Client.is_active == is_active)
    clients = query.order_by(Client.created_at).all()
    return [_build_client_response(c) for c in clients]


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
def create_client(
    data: ClientCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.COACH)),
):
    """Create a client login and add it to the coach's roster."""
    pw_error = validate_password_strength(data.password)
    if pw_error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=pw_error)

    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

    user = User(
        email=data.email,
        hashed_password=get_password_hash(data.password),
        first_name=data.first_name,
        last_name=data.last_name.strip(),
        role=UserRole.CLIENT,
    )
    db.add(user)
    db.flush()

    client = Client(user_id=user.id, coach_id=current_user.id, goals=data.goals)
    db.add(client)
    db.flush()

    log_action(db, user_id=current_user.id, action=AuditAction.CLIENT_CREATED, resource_type="client",
               resource_id=client.id, ip_address=request.client.host if request.client else None)
    db.commit()
    db.refresh(client)

    logger.info(f"Coach {current_user.id} added client {client.id}")
    return _build_client_response(client)


@router.patch("/{client_id}", response_model=ClientResponse)
def update_client(
    client_id: str,
    data: ClientUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.COACH)),
):
    client = db.query(Client).filter(Client.id == client_id).first()
    if not client:
        raise HTTPException(status_code=404, detail="Client not found")
    if client.coach_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    changes = data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(client, field, value)

    log_action(db, user_id=current_user.id, action=AuditAction.CLIENT_UPDATED, resource_type="client",
               resource_id=client.id, details=changes,
               ip_address=request.client.host if request.client else None)
    db.commit()
    db.refresh(client)
    return _build_client_response(client)
