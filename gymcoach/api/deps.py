from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from gymcoach.core.security import decode_token
from gymcoach.db.database import get_db
from gymcoach.models.client import Client
from gymcoach.models.user import User, UserRole

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    payload = decode_token(token, "access")
    if payload is None or payload.get("sub") is None:
        raise credentials_exception

    user = db.query(User).filter(User.id == payload["sub"]).first()
    if user is None or not user.is_active:
        raise credentials_exception

    # Picked up by the request logging middleware
    request.state.user_id = user.id
    return user


def require_role(*roles: UserRole):
    """Dependency factory that checks the current user has one of the required roles."""
    def checker(current_user: User = Depends(get_current_user)):
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )
        return current_user
    return checker


def get_current_client(
    current_user: User = Depends(require_role(UserRole.CLIENT)),
    db: Session = Depends(get_db),
) -> Client:
    """The client roster entry belonging to the logged-in client user."""
    client = db.query(Client).filter(Client.user_id == current_user.id).first()
    if client is None:
        raise HTTPException(status_code=404, detail="Client profile not found")
    return client
