from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from gymcoach.api.deps import get_current_user
from gymcoach.core.rate_limit import limiter
from gymcoach.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    get_password_hash,
    validate_password_strength,
    verify_password,
)
from gymcoach.db.database import get_db
from gymcoach.models.audit_log import AuditAction
from gymcoach.models.user import User, UserRole
from gymcoach.schemas.user import CoachRegister, RefreshRequest, Token, UserResponse
from gymcoach.services.audit_service import log_action

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _issue_tokens(user: User) -> Token:
    claims = {"sub": user.id, "role": user.role.value}
    return Token(
        access_token=create_access_token(data=claims),
        refresh_token=create_refresh_token(data=claims),
    )


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit("3/minute")
def register_coach(data: CoachRegister, request: Request, db: Session = Depends(get_db)):
    """Self-registration is for coaches only; clients are added by their coach."""
    pw_error = validate_password_strength(data.password)
    if pw_error:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=pw_error)

    if db.query(User).filter(User.email == data.email).first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered",
        )

    user = User(
        email=data.email,
        hashed_password=get_password_hash(data.password),
        first_name=data.first_name,
        last_name=data.last_name.strip(),
        phone=data.phone,
        role=UserRole.COACH,
    )
    db.add(user)
    db.flush()

    log_action(db, user_id=user.id, action=AuditAction.REGISTER, resource_type="user",
               resource_id=user.id, details={"role": user.role.value},
               ip_address=request.client.host if request.client else None)
    db.commit()
    db.refresh(user)
    return user


@router.post("/login", response_model=Token)
@limiter.limit("5/minute")
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    ip = request.client.host if request.client else None
    user = db.query(User).filter(User.email == form_data.username).first()
    if not user or not user.is_active or not verify_password(form_data.password, user.hashed_password):
        log_action(db, user_id=None, action=AuditAction.LOGIN_FAILED, resource_type="user",
                   details={"email": form_data.username}, ip_address=ip)
        db.commit()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    log_action(db, user_id=user.id, action=AuditAction.LOGIN, resource_type="user",
               resource_id=user.id, ip_address=ip)
    db.commit()
    return _issue_tokens(user)


@router.post("/refresh", response_model=Token)
def refresh(data: RefreshRequest, db: Session = Depends(get_db)):
    payload = decode_token(data.refresh_token, "refresh")
    user = db.query(User).filter(User.id == payload["sub"]).first() if payload else None
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return _issue_tokens(user)


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
