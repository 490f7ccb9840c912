from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator

from gymcoach.models.user import UserRole
from gymcoach.schemas.common import CamelModel


class CoachRegister(CamelModel):
    email: EmailStr
    password: str
    first_name: str
    last_name: str = ""
    phone: Optional[str] = None

    @field_validator("first_name")
    @classmethod
    def require_first_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("First name is required")
        return v


class UserResponse(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: UserRole
    is_active: bool
    created_at: Optional[datetime] = None


class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(CamelModel):
    refresh_token: str
