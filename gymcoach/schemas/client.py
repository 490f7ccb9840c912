from datetime import datetime
from typing import Optional

from pydantic import EmailStr, field_validator

from gymcoach.schemas.common import CamelModel


class ClientCreate(CamelModel):
    email: EmailStr
    first_name: str
    last_name: str = ""
    password: str
    goals: Optional[str] = None

    @field_validator("first_name")
    @classmethod
    def require_first_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("First name is required")
        return v


class ClientUpdate(CamelModel):
    is_active: Optional[bool] = None
    goals: Optional[str] = None

    @field_validator("is_active")
    @classmethod
    def is_active_not_null(cls, v: Optional[bool]) -> bool:
        # Omit the field to leave it unchanged; null is not a state
        if v is None:
            raise ValueError("isActive must be true or false")
        return v


class ClientResponse(CamelModel):
    id: str
    user_id: str
    coach_id: str
    first_name: str
    last_name: str
    email: str
    goals: Optional[str]
    is_active: bool
    created_at: Optional[datetime] = None
