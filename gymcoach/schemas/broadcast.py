import html
from datetime import datetime
from typing import Optional

from pydantic import field_validator

from gymcoach.core.utils import as_utc
from gymcoach.models.broadcast import BroadcastStatus
from gymcoach.schemas.audience import Audience
from gymcoach.schemas.common import CamelModel


class BroadcastCreate(CamelModel):
    title: Optional[str] = None
    body: str
    scheduled_at: datetime
    audience: Audience
    require_confirmation: bool = False
    workout_id: Optional[str] = None

    @field_validator("body")
    @classmethod
    def sanitize_body(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message body is required")
        # Strip HTML to prevent XSS
        return html.escape(v)

    @field_validator("title")
    @classmethod
    def sanitize_title(cls, v: Optional[str]) -> Optional[str]:
        if v and v.strip():
            return html.escape(v.strip())
        return None

    @field_validator("scheduled_at")
    @classmethod
    def normalize_scheduled_at(cls, v: datetime) -> datetime:
        return as_utc(v)

    @field_validator("workout_id")
    @classmethod
    def blank_workout_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class BroadcastResponse(CamelModel):
    id: str
    coach_id: str
    title: Optional[str]
    body: str
    scheduled_at: datetime
    require_confirmation: bool
    audience: Audience
    workout_id: Optional[str]
    status: BroadcastStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SendNowResponse(CamelModel):
    id: str
    status: BroadcastStatus
    recipient_count: int


class ConfirmResponse(CamelModel):
    confirmed: bool
