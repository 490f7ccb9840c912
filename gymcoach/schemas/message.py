import html
from datetime import datetime
from typing import Optional

from pydantic import field_validator

from gymcoach.schemas.common import CamelModel


class ThreadMessageCreate(CamelModel):
    body: str

    @field_validator("body")
    @classmethod
    def sanitize_body(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Message body is required")
        # Strip HTML to prevent XSS
        return html.escape(v)


class ThreadMessageResponse(CamelModel):
    """One thread message.

    The broadcast fields (``group_message_title`` onwards) are only set for
    messages that came from a broadcast that still exists; routes serialize
    with ``exclude_unset`` so they are left out otherwise.
    """

    id: str
    coach_id: str
    client_id: str
    sender_id: str
    body: str
    group_message_id: Optional[str] = None
    created_at: datetime
    read_at: Optional[datetime] = None

    group_message_title: Optional[str] = None
    requires_confirmation: Optional[bool] = None
    confirmed_at: Optional[datetime] = None
    workout_id: Optional[str] = None
    workout_name: Optional[str] = None


class MarkReadResponse(CamelModel):
    success: bool
    marked_count: int
