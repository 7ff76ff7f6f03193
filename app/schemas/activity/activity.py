from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class ActivityLogEntry(BaseModel):
    """An entry waiting to be appended to the trail."""

    actor_id: Optional[int] = None
    actor_role: str
    action: str
    request_id: Optional[int] = None
    booking_id: Optional[int] = None
    from_status: Optional[str] = None
    to_status: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[datetime] = None


class ActivityLogResponse(ActivityLogEntry):
    id: int

    class Config:
        from_attributes = True
