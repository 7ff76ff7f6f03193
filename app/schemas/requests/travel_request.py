from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from app.core.config import settings
from app.models.requests.travel_request import RequestStatus


class TravelRequestCreate(BaseModel):
    destination: str = Field(..., min_length=1, max_length=200)
    message: Optional[str] = Field(None, max_length=2000)


class RequestStatusUpdate(BaseModel):
    status: RequestStatus
    note: Optional[str] = Field(None, max_length=settings.ACTIVITY_NOTE_MAX_LENGTH)


class AssignmentCreate(BaseModel):
    tour_guide_id: int = Field(..., alias="tourGuideId")
    note: Optional[str] = Field(None, max_length=settings.ACTIVITY_NOTE_MAX_LENGTH)

    class Config:
        populate_by_name = True


class TravelRequestResponse(BaseModel):
    id: int
    user_id: int
    destination: str
    message: Optional[str] = None
    status: RequestStatus
    tour_guide_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RequestStats(BaseModel):
    total: int = 0
    pending: int = 0
    assigned: int = 0
    in_progress: int = 0
    completed: int = 0
    cancelled: int = 0
