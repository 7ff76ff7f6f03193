from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime
from app.core.config import settings


class TourGuideCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    phone: str = Field(..., min_length=3, max_length=32)
    password: str = Field(..., min_length=settings.PASSWORD_MIN_LENGTH)


class TourGuideResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    phone: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GuideWorkload(BaseModel):
    tour_guide_id: int
    total_requests: int = 0
    active_requests: int = 0
    completed_requests: int = 0


class TourGuideWithWorkload(TourGuideResponse):
    total_requests: int = 0
    active_requests: int = 0
    completed_requests: int = 0
