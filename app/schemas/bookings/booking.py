from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from app.models.bookings.booking import BookingStatus


class BookingContact(BaseModel):
    contact_name: str = Field(..., min_length=1, max_length=120)
    contact_email: EmailStr
    contact_phone: str = Field(..., min_length=3, max_length=32)


class BookingCreate(BookingContact):
    package_id: int
    departure_date: date
    # Range checks happen in BookingService so they surface as domain errors.
    num_travelers: int
    special_requests: Optional[str] = Field(None, max_length=2000)


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BookingResponse(BaseModel):
    id: int
    package_id: int
    user_id: int
    departure_date: date
    num_travelers: int
    contact_name: str
    contact_email: str
    contact_phone: str
    special_requests: Optional[str] = None
    total_price: Decimal
    status: BookingStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
