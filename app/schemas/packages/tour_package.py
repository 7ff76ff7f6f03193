from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class ItineraryDay(BaseModel):
    day: int = Field(..., ge=1)
    title: str
    description: str


class TourPackageBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    destination: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = None
    price: Decimal = Field(..., ge=0)
    duration_days: int = Field(..., ge=1)
    duration_nights: int = Field(0, ge=0)
    departure_days: Optional[str] = None
    seats_total: int = Field(..., ge=1)
    itinerary: List[ItineraryDay] = []
    includes: List[str] = []
    excludes: List[str] = []
    highlights: List[str] = []
    featured: bool = False
    active: bool = True


class TourPackageCreate(TourPackageBase):
    pass


class TourPackageUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    destination: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[Decimal] = Field(None, ge=0)
    duration_days: Optional[int] = Field(None, ge=1)
    duration_nights: Optional[int] = Field(None, ge=0)
    departure_days: Optional[str] = None
    seats_total: Optional[int] = Field(None, ge=1)
    itinerary: Optional[List[ItineraryDay]] = None
    includes: Optional[List[str]] = None
    excludes: Optional[List[str]] = None
    highlights: Optional[List[str]] = None
    featured: Optional[bool] = None
    active: Optional[bool] = None

    @field_validator(
        "title", "destination", "price", "duration_days", "duration_nights", "seats_total",
        "itinerary", "includes", "excludes", "highlights", "featured", "active",
        mode="before",
    )
    @classmethod
    def not_null(cls, v, info):
        # Leave a field out to keep its value; only the free-text fields can be cleared.
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class TourPackageResponse(TourPackageBase):
    id: int
    slug: str
    seats_available: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
