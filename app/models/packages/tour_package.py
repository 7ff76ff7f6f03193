from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Numeric, JSON, CheckConstraint, Index, func
)
from sqlalchemy.orm import relationship
from app.core.database import Base


class TourPackage(Base):
    __tablename__ = "tour_packages"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String, unique=True, index=True, nullable=False)
    title = Column(String, nullable=False)
    destination = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String, nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    duration_days = Column(Integer, nullable=False, default=1)
    duration_nights = Column(Integer, nullable=False, default=0)
    departure_days = Column(String, nullable=True)  # free text, e.g. "Every Saturday"
    seats_total = Column(Integer, nullable=False)
    seats_available = Column(Integer, nullable=False)
    itinerary = Column(JSON, nullable=False, default=list)  # [{day, title, description}]
    includes = Column(JSON, nullable=False, default=list)
    excludes = Column(JSON, nullable=False, default=list)
    highlights = Column(JSON, nullable=False, default=list)
    featured = Column(Boolean, nullable=False, default=False)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    bookings = relationship("Booking", back_populates="package")

    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_tour_packages_price"),
        CheckConstraint("duration_days >= 1", name="ck_tour_packages_duration_days"),
        CheckConstraint("duration_nights >= 0", name="ck_tour_packages_duration_nights"),
        CheckConstraint("seats_total >= 1", name="ck_tour_packages_seats_total"),
        CheckConstraint(
            "seats_available >= 0 AND seats_available <= seats_total",
            name="ck_tour_packages_seats_available",
        ),
        Index("ix_tour_packages_destination", "destination"),
        Index("ix_tour_packages_active_featured", "active", "featured"),
    )

    @property
    def seats_reserved(self) -> int:
        return self.seats_total - self.seats_available
