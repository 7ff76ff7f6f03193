from sqlalchemy import (
    Column, Integer, String, Text, Date, DateTime, Numeric, ForeignKey, Enum, CheckConstraint, Index, func
)
from sqlalchemy.orm import relationship
from app.core.database import Base
import enum


class BookingStatus(str, enum.Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"
    completed = "completed"


# Bookings holding seats on their package.
OPEN_BOOKING_STATUSES = frozenset({BookingStatus.pending, BookingStatus.confirmed})


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    package_id = Column(Integer, ForeignKey("tour_packages.id", ondelete="RESTRICT"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    departure_date = Column(Date, nullable=False)
    num_travelers = Column(Integer, nullable=False)
    contact_name = Column(String, nullable=False)
    contact_email = Column(String, nullable=False)
    contact_phone = Column(String, nullable=False)
    special_requests = Column(Text, nullable=True)
    total_price = Column(Numeric(10, 2), nullable=False)  # snapshot at creation
    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.pending)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    package = relationship("TourPackage", back_populates="bookings")
    user = relationship("User", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("num_travelers >= 1", name="ck_bookings_num_travelers"),
        Index("ix_bookings_package_id", "package_id"),
        Index("ix_bookings_user_id", "user_id"),
        Index("ix_bookings_status", "status"),
    )
