from sqlalchemy import Column, Integer, String, Text, ForeignKey, Enum, DateTime, Index, func
from sqlalchemy.orm import relationship
from app.core.database import Base
import enum


class RequestStatus(str, enum.Enum):
    pending = "pending"
    assigned = "assigned"
    in_progress = "in_progress"
    completed = "completed"
    cancelled = "cancelled"


# Statuses in which a request carries a tour guide.
GUIDED_STATUSES = frozenset({RequestStatus.assigned, RequestStatus.in_progress, RequestStatus.completed})
ACTIVE_STATUSES = frozenset({RequestStatus.assigned, RequestStatus.in_progress})


class TravelRequest(Base):
    __tablename__ = "travel_requests"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    destination = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    status = Column(Enum(RequestStatus), nullable=False, default=RequestStatus.pending)
    tour_guide_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="requests", foreign_keys=[user_id])
    tour_guide = relationship("User", back_populates="assigned_requests", foreign_keys=[tour_guide_id])

    __table_args__ = (
        Index("ix_travel_requests_user_id", "user_id"),
        Index("ix_travel_requests_tour_guide_status", "tour_guide_id", "status"),
        Index("ix_travel_requests_status", "status"),
    )
