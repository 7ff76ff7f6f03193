from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Index, func
from app.core.database import Base
import enum


class ActivityAction(str, enum.Enum):
    create = "create"
    assign = "assign"
    reassign = "reassign"
    status_change = "status_change"
    cancel = "cancel"
    booking_create = "booking_create"
    booking_cancel = "booking_cancel"
    booking_status = "booking_status"


class ActivityLog(Base):
    """Append-only record of who changed what, and when."""

    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, index=True)
    actor_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    actor_role = Column(String, nullable=False)
    action = Column(String, nullable=False)
    request_id = Column(Integer, ForeignKey("travel_requests.id", ondelete="CASCADE"), nullable=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=True)
    from_status = Column(String, nullable=True)
    to_status = Column(String, nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_activity_logs_request_id", "request_id"),
        Index("ix_activity_logs_booking_id", "booking_id"),
    )
