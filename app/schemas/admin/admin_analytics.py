from pydantic import BaseModel
from decimal import Decimal


class DashboardStats(BaseModel):
    total_requests: int = 0
    pending_requests: int = 0
    assigned_requests: int = 0
    in_progress_requests: int = 0
    completed_requests: int = 0
    cancelled_requests: int = 0
    total_users: int = 0
    total_agents: int = 0
    active_agents: int = 0
    total_bookings: int = 0
    pending_bookings: int = 0
    confirmed_bookings: int = 0
    completed_bookings: int = 0
    cancelled_bookings: int = 0
    revenue: Decimal = Decimal("0.00")
