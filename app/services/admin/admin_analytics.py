from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user.user import User, UserRole
from app.models.requests.travel_request import TravelRequest
from app.models.bookings.booking import Booking, BookingStatus
from app.schemas.admin.admin_analytics import DashboardStats


class AdminAnalyticsService:
    @staticmethod
    async def get_dashboard_stats(db: AsyncSession) -> DashboardStats:
        stats = {}

        request_rows = await db.execute(
            select(TravelRequest.status, func.count(TravelRequest.id)).group_by(TravelRequest.status)
        )
        for status, count in request_rows.all():
            stats[f"{status.value}_requests"] = count
        stats["total_requests"] = sum(v for k, v in stats.items() if k.endswith("_requests"))

        stats["total_users"] = await db.scalar(
            select(func.count()).select_from(User).where(User.role == UserRole.user)
        ) or 0
        stats["total_agents"] = await db.scalar(
            select(func.count()).select_from(User).where(User.role == UserRole.tour_guide)
        ) or 0
        stats["active_agents"] = await db.scalar(
            select(func.count()).select_from(User).where(
                User.role == UserRole.tour_guide,
                User.active == True,  # noqa: E712
            )
        ) or 0

        booking_rows = await db.execute(
            select(Booking.status, func.count(Booking.id)).group_by(Booking.status)
        )
        for status, count in booking_rows.all():
            stats[f"{status.value}_bookings"] = count
        stats["total_bookings"] = sum(v for k, v in stats.items() if k.endswith("_bookings"))

        # Revenue counts bookings that went ahead
        revenue = await db.scalar(
            select(func.coalesce(func.sum(Booking.total_price), 0)).where(
                Booking.status.in_([BookingStatus.confirmed, BookingStatus.completed])
            )
        )
        stats["revenue"] = Decimal(str(revenue or 0)).quantize(Decimal("0.01"))

        return DashboardStats(**stats)
