from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.user.user import UserRole
from app.core.database import get_db
from app.dependencies.auth import require_role
from app.schemas.admin.admin_analytics import DashboardStats
from app.services.admin.admin_analytics import AdminAnalyticsService

router = APIRouter(prefix="/admin/dashboard", tags=["Admin Analytics"])


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(db: AsyncSession = Depends(get_db), _admin=Depends(require_role(UserRole.admin))):
    return await AdminAnalyticsService.get_dashboard_stats(db)
