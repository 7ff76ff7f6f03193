from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.dependencies.auth import require_role
from app.dependencies.services import get_assignment_resolver
from app.models.user.user import UserRole
from app.schemas.guides.guide import (
    GuideWorkload, TourGuideCreate, TourGuideResponse, TourGuideWithWorkload
)
from app.services.guides.guide_service import GuideService
from app.services.requests.assignment_service import AssignmentResolver

router = APIRouter(prefix="/admin", tags=["Admin Tour Guides"])

admin_only = require_role(UserRole.admin)


@router.post("/register/tour-guide", response_model=TourGuideResponse, status_code=201)
async def register_tour_guide(
    data: TourGuideCreate,
    db: AsyncSession = Depends(get_db),
    _admin=Depends(admin_only),
):
    return await GuideService.register_tour_guide(db, data)


@router.get("/tour-guides", response_model=List[TourGuideWithWorkload])
async def list_tour_guides(
    active: Optional[bool] = None,
    skip: int = 0,
    limit: int = 50,
    db: AsyncSession = Depends(get_db),
    _admin=Depends(admin_only),
):
    return await AssignmentResolver.list_guides_with_workload(db, active=active, skip=skip, limit=limit)


@router.get("/tour-guides/{guide_id}", response_model=TourGuideResponse)
async def get_tour_guide(
    guide_id: int,
    db: AsyncSession = Depends(get_db),
    _admin=Depends(admin_only),
):
    return await GuideService.get_tour_guide(db, guide_id)


@router.get("/tour-guides/{guide_id}/workload", response_model=GuideWorkload)
async def get_tour_guide_workload(
    guide_id: int,
    db: AsyncSession = Depends(get_db),
    _admin=Depends(admin_only),
    resolver: AssignmentResolver = Depends(get_assignment_resolver),
):
    return await resolver.get_workload(db, guide_id)


@router.patch("/tour-guides/{guide_id}/toggle-active", response_model=TourGuideResponse)
async def toggle_tour_guide_active(
    guide_id: int,
    db: AsyncSession = Depends(get_db),
    _admin=Depends(admin_only),
):
    return await GuideService.toggle_active(db, guide_id)
