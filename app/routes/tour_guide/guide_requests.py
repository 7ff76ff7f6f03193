from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.dependencies.auth import require_role
from app.dependencies.services import get_request_service
from app.models.requests.travel_request import RequestStatus
from app.models.user.user import UserRole
from app.schemas.activity.activity import ActivityLogResponse
from app.schemas.auth.actor import Actor
from app.schemas.requests.travel_request import RequestStats, RequestStatusUpdate, TravelRequestResponse
from app.services.requests.request_service import RequestService

router = APIRouter(prefix="/tour-guide/requests", tags=["Tour Guide Requests"])

guide_only = require_role(UserRole.tour_guide)


@router.get("", response_model=List[TravelRequestResponse])
async def list_assigned_requests(
    status: Optional[RequestStatus] = None,
    skip: int = 0,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(guide_only),
    service: RequestService = Depends(get_request_service),
):
    return await service.list_requests(db, actor, status=status, skip=skip, limit=limit)


@router.get("/stats", response_model=RequestStats)
async def assigned_request_stats(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(guide_only),
    service: RequestService = Depends(get_request_service),
):
    return await service.get_stats(db, actor)


@router.get("/{request_id}", response_model=TravelRequestResponse)
async def get_assigned_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(guide_only),
    service: RequestService = Depends(get_request_service),
):
    return await service.get_request(db, request_id, actor)


@router.post("/{request_id}/status", response_model=TravelRequestResponse)
async def update_assigned_request_status(
    request_id: int,
    data: RequestStatusUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(guide_only),
    service: RequestService = Depends(get_request_service),
):
    return await service.update_request_status(db, request_id, actor, data.status, data.note)


@router.get("/{request_id}/activity", response_model=List[ActivityLogResponse])
async def assigned_request_activity(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(guide_only),
    service: RequestService = Depends(get_request_service),
):
    return await service.get_activity(db, request_id, actor)
