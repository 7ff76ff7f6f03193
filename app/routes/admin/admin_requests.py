from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.dependencies.auth import require_role
from app.dependencies.services import get_assignment_resolver, get_request_service
from app.models.requests.travel_request import RequestStatus
from app.models.user.user import UserRole
from app.schemas.activity.activity import ActivityLogResponse
from app.schemas.auth.actor import Actor
from app.schemas.requests.travel_request import (
    AssignmentCreate, RequestStatusUpdate, TravelRequestResponse
)
from app.services.requests.assignment_service import AssignmentResolver
from app.services.requests.request_service import RequestService

router = APIRouter(prefix="/admin/requests", tags=["Admin Requests"])

admin_only = require_role(UserRole.admin)


@router.get("", response_model=List[TravelRequestResponse])
async def list_requests(
    status: Optional[RequestStatus] = None,
    destination: Optional[str] = None,
    skip: int = 0,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(admin_only),
    service: RequestService = Depends(get_request_service),
):
    return await service.list_requests(db, actor, status=status, destination=destination, skip=skip, limit=limit)


@router.get("/{request_id}", response_model=TravelRequestResponse)
async def get_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(admin_only),
    service: RequestService = Depends(get_request_service),
):
    return await service.get_request(db, request_id, actor)


@router.post("/{request_id}/assign", response_model=TravelRequestResponse)
async def assign_request(
    request_id: int,
    data: AssignmentCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(admin_only),
    resolver: AssignmentResolver = Depends(get_assignment_resolver),
):
    return await resolver.assign(db, request_id, data.tour_guide_id, actor, data.note)


@router.post("/{request_id}/reassign", response_model=TravelRequestResponse)
async def reassign_request(
    request_id: int,
    data: AssignmentCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(admin_only),
    resolver: AssignmentResolver = Depends(get_assignment_resolver),
):
    return await resolver.reassign(db, request_id, data.tour_guide_id, actor, data.note)


@router.post("/{request_id}/status", response_model=TravelRequestResponse)
async def update_request_status(
    request_id: int,
    data: RequestStatusUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(admin_only),
    service: RequestService = Depends(get_request_service),
):
    return await service.update_request_status(db, request_id, actor, data.status, data.note)


@router.get("/{request_id}/activity", response_model=List[ActivityLogResponse])
async def request_activity(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(admin_only),
    service: RequestService = Depends(get_request_service),
):
    return await service.get_activity(db, request_id, actor)
