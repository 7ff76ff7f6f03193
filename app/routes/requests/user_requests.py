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
from app.schemas.requests.travel_request import RequestStats, TravelRequestCreate, TravelRequestResponse
from app.services.requests.request_service import RequestService

router = APIRouter(prefix="/user/requests", tags=["User Requests"])


@router.post("", response_model=TravelRequestResponse, status_code=201)
async def create_request_route(
    data: TravelRequestCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_role(UserRole.user)),
    service: RequestService = Depends(get_request_service),
):
    return await service.create_request(db, actor, data)


@router.get("", response_model=List[TravelRequestResponse])
async def list_my_requests(
    status: Optional[RequestStatus] = None,
    skip: int = 0,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_role(UserRole.user)),
    service: RequestService = Depends(get_request_service),
):
    return await service.list_requests(db, actor, status=status, skip=skip, limit=limit)


@router.get("/stats", response_model=RequestStats)
async def my_request_stats(
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_role(UserRole.user)),
    service: RequestService = Depends(get_request_service),
):
    return await service.get_stats(db, actor)


@router.get("/{request_id}", response_model=TravelRequestResponse)
async def get_my_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_role(UserRole.user)),
    service: RequestService = Depends(get_request_service),
):
    return await service.get_request(db, request_id, actor)


@router.patch("/{request_id}/cancel", response_model=TravelRequestResponse)
async def cancel_my_request(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_role(UserRole.user)),
    service: RequestService = Depends(get_request_service),
):
    return await service.cancel_request(db, request_id, actor)


@router.get("/{request_id}/activity", response_model=List[ActivityLogResponse])
async def my_request_activity(
    request_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_role(UserRole.user)),
    service: RequestService = Depends(get_request_service),
):
    return await service.get_activity(db, request_id, actor)
