from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.dependencies.auth import get_current_actor, require_role
from app.dependencies.services import get_booking_service
from app.models.bookings.booking import BookingStatus
from app.models.user.user import UserRole
from app.schemas.activity.activity import ActivityLogResponse
from app.schemas.auth.actor import Actor
from app.schemas.bookings.booking import BookingCreate, BookingResponse, BookingStatusUpdate
from app.services.bookings.booking_service import BookingService

router = APIRouter(prefix="/bookings", tags=["Bookings"])


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
):
    return await service.create_booking(db, actor, data)


@router.get("/my-bookings", response_model=List[BookingResponse])
async def my_bookings(
    skip: int = 0,
    limit: int = 20,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
):
    return await BookingService.list_user_bookings(db, actor, skip=skip, limit=limit)


@router.get("/admin/all", response_model=List[BookingResponse])
async def all_bookings(
    status: Optional[BookingStatus] = None,
    skip: int = 0,
    limit: int = 50,
    db: AsyncSession = Depends(get_db),
    _admin=Depends(require_role(UserRole.admin)),
):
    return await BookingService.list_bookings(db, status=status, skip=skip, limit=limit)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
):
    return await service.get_booking(db, booking_id, actor)


@router.get("/{booking_id}/activity", response_model=List[ActivityLogResponse])
async def booking_activity(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
):
    return await service.get_activity(db, booking_id, actor)


@router.patch("/{booking_id}/cancel", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
):
    return await service.cancel_booking(db, booking_id, actor)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Actor = Depends(require_role(UserRole.admin)),
    service: BookingService = Depends(get_booking_service),
):
    return await service.update_booking_status(db, booking_id, data.status, actor)
