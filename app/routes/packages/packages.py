from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.dependencies.auth import require_role
from app.models.user.user import UserRole
from app.schemas.packages.tour_package import TourPackageCreate, TourPackageResponse, TourPackageUpdate
from app.services.packages.package_service import PackageService

router = APIRouter(prefix="/packages", tags=["Tour Packages"])

admin_only = require_role(UserRole.admin)


@router.get("", response_model=List[TourPackageResponse])
async def list_packages(
    active: Optional[bool] = None,
    featured: Optional[bool] = None,
    destination: Optional[str] = None,
    skip: int = 0,
    limit: int = 50,
    db: AsyncSession = Depends(get_db),
):
    return await PackageService.list_packages(
        db, active=active, featured=featured, destination=destination, skip=skip, limit=limit
    )


@router.get("/{id_or_slug}", response_model=TourPackageResponse)
async def get_package(id_or_slug: str, db: AsyncSession = Depends(get_db)):
    if id_or_slug.isdigit():
        return await PackageService.get_package(db, int(id_or_slug))
    return await PackageService.get_package_by_slug(db, id_or_slug)


@router.post("", response_model=TourPackageResponse, status_code=201)
async def create_package(
    data: TourPackageCreate,
    db: AsyncSession = Depends(get_db),
    _admin=Depends(admin_only),
):
    return await PackageService.create_package(db, data)


@router.put("/{package_id}", response_model=TourPackageResponse)
async def update_package(
    package_id: int,
    data: TourPackageUpdate,
    db: AsyncSession = Depends(get_db),
    _admin=Depends(admin_only),
):
    return await PackageService.update_package(db, package_id, data)


@router.patch("/{package_id}/toggle-featured", response_model=TourPackageResponse)
async def toggle_package_featured(
    package_id: int,
    db: AsyncSession = Depends(get_db),
    _admin=Depends(admin_only),
):
    return await PackageService.toggle_featured(db, package_id)


@router.delete("/{package_id}")
async def delete_package(
    package_id: int,
    db: AsyncSession = Depends(get_db),
    _admin=Depends(admin_only),
):
    return await PackageService.delete_package(db, package_id)
