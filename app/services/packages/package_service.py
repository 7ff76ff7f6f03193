from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import DuplicateEntity, InvalidSeatTotal, NotFound, PackageInUse
from app.core.logger import logger
from app.models.bookings.booking import OPEN_BOOKING_STATUSES, Booking
from app.models.packages.tour_package import TourPackage
from app.schemas.packages.tour_package import TourPackageCreate, TourPackageUpdate
from app.utils.slug import slugify


async def _unique_slug(session: AsyncSession, title: str) -> str:
    base = slugify(title)
    result = await session.execute(
        select(TourPackage.slug).where(TourPackage.slug.like(f"{base}%"))
    )
    taken = set(result.scalars().all())
    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"


class PackageService:
    @staticmethod
    async def create_package(session: AsyncSession, data: TourPackageCreate) -> TourPackage:
        slug = await _unique_slug(session, data.title)
        package = TourPackage(
            **data.dict(),
            slug=slug,
            seats_available=data.seats_total,
        )
        session.add(package)
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            raise DuplicateEntity("TourPackage", "slug", slug)
        await session.refresh(package)
        logger.info(f"Package {package.id} ({package.slug}) created with {package.seats_total} seats")
        return package

    @staticmethod
    async def get_package(session: AsyncSession, package_id: int) -> TourPackage:
        package = await session.get(TourPackage, package_id)
        if package is None:
            raise NotFound("TourPackage", package_id)
        return package

    @staticmethod
    async def get_package_by_slug(session: AsyncSession, slug: str) -> TourPackage:
        package = await session.scalar(select(TourPackage).where(TourPackage.slug == slug))
        if package is None:
            raise NotFound("TourPackage", slug)
        return package

    @staticmethod
    async def list_packages(
        session: AsyncSession,
        active: Optional[bool] = None,
        featured: Optional[bool] = None,
        destination: Optional[str] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[TourPackage]:
        query = select(TourPackage)
        if active is not None:
            query = query.where(TourPackage.active == active)
        if featured is not None:
            query = query.where(TourPackage.featured == featured)
        if destination:
            query = query.where(TourPackage.destination.ilike(f"%{destination}%"))
        query = query.order_by(TourPackage.featured.desc(), TourPackage.created_at.desc()).offset(skip).limit(limit)

        result = await session.execute(query)
        return result.scalars().all()

    @staticmethod
    async def update_package(session: AsyncSession, package_id: int, data: TourPackageUpdate) -> TourPackage:
        """Update catalogue fields. The slug stays stable so shared links keep working.

        A new seats_total moves seats_available by the same delta, in one
        conditional statement so bookings landing meanwhile are accounted for.
        """
        package = await PackageService.get_package(session, package_id)
        update_data = data.dict(exclude_unset=True)
        seats_total = update_data.pop("seats_total", None)

        for key, value in update_data.items():
            setattr(package, key, value)

        if seats_total is not None and seats_total != package.seats_total:
            result = await session.execute(
                update(TourPackage)
                .where(
                    TourPackage.id == package_id,
                    TourPackage.seats_total - TourPackage.seats_available <= seats_total,
                )
                .values(
                    seats_available=TourPackage.seats_available + (seats_total - TourPackage.seats_total),
                    seats_total=seats_total,
                )
                .returning(TourPackage.id),
                execution_options={"synchronize_session": False},
            )
            if result.scalar_one_or_none() is None:
                reserved = package.seats_total - package.seats_available
                await session.rollback()
                raise InvalidSeatTotal(package_id, seats_total, reserved)

        await session.commit()
        await session.refresh(package)
        logger.info(f"Package {package_id} updated: {sorted(data.dict(exclude_unset=True))}")
        return package

    @staticmethod
    async def toggle_featured(session: AsyncSession, package_id: int) -> TourPackage:
        package = await PackageService.get_package(session, package_id)
        package.featured = not package.featured
        await session.commit()
        await session.refresh(package)
        return package

    @staticmethod
    async def delete_package(session: AsyncSession, package_id: int) -> dict:
        """Delete a package, or retire it when past bookings still reference it."""
        package = await PackageService.get_package(session, package_id)

        open_bookings = await session.scalar(
            select(func.count(Booking.id)).where(
                Booking.package_id == package_id, Booking.status.in_(list(OPEN_BOOKING_STATUSES))
            )
        )
        if open_bookings:
            raise PackageInUse(package_id, open_bookings)

        any_bookings = await session.scalar(select(func.count(Booking.id)).where(Booking.package_id == package_id))
        if any_bookings:
            package.active = False
            await session.commit()
            logger.info(f"Package {package_id} deactivated, {any_bookings} past bookings kept")
            return {"msg": "Package deactivated", "deleted": False}

        await session.delete(package)
        await session.commit()
        logger.info(f"Package {package_id} deleted")
        return {"msg": "Package deleted successfully", "deleted": True}
