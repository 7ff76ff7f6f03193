from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    InsufficientInventory, InventoryInconsistency, InvalidTravelerCount, NotFound
)
from app.core.logger import logger
from app.models.packages.tour_package import TourPackage


class InventoryLedger:
    """Seat bookkeeping for tour packages.

    Each operation is one conditional UPDATE scoped to the package row, so the
    check and the write happen atomically in the database and two callers
    racing for the last seats cannot both win. Nothing here commits: the
    booking operation that reserves or releases owns the transaction.
    """

    async def reserve_seats(self, session: AsyncSession, package_id: int, count: int) -> int:
        if count < 1:
            raise InvalidTravelerCount(count)

        result = await session.execute(
            update(TourPackage)
            .where(TourPackage.id == package_id, TourPackage.seats_available >= count)
            .values(seats_available=TourPackage.seats_available - count)
            .returning(TourPackage.seats_available),
            execution_options={"synchronize_session": False},
        )
        remaining = result.scalar_one_or_none()

        if remaining is None:
            available = await session.scalar(
                select(TourPackage.seats_available).where(TourPackage.id == package_id)
            )
            if available is None:
                raise NotFound("TourPackage", package_id)
            logger.warning(f"Reservation of {count} seats refused on package {package_id}: {available} left")
            raise InsufficientInventory(package_id, count, available)

        logger.info(f"Reserved {count} seats on package {package_id}, {remaining} left")
        return remaining

    async def release_seats(self, session: AsyncSession, package_id: int, count: int) -> int:
        if count < 1:
            raise InvalidTravelerCount(count)

        result = await session.execute(
            update(TourPackage)
            .where(
                TourPackage.id == package_id,
                TourPackage.seats_available + count <= TourPackage.seats_total,
            )
            .values(seats_available=TourPackage.seats_available + count)
            .returning(TourPackage.seats_available),
            execution_options={"synchronize_session": False},
        )
        remaining = result.scalar_one_or_none()

        if remaining is None:
            row = (
                await session.execute(
                    select(TourPackage.seats_available, TourPackage.seats_total)
                    .where(TourPackage.id == package_id)
                )
            ).first()
            if row is None:
                raise NotFound("TourPackage", package_id)
            # Only a double release gets here.
            logger.error(
                f"Seat release of {count} on package {package_id} would exceed total "
                f"({row.seats_available}/{row.seats_total})"
            )
            raise InventoryInconsistency(package_id, count, row.seats_available, row.seats_total)

        logger.info(f"Released {count} seats on package {package_id}, {remaining} left")
        return remaining
