from typing import Dict, FrozenSet, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, utc_now
from app.core.exceptions import (
    AlreadyCancelled, IllegalTransition, InvalidDeparture, InvalidTravelerCount, NotCancellable,
    NotFound, PackageUnavailable, PermissionDenied, TravelDeskError
)
from app.core.logger import logger
from app.models.activity.activity_log import ActivityAction, ActivityLog
from app.models.bookings.booking import OPEN_BOOKING_STATUSES, Booking, BookingStatus
from app.models.packages.tour_package import TourPackage
from app.schemas.activity.activity import ActivityLogEntry
from app.schemas.auth.actor import Actor
from app.schemas.bookings.booking import BookingCreate
from app.services.activity.audit_trail import AuditTrail
from app.services.inventory.inventory_ledger import InventoryLedger

# Admin-driven status changes.
BOOKING_TRANSITIONS: Dict[BookingStatus, FrozenSet[BookingStatus]] = {
    BookingStatus.pending: frozenset({BookingStatus.confirmed, BookingStatus.cancelled}),
    BookingStatus.confirmed: frozenset({BookingStatus.cancelled, BookingStatus.completed}),
    BookingStatus.cancelled: frozenset(),
    BookingStatus.completed: frozenset(),
}


class BookingService:
    def __init__(self, ledger: InventoryLedger, audit: AuditTrail, clock: Clock = utc_now):
        self.ledger = ledger
        self.audit = audit
        self.clock = clock

    async def create_booking(self, session: AsyncSession, actor: Actor, data: BookingCreate) -> Booking:
        package = await session.get(TourPackage, data.package_id)
        if package is None:
            raise NotFound("TourPackage", data.package_id)
        if not package.active:
            raise PackageUnavailable(package.id)

        now = self.clock()
        if data.departure_date <= now.date():
            raise InvalidDeparture(data.departure_date, now.date())
        if data.num_travelers < 1:
            raise InvalidTravelerCount(data.num_travelers)

        # Price is frozen into the booking; later package edits do not touch it.
        total_price = package.price * data.num_travelers

        try:
            await self.ledger.reserve_seats(session, package.id, data.num_travelers)
            booking = Booking(
                package_id=package.id,
                user_id=actor.user_id,
                departure_date=data.departure_date,
                num_travelers=data.num_travelers,
                contact_name=data.contact_name,
                contact_email=data.contact_email,
                contact_phone=data.contact_phone,
                special_requests=data.special_requests,
                total_price=total_price,
                status=BookingStatus.pending,
                created_at=now,
                updated_at=now,
            )
            session.add(booking)
            await session.commit()
        except (TravelDeskError, SQLAlchemyError):
            await session.rollback()
            raise

        await session.refresh(booking)
        await session.refresh(package)
        logger.info(
            f"Booking {booking.id} created on package {package.id} for {booking.num_travelers} travelers "
            f"by user {actor.user_id}"
        )

        await self._record(actor, booking.id, ActivityAction.booking_create, None, BookingStatus.pending, now)
        return booking

    async def cancel_booking(self, session: AsyncSession, booking_id: int, actor: Actor) -> Booking:
        booking = await session.get(Booking, booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)
        if not actor.is_admin and booking.user_id != actor.user_id:
            raise PermissionDenied(f"cancel booking {booking_id}", actor.user_id, actor.role.value, booking_id)
        if booking.status == BookingStatus.cancelled:
            raise AlreadyCancelled(booking_id)
        if booking.status == BookingStatus.completed:
            raise NotCancellable(booking_id, booking.status.value)

        return await self._cancel(session, booking, actor, ActivityAction.booking_cancel)

    async def update_booking_status(
        self, session: AsyncSession, booking_id: int, new_status: BookingStatus, actor: Actor
    ) -> Booking:
        if not actor.is_admin:
            raise PermissionDenied(f"update booking {booking_id}", actor.user_id, actor.role.value, booking_id)

        booking = await session.get(Booking, booking_id)
        if booking is None:
            raise NotFound("Booking", booking_id)

        current = booking.status
        if new_status not in BOOKING_TRANSITIONS[current]:
            raise IllegalTransition("Booking", booking_id, current.value, new_status.value)

        if new_status == BookingStatus.cancelled:
            return await self._cancel(session, booking, actor, ActivityAction.booking_status)

        now = self.clock()
        result = await session.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == current)
            .values(status=new_status, updated_at=now)
            .returning(Booking.id),
            execution_options={"synchronize_session": False},
        )
        if result.scalar_one_or_none() is None:
            await session.rollback()
            latest = await session.scalar(select(Booking.status).where(Booking.id == booking_id))
            if latest is None:
                raise NotFound("Booking", booking_id)
            raise IllegalTransition("Booking", booking_id, latest.value, new_status.value)

        await session.commit()
        await session.refresh(booking)
        logger.info(f"Booking {booking_id}: {current.value} -> {new_status.value} by admin {actor.user_id}")

        await self._record(actor, booking_id, ActivityAction.booking_status, current, new_status, now)
        return booking

    async def _cancel(self, session: AsyncSession, booking: Booking, actor: Actor, action: ActivityAction) -> Booking:
        booking_id = booking.id
        package_id = booking.package_id
        seats = booking.num_travelers
        previous = booking.status
        now = self.clock()

        # Flipping the status first, guarded on it still being open, is what
        # keeps a second canceller from releasing the same seats again.
        result = await session.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status.in_(list(OPEN_BOOKING_STATUSES)))
            .values(status=BookingStatus.cancelled, updated_at=now)
            .returning(Booking.id),
            execution_options={"synchronize_session": False},
        )
        if result.scalar_one_or_none() is None:
            await session.rollback()
            latest = await session.scalar(select(Booking.status).where(Booking.id == booking_id))
            logger.warning(f"Cancellation of booking {booking_id} lost to a concurrent update (now {latest})")
            if latest is None:
                raise NotFound("Booking", booking_id)
            if latest == BookingStatus.cancelled:
                raise AlreadyCancelled(booking_id)
            raise NotCancellable(booking_id, latest.value)

        try:
            await self.ledger.release_seats(session, package_id, seats)
            await session.commit()
        except (TravelDeskError, SQLAlchemyError):
            await session.rollback()
            raise

        await session.refresh(booking)
        package = await session.get(TourPackage, package_id)
        if package is not None:
            await session.refresh(package)
        logger.info(f"Booking {booking_id} cancelled by {actor.role.value} {actor.user_id}, {seats} seats released")

        await self._record(actor, booking_id, action, previous, BookingStatus.cancelled, now)
        return booking

    async def _record(
        self,
        actor: Actor,
        booking_id: int,
        action: ActivityAction,
        from_status: Optional[BookingStatus],
        to_status: BookingStatus,
        now,
    ) -> None:
        await self.audit.record_safely(
            ActivityLogEntry(
                actor_id=actor.user_id,
                actor_role=actor.role.value,
                action=action.value,
                booking_id=booking_id,
                from_status=from_status.value if from_status else None,
                to_status=to_status.value,
                created_at=now,
            )
        )

    async def get_booking(self, session: AsyncSession, booking_id: int, actor: Actor) -> Booking:
        booking = await session.get(Booking, booking_id)
        if booking is None or (not actor.is_admin and booking.user_id != actor.user_id):
            raise NotFound("Booking", booking_id)
        return booking

    async def get_activity(self, session: AsyncSession, booking_id: int, actor: Actor) -> List[ActivityLog]:
        await self.get_booking(session, booking_id, actor)
        return await self.audit.list_for_booking(session, booking_id)

    @staticmethod
    async def list_user_bookings(
        session: AsyncSession, actor: Actor, skip: int = 0, limit: int = 20
    ) -> List[Booking]:
        result = await session.execute(
            select(Booking)
            .where(Booking.user_id == actor.user_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset(skip)
            .limit(limit)
        )
        return result.scalars().all()

    @staticmethod
    async def list_bookings(
        session: AsyncSession, status: Optional[BookingStatus] = None, skip: int = 0, limit: int = 50
    ) -> List[Booking]:
        query = select(Booking)
        if status:
            query = query.where(Booking.status == status)
        query = query.order_by(Booking.created_at.desc(), Booking.id.desc()).offset(skip).limit(limit)

        result = await session.execute(query)
        return result.scalars().all()
