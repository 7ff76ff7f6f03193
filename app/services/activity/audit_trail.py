from typing import Callable, List, Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuditWriteFailure
from app.core.logger import logger
from app.models.activity.activity_log import ActivityLog
from app.schemas.activity.activity import ActivityLogEntry


class AuditTrail:
    """Append-only sink for ActivityLog rows.

    Entries are written through their own session, after the primary
    operation has committed, so a failed write never touches the caller's
    transaction or the objects it holds.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    async def record(self, entry: ActivityLogEntry) -> ActivityLog:
        data = entry.dict(exclude_none=True)
        async with self.session_factory() as session:
            log = ActivityLog(**data)
            session.add(log)
            try:
                await session.commit()
            except SQLAlchemyError as exc:
                await session.rollback()
                raise AuditWriteFailure(entry.action, str(exc)) from exc
            return log

    async def record_safely(self, entry: ActivityLogEntry) -> Optional[ActivityLog]:
        """Record an entry, logging instead of raising when the write fails."""
        try:
            return await self.record(entry)
        except AuditWriteFailure as exc:
            logger.warning(
                f"Activity not recorded (action={entry.action}, request={entry.request_id}, "
                f"booking={entry.booking_id}): {exc.message}"
            )
            return None

    @staticmethod
    async def list_for_request(session: AsyncSession, request_id: int) -> List[ActivityLog]:
        result = await session.execute(
            select(ActivityLog)
            .where(ActivityLog.request_id == request_id)
            .order_by(ActivityLog.created_at.asc(), ActivityLog.id.asc())
        )
        return result.scalars().all()

    @staticmethod
    async def list_for_booking(session: AsyncSession, booking_id: int) -> List[ActivityLog]:
        result = await session.execute(
            select(ActivityLog)
            .where(ActivityLog.booking_id == booking_id)
            .order_by(ActivityLog.created_at.asc(), ActivityLog.id.asc())
        )
        return result.scalars().all()
