from typing import FrozenSet, List, Optional

from redis.exceptions import RedisError
from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import RedisCache
from app.core.config import settings
from app.core.exceptions import GuideInactive, NotFound, RequestNotAssignable
from app.core.logger import logger
from app.models.requests.travel_request import ACTIVE_STATUSES, RequestStatus, TravelRequest
from app.models.user.user import User, UserRole
from app.schemas.auth.actor import Actor
from app.schemas.guides.guide import GuideWorkload, TourGuideWithWorkload
from app.services.requests.state_machine import (
    VIA_ASSIGN, VIA_REASSIGN, RequestStateMachine, load_request, workload_cache_key
)

_ASSIGNABLE = frozenset({RequestStatus.pending})
_REASSIGNABLE = frozenset({RequestStatus.assigned, RequestStatus.in_progress})


def _workload_columns():
    active = func.coalesce(
        func.sum(case((TravelRequest.status.in_(list(ACTIVE_STATUSES)), 1), else_=0)), 0
    )
    completed = func.coalesce(
        func.sum(case((TravelRequest.status == RequestStatus.completed, 1), else_=0)), 0
    )
    return func.count(TravelRequest.id), active, completed


async def load_guide(session: AsyncSession, guide_id: int) -> User:
    guide = await session.get(User, guide_id)
    if guide is None or guide.role != UserRole.tour_guide:
        raise NotFound("TourGuide", guide_id)
    return guide


class AssignmentResolver:
    """Pairs travel requests with tour guides.

    Assignment is always an explicit admin choice; workload figures are
    exposed to inform it and are never used to pick a guide automatically.
    """

    def __init__(self, state_machine: RequestStateMachine, cache: Optional[RedisCache] = None):
        self.state_machine = state_machine
        self.cache = cache

    async def assign(
        self, session: AsyncSession, request_id: int, tour_guide_id: int, actor: Actor, note: Optional[str] = None
    ) -> TravelRequest:
        request = await load_request(session, request_id)
        guide = await load_guide(session, tour_guide_id)
        return await self._set_assignment(session, request, guide, actor, VIA_ASSIGN, _ASSIGNABLE, note)

    async def reassign(
        self, session: AsyncSession, request_id: int, tour_guide_id: int, actor: Actor, note: Optional[str] = None
    ) -> TravelRequest:
        request = await load_request(session, request_id)
        guide = await load_guide(session, tour_guide_id)
        return await self._set_assignment(session, request, guide, actor, VIA_REASSIGN, _REASSIGNABLE, note)

    async def _set_assignment(
        self,
        session: AsyncSession,
        request: TravelRequest,
        guide: User,
        actor: Actor,
        via: str,
        allowed: FrozenSet[RequestStatus],
        note: Optional[str],
    ) -> TravelRequest:
        if not guide.active:
            logger.warning(f"Request {request.id}: {via} to inactive guide {guide.id} refused")
            raise GuideInactive(guide.id)
        if request.status not in allowed:
            raise RequestNotAssignable(request.id, request.status.value, via)
        if via == VIA_REASSIGN and request.tour_guide_id == guide.id:
            logger.warning(f"Request {request.id}: reassign to its current guide {guide.id} refused")
            raise RequestNotAssignable(request.id, request.status.value, via)

        if via == VIA_ASSIGN:
            requested = RequestStatus.assigned
            default_note = f"Assigned to tour guide {guide.id}"
        else:
            requested = request.status
            default_note = f"Reassigned from tour guide {request.tour_guide_id} to {guide.id}"

        return await self.state_machine.apply(
            session,
            request,
            requested,
            actor,
            via=via,
            tour_guide_id=guide.id,
            note=note or default_note,
        )

    async def get_workload(self, session: AsyncSession, guide_id: int) -> GuideWorkload:
        await load_guide(session, guide_id)

        cache_key = workload_cache_key(guide_id)
        if self.cache is not None:
            try:
                cached = await self.cache.get(cache_key)
            except RedisError as exc:
                logger.warning(f"Workload cache read failed for guide {guide_id}: {exc}")
                cached = None
            if cached:
                return GuideWorkload(**cached)

        total, active, completed = _workload_columns()
        row = (
            await session.execute(
                select(total, active, completed).where(TravelRequest.tour_guide_id == guide_id)
            )
        ).one()
        workload = GuideWorkload(
            tour_guide_id=guide_id,
            total_requests=row[0],
            active_requests=row[1],
            completed_requests=row[2],
        )

        if self.cache is not None:
            try:
                await self.cache.set(cache_key, workload.dict(), expire=settings.WORKLOAD_CACHE_TTL_SECONDS)
            except RedisError as exc:
                logger.warning(f"Workload cache write failed for guide {guide_id}: {exc}")
        return workload

    @staticmethod
    async def list_guides_with_workload(
        session: AsyncSession, active: Optional[bool] = None, skip: int = 0, limit: int = 50
    ) -> List[TourGuideWithWorkload]:
        total, active_count, completed = _workload_columns()
        query = (
            select(User, total, active_count, completed)
            .outerjoin(TravelRequest, TravelRequest.tour_guide_id == User.id)
            .where(User.role == UserRole.tour_guide)
            .group_by(User.id)
            .order_by(User.name.asc())
            .offset(skip)
            .limit(limit)
        )
        if active is not None:
            query = query.where(User.active == active)

        rows = (await session.execute(query)).all()
        guides = []
        for guide, total_requests, active_requests, completed_requests in rows:
            guides.append(
                TourGuideWithWorkload(
                    id=guide.id,
                    name=guide.name,
                    email=guide.email,
                    phone=guide.phone,
                    active=guide.active,
                    created_at=guide.created_at,
                    total_requests=total_requests,
                    active_requests=active_requests,
                    completed_requests=completed_requests,
                )
            )
        return guides
