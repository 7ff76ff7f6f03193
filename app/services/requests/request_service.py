from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFound
from app.core.logger import logger
from app.models.activity.activity_log import ActivityAction, ActivityLog
from app.models.requests.travel_request import RequestStatus, TravelRequest
from app.models.user.user import UserRole
from app.schemas.activity.activity import ActivityLogEntry
from app.schemas.auth.actor import Actor
from app.schemas.requests.travel_request import RequestStats, TravelRequestCreate
from app.services.requests.state_machine import RequestStateMachine, is_party, load_request


def _scope_to_actor(query, actor: Actor):
    """Restrict a TravelRequest query to the rows an actor can see."""
    if actor.role == UserRole.user:
        return query.where(TravelRequest.user_id == actor.user_id)
    if actor.is_tour_guide:
        return query.where(TravelRequest.tour_guide_id == actor.user_id)
    return query


class RequestService:
    def __init__(self, state_machine: RequestStateMachine):
        self.state_machine = state_machine

    @property
    def audit(self):
        return self.state_machine.audit

    async def create_request(self, session: AsyncSession, actor: Actor, data: TravelRequestCreate) -> TravelRequest:
        now = self.state_machine.clock()
        request = TravelRequest(
            user_id=actor.user_id,
            destination=data.destination.strip(),
            message=data.message,
            status=RequestStatus.pending,
            tour_guide_id=None,
            created_at=now,
            updated_at=now,
        )
        session.add(request)
        await session.commit()
        await session.refresh(request)
        logger.info(f"Request {request.id} to {request.destination} created by user {actor.user_id}")

        await self.audit.record_safely(
            ActivityLogEntry(
                actor_id=actor.user_id,
                actor_role=actor.role.value,
                action=ActivityAction.create.value,
                request_id=request.id,
                to_status=RequestStatus.pending.value,
                created_at=now,
            )
        )
        return request

    async def cancel_request(
        self, session: AsyncSession, request_id: int, actor: Actor, note: Optional[str] = None
    ) -> TravelRequest:
        request = await self.get_request(session, request_id, actor)
        return await self.state_machine.apply(
            session, request, RequestStatus.cancelled, actor, note=note, action=ActivityAction.cancel
        )

    async def update_request_status(
        self,
        session: AsyncSession,
        request_id: int,
        actor: Actor,
        new_status: RequestStatus,
        note: Optional[str] = None,
    ) -> TravelRequest:
        request = await self.get_request(session, request_id, actor)
        return await self.state_machine.apply(session, request, new_status, actor, note=note)

    async def get_request(self, session: AsyncSession, request_id: int, actor: Actor) -> TravelRequest:
        request = await load_request(session, request_id)
        if not is_party(actor, request):
            logger.warning(f"{actor.role.value} {actor.user_id} tried to reach request {request_id}")
            raise NotFound("TravelRequest", request_id)
        return request

    async def list_requests(
        self,
        session: AsyncSession,
        actor: Actor,
        status: Optional[RequestStatus] = None,
        destination: Optional[str] = None,
        skip: int = 0,
        limit: int = 20,
    ) -> List[TravelRequest]:
        query = _scope_to_actor(select(TravelRequest), actor)
        if status:
            query = query.where(TravelRequest.status == status)
        if destination:
            query = query.where(TravelRequest.destination.ilike(f"%{destination}%"))
        query = query.order_by(TravelRequest.created_at.desc(), TravelRequest.id.desc()).offset(skip).limit(limit)

        result = await session.execute(query)
        return result.scalars().all()

    async def get_stats(self, session: AsyncSession, actor: Actor) -> RequestStats:
        query = _scope_to_actor(
            select(TravelRequest.status, func.count(TravelRequest.id)).group_by(TravelRequest.status), actor
        )
        rows = (await session.execute(query)).all()

        counts = {status.value: count for status, count in rows}
        return RequestStats(total=sum(counts.values()), **counts)

    async def get_activity(self, session: AsyncSession, request_id: int, actor: Actor) -> List[ActivityLog]:
        await self.get_request(session, request_id, actor)
        return await self.audit.list_for_request(session, request_id)
