from dataclasses import dataclass
from typing import Dict, FrozenSet, Optional

from redis.exceptions import RedisError
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.cache import RedisCache
from app.core.clock import Clock, utc_now
from app.core.exceptions import IllegalTransition, NotFound, PermissionDenied
from app.core.logger import logger
from app.models.activity.activity_log import ActivityAction
from app.models.requests.travel_request import GUIDED_STATUSES, RequestStatus, TravelRequest
from app.models.user.user import UserRole
from app.schemas.activity.activity import ActivityLogEntry
from app.schemas.auth.actor import Actor
from app.services.activity.audit_trail import AuditTrail

# Operations allowed to drive an edge of the table.
VIA_STATUS = "status"
VIA_ASSIGN = "assign"
VIA_REASSIGN = "reassign"


@dataclass(frozen=True)
class Transition:
    via: str
    roles: FrozenSet[UserRole]


_ADMIN = frozenset({UserRole.admin})
_GUIDE = frozenset({UserRole.tour_guide})
_OWNER_OR_ADMIN = frozenset({UserRole.user, UserRole.admin})

# current status -> requested status -> who may take the edge, and through which operation.
# Non-admin actors must also be a party to the request: its owner for role
# ``user``, its assigned guide for role ``tour_guide``.
REQUEST_TRANSITIONS: Dict[RequestStatus, Dict[RequestStatus, Transition]] = {
    RequestStatus.pending: {
        RequestStatus.assigned: Transition(VIA_ASSIGN, _ADMIN),
        RequestStatus.cancelled: Transition(VIA_STATUS, _OWNER_OR_ADMIN),
    },
    RequestStatus.assigned: {
        RequestStatus.in_progress: Transition(VIA_STATUS, _GUIDE),
        RequestStatus.cancelled: Transition(VIA_STATUS, _ADMIN),
        RequestStatus.assigned: Transition(VIA_REASSIGN, _ADMIN),
    },
    RequestStatus.in_progress: {
        RequestStatus.completed: Transition(VIA_STATUS, _GUIDE),
        RequestStatus.cancelled: Transition(VIA_STATUS, _ADMIN),
        RequestStatus.in_progress: Transition(VIA_REASSIGN, _ADMIN),
    },
    RequestStatus.completed: {},
    RequestStatus.cancelled: {},
}

WORKLOAD_CACHE_PREFIX = "workload:guide"


def workload_cache_key(guide_id: int) -> str:
    return RedisCache.build_key(WORKLOAD_CACHE_PREFIX, guide_id)


def check_transition(
    request_id: int, current: RequestStatus, requested: RequestStatus, via: str = VIA_STATUS
) -> Transition:
    """Look up an edge, raising IllegalTransition when it is not in the table."""
    transition = REQUEST_TRANSITIONS.get(current, {}).get(requested)
    if transition is None or transition.via != via:
        raise IllegalTransition("TravelRequest", request_id, current.value, requested.value)
    return transition


def is_party(actor: Actor, request: TravelRequest) -> bool:
    if actor.is_admin:
        return True
    if actor.role == UserRole.user:
        return request.user_id == actor.user_id
    if actor.is_tour_guide:
        return request.tour_guide_id is not None and request.tour_guide_id == actor.user_id
    return False


def authorize(transition: Transition, actor: Actor, request: TravelRequest, requested: RequestStatus) -> None:
    if actor.role not in transition.roles or not is_party(actor, request):
        raise PermissionDenied(
            f"move request {request.id} to {requested.value}", actor.user_id, actor.role.value, request.id
        )


async def load_request(session: AsyncSession, request_id: int) -> TravelRequest:
    request = await session.get(TravelRequest, request_id)
    if request is None:
        raise NotFound("TravelRequest", request_id)
    return request


class RequestStateMachine:
    """Applies status changes to travel requests.

    The write is a compare-and-set on the row's current status (and guide,
    for reassignments), so of two concurrent updates only the first lands;
    the second re-reads the row and is rejected by the transition table.
    """

    def __init__(self, audit: AuditTrail, cache: Optional[RedisCache] = None, clock: Clock = utc_now):
        self.audit = audit
        self.cache = cache
        self.clock = clock

    async def apply(
        self,
        session: AsyncSession,
        request: TravelRequest,
        requested: RequestStatus,
        actor: Actor,
        *,
        via: str = VIA_STATUS,
        tour_guide_id: Optional[int] = None,
        note: Optional[str] = None,
        action: Optional[ActivityAction] = None,
    ) -> TravelRequest:
        request_id = request.id
        current = request.status
        previous_guide = request.tour_guide_id

        transition = check_transition(request_id, current, requested, via)
        authorize(transition, actor, request, requested)

        if requested in GUIDED_STATUSES:
            next_guide = tour_guide_id if tour_guide_id is not None else previous_guide
        else:
            next_guide = None

        conditions = [TravelRequest.id == request_id, TravelRequest.status == current]
        if via == VIA_REASSIGN:
            if previous_guide is None:
                conditions.append(TravelRequest.tour_guide_id.is_(None))
            else:
                conditions.append(TravelRequest.tour_guide_id == previous_guide)

        now = self.clock()
        result = await session.execute(
            update(TravelRequest)
            .where(*conditions)
            .values(status=requested, tour_guide_id=next_guide, updated_at=now)
            .returning(TravelRequest.id),
            execution_options={"synchronize_session": False},
        )
        if result.scalar_one_or_none() is None:
            await session.rollback()
            latest = await session.scalar(select(TravelRequest.status).where(TravelRequest.id == request_id))
            logger.warning(
                f"Request {request_id}: {current.value} -> {requested.value} lost to a concurrent update "
                f"(now {latest.value if latest else 'missing'})"
            )
            if latest is None:
                raise NotFound("TravelRequest", request_id)
            raise IllegalTransition("TravelRequest", request_id, latest.value, requested.value)

        await session.commit()
        await session.refresh(request)
        logger.info(
            f"Request {request_id}: {current.value} -> {requested.value} by {actor.role.value} {actor.user_id}"
        )

        await self._invalidate_workloads(previous_guide, next_guide)
        await self.audit.record_safely(
            ActivityLogEntry(
                actor_id=actor.user_id,
                actor_role=actor.role.value,
                action=(action or self._default_action(via, requested)).value,
                request_id=request_id,
                from_status=current.value,
                to_status=requested.value,
                note=note,
                created_at=now,
            )
        )
        return request

    @staticmethod
    def _default_action(via: str, requested: RequestStatus) -> ActivityAction:
        if via == VIA_ASSIGN:
            return ActivityAction.assign
        if via == VIA_REASSIGN:
            return ActivityAction.reassign
        if requested == RequestStatus.cancelled:
            return ActivityAction.cancel
        return ActivityAction.status_change

    async def _invalidate_workloads(self, *guide_ids: Optional[int]) -> None:
        if self.cache is None:
            return
        for guide_id in {g for g in guide_ids if g is not None}:
            try:
                await self.cache.delete(workload_cache_key(guide_id))
            except RedisError as exc:
                logger.warning(f"Could not drop cached workload for guide {guide_id}: {exc}")
