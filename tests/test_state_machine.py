import asyncio
import itertools

import pytest

from sqlalchemy import select

from app.core.exceptions import IllegalTransition, NotFound, PermissionDenied
from app.models.activity.activity_log import ActivityLog
from app.models.requests.travel_request import GUIDED_STATUSES, RequestStatus, TravelRequest
from app.models.user.user import UserRole
from app.services.requests.request_service import RequestService
from app.services.requests.state_machine import (
    REQUEST_TRANSITIONS, VIA_ASSIGN, VIA_REASSIGN, VIA_STATUS, RequestStateMachine, check_transition
)
from tests.conftest import actor_for, fetch, fixed_clock, make_request

STATUS_EDGES = {
    (RequestStatus.pending, RequestStatus.cancelled),
    (RequestStatus.assigned, RequestStatus.in_progress),
    (RequestStatus.assigned, RequestStatus.cancelled),
    (RequestStatus.in_progress, RequestStatus.completed),
    (RequestStatus.in_progress, RequestStatus.cancelled),
}


def test_table_covers_every_status():
    assert set(REQUEST_TRANSITIONS) == set(RequestStatus)
    for status in (RequestStatus.completed, RequestStatus.cancelled):
        assert REQUEST_TRANSITIONS[status] == {}


def test_status_edges_match_table():
    edges = {
        (current, target)
        for current, targets in REQUEST_TRANSITIONS.items()
        for target, transition in targets.items()
        if transition.via == VIA_STATUS
    }
    assert edges == STATUS_EDGES


def test_assignment_edges_are_admin_only():
    for targets in REQUEST_TRANSITIONS.values():
        for transition in targets.values():
            if transition.via in (VIA_ASSIGN, VIA_REASSIGN):
                assert transition.roles == frozenset({UserRole.admin})


@pytest.mark.parametrize("current,target", list(itertools.product(RequestStatus, RequestStatus)))
def test_check_transition_rejects_everything_off_table(current, target):
    if (current, target) in STATUS_EDGES:
        assert check_transition(1, current, target).via == VIA_STATUS
        return
    with pytest.raises(IllegalTransition) as excinfo:
        check_transition(1, current, target)
    assert excinfo.value.detail["current_status"] == current.value
    assert excinfo.value.detail["requested_status"] == target.value


def test_assign_edge_is_not_reachable_through_status_updates():
    with pytest.raises(IllegalTransition):
        check_transition(1, RequestStatus.pending, RequestStatus.assigned, VIA_STATUS)
    assert check_transition(1, RequestStatus.pending, RequestStatus.assigned, VIA_ASSIGN).via == VIA_ASSIGN


@pytest.mark.parametrize(
    "current,target",
    [pair for pair in itertools.product(RequestStatus, RequestStatus) if pair not in STATUS_EDGES],
)
async def test_illegal_status_update_leaves_row_untouched(
    session, session_factory, request_service, customer, admin, guide_a, current, target
):
    guide = guide_a if current in GUIDED_STATUSES else None
    request = await make_request(session, customer, status=current, guide=guide)

    with pytest.raises(IllegalTransition):
        await request_service.update_request_status(session, request.id, actor_for(admin), target)

    stored = await fetch(session_factory, TravelRequest, request.id)
    assert stored.status == current
    assert stored.tour_guide_id == (guide.id if guide else None)


async def test_guide_walks_request_to_completion(
    session, session_factory, request_service, customer, guide_a
):
    request = await make_request(session, customer, status=RequestStatus.assigned, guide=guide_a)
    guide = actor_for(guide_a)

    started = await request_service.update_request_status(
        session, request.id, guide, RequestStatus.in_progress, note="Met the client"
    )
    assert started.status == RequestStatus.in_progress

    done = await request_service.update_request_status(session, request.id, guide, RequestStatus.completed)
    assert done.status == RequestStatus.completed
    assert done.tour_guide_id == guide_a.id

    async with session_factory() as db:
        logs = await request_service.audit.list_for_request(db, request.id)
    assert [(log.from_status, log.to_status) for log in logs] == [
        ("assigned", "in_progress"),
        ("in_progress", "completed"),
    ]
    assert logs[0].note == "Met the client"
    assert logs[0].actor_role == "tour_guide"
    assert logs[0].action == "status_change"


async def test_only_the_assigned_guide_may_advance(session, request_service, customer, guide_a, guide_b):
    request = await make_request(session, customer, status=RequestStatus.assigned, guide=guide_a)

    # Another guide cannot even see the request.
    with pytest.raises(NotFound):
        await request_service.update_request_status(
            session, request.id, actor_for(guide_b), RequestStatus.in_progress
        )


async def test_admin_cannot_start_work_on_behalf_of_guide(session, request_service, customer, admin, guide_a):
    request = await make_request(session, customer, status=RequestStatus.assigned, guide=guide_a)

    with pytest.raises(PermissionDenied):
        await request_service.update_request_status(
            session, request.id, actor_for(admin), RequestStatus.in_progress
        )


async def test_owner_cannot_cancel_once_assigned(session, request_service, customer, guide_a):
    request = await make_request(session, customer, status=RequestStatus.assigned, guide=guide_a)

    with pytest.raises(PermissionDenied):
        await request_service.cancel_request(session, request.id, actor_for(customer))


@pytest.mark.parametrize("status", [RequestStatus.assigned, RequestStatus.in_progress])
async def test_admin_cancel_clears_guide(session, session_factory, request_service, customer, admin, guide_a, status):
    request = await make_request(session, customer, status=status, guide=guide_a)

    cancelled = await request_service.cancel_request(session, request.id, actor_for(admin), note="Client withdrew")

    assert cancelled.status == RequestStatus.cancelled
    assert cancelled.tour_guide_id is None
    stored = await fetch(session_factory, TravelRequest, request.id)
    assert stored.tour_guide_id is None


async def test_stale_read_is_rejected_by_current_status(
    session, session_factory, audit, cache, customer, admin, guide_a
):
    request = await make_request(session, customer, status=RequestStatus.assigned, guide=guide_a)
    machine = RequestStateMachine(audit, cache, clock=fixed_clock)

    # The guide's session still believes the request is assigned.
    async with session_factory() as guide_session:
        stale = await guide_session.get(TravelRequest, request.id)

        async with session_factory() as admin_session:
            fresh = await admin_session.get(TravelRequest, request.id)
            await machine.apply(admin_session, fresh, RequestStatus.cancelled, actor_for(admin))

        with pytest.raises(IllegalTransition) as excinfo:
            await machine.apply(guide_session, stale, RequestStatus.in_progress, actor_for(guide_a))

    assert excinfo.value.detail["current_status"] == "cancelled"
    stored = await fetch(session_factory, TravelRequest, request.id)
    assert stored.status == RequestStatus.cancelled


async def test_concurrent_completions_apply_exactly_once(session, session_factory, audit, cache, customer, guide_a):
    request = await make_request(session, customer, status=RequestStatus.in_progress, guide=guide_a)
    service = RequestService(RequestStateMachine(audit, cache, clock=fixed_clock))

    async def complete():
        async with session_factory() as db:
            return await service.update_request_status(db, request.id, actor_for(guide_a), RequestStatus.completed)

    results = await asyncio.gather(complete(), complete(), return_exceptions=True)

    successes = [r for r in results if isinstance(r, TravelRequest)]
    failures = [r for r in results if not isinstance(r, TravelRequest)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], IllegalTransition)

    async with session_factory() as db:
        logs = (await db.execute(select(ActivityLog).where(ActivityLog.request_id == request.id))).scalars().all()
    assert len(logs) == 1
    assert logs[0].to_status == "completed"
