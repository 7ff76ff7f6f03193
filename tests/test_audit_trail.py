from datetime import datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from app.core.exceptions import AuditWriteFailure
from app.models.requests.travel_request import RequestStatus, TravelRequest
from app.schemas.activity.activity import ActivityLogEntry
from app.services.activity.audit_trail import AuditTrail
from app.services.bookings.booking_service import BookingService
from app.services.requests.request_service import RequestService
from app.services.requests.state_machine import RequestStateMachine
from tests.conftest import actor_for, booking_payload, fetch, fixed_clock, make_request


@pytest.fixture
async def broken_audit(tmp_path):
    # An empty database: every insert into activity_logs fails.
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'no-tables.db'}")
    yield AuditTrail(sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession))
    await engine.dispose()


def _entry(**overrides):
    data = dict(
        actor_id=1,
        actor_role="admin",
        action="status_change",
        request_id=7,
        from_status="assigned",
        to_status="in_progress",
        created_at=datetime(2026, 6, 1, tzinfo=timezone.utc),
    )
    data.update(overrides)
    return ActivityLogEntry(**data)


async def test_record_appends_in_order(session, audit):
    first = await audit.record(_entry())
    second = await audit.record(_entry(from_status="in_progress", to_status="completed", note="Done"))

    logs = await audit.list_for_request(session, 7)
    assert [log.id for log in logs] == [first.id, second.id]
    assert logs[1].note == "Done"
    assert await audit.list_for_request(session, 8) == []


async def test_record_raises_audit_write_failure(broken_audit):
    with pytest.raises(AuditWriteFailure) as excinfo:
        await broken_audit.record(_entry())
    assert excinfo.value.detail["action"] == "status_change"


async def test_record_safely_swallows_failure(broken_audit):
    assert await broken_audit.record_safely(_entry()) is None


async def test_transition_survives_audit_failure(session, session_factory, broken_audit, cache, customer, guide_a):
    request = await make_request(session, customer, status=RequestStatus.assigned, guide=guide_a)
    service = RequestService(RequestStateMachine(broken_audit, cache, clock=fixed_clock))

    started = await service.update_request_status(session, request.id, actor_for(guide_a), RequestStatus.in_progress)

    assert started.status == RequestStatus.in_progress
    stored = await fetch(session_factory, TravelRequest, request.id)
    assert stored.status == RequestStatus.in_progress


async def test_booking_survives_audit_failure(session, broken_audit, ledger, customer, package):
    service = BookingService(ledger, broken_audit, clock=fixed_clock)

    booking = await service.create_booking(session, actor_for(customer), booking_payload(package.id, 2))

    assert booking.id is not None
    await session.refresh(package)
    assert package.seats_available == 8
