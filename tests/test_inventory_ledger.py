import pytest

from app.core.exceptions import (
    InsufficientInventory, InventoryInconsistency, InvalidTravelerCount, NotFound
)
from app.models.packages.tour_package import TourPackage
from tests.conftest import fetch, make_package


async def test_reserve_decrements_and_returns_remaining(session, session_factory, ledger, package):
    remaining = await ledger.reserve_seats(session, package.id, 4)
    await session.commit()

    assert remaining == 6
    stored = await fetch(session_factory, TourPackage, package.id)
    assert stored.seats_available == 6
    assert stored.seats_total == 10


async def test_reserve_then_release_restores_availability(session, session_factory, ledger, package):
    await ledger.reserve_seats(session, package.id, 3)
    await ledger.release_seats(session, package.id, 3)
    await session.commit()

    stored = await fetch(session_factory, TourPackage, package.id)
    assert stored.seats_available == 10


async def test_reserve_more_than_available_fails_without_change(session, session_factory, ledger):
    small = await make_package(session, seats=2, title="Tiny Tour")
    package_id = small.id

    with pytest.raises(InsufficientInventory) as excinfo:
        await ledger.reserve_seats(session, package_id, 3)
    await session.rollback()

    assert excinfo.value.detail == {"package_id": package_id, "requested": 3, "seats_available": 2}
    stored = await fetch(session_factory, TourPackage, package_id)
    assert stored.seats_available == 2


async def test_reserve_exactly_the_last_seats(session, ledger):
    small = await make_package(session, seats=3, title="Last Call")

    assert await ledger.reserve_seats(session, small.id, 3) == 0
    with pytest.raises(InsufficientInventory):
        await ledger.reserve_seats(session, small.id, 1)


async def test_reserve_rejects_non_positive_counts(session, ledger, package):
    with pytest.raises(InvalidTravelerCount):
        await ledger.reserve_seats(session, package.id, 0)


async def test_unknown_package(session, ledger):
    with pytest.raises(NotFound):
        await ledger.reserve_seats(session, 9999, 1)
    with pytest.raises(NotFound):
        await ledger.release_seats(session, 9999, 1)


async def test_release_past_total_signals_inconsistency(session, session_factory, ledger, package):
    package_id = package.id

    with pytest.raises(InventoryInconsistency) as excinfo:
        await ledger.release_seats(session, package_id, 1)
    await session.rollback()

    assert excinfo.value.detail["seats_total"] == 10
    stored = await fetch(session_factory, TourPackage, package_id)
    assert stored.seats_available == 10


@pytest.mark.parametrize("count", [0, -3])
async def test_release_rejects_non_positive_counts(session, session_factory, ledger, package, count):
    await ledger.reserve_seats(session, package.id, 4)
    await session.commit()

    with pytest.raises(InvalidTravelerCount):
        await ledger.release_seats(session, package.id, count)

    stored = await fetch(session_factory, TourPackage, package.id)
    assert stored.seats_available == 6
