"""Shared fixtures: a throwaway SQLite database per test, a frozen clock and
an in-memory stand-in for the Redis client behind RedisCache."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./traveldesk-test.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from datetime import datetime, timedelta, timezone  # noqa: E402
from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.cache import RedisCache  # noqa: E402
from app.core.database import Base  # noqa: E402
from app.models.packages.tour_package import TourPackage  # noqa: E402
from app.models.requests.travel_request import RequestStatus, TravelRequest  # noqa: E402
from app.models.user.user import User, UserRole  # noqa: E402
from app.schemas.auth.actor import Actor  # noqa: E402
from app.schemas.bookings.booking import BookingCreate  # noqa: E402
from app.services.activity.audit_trail import AuditTrail  # noqa: E402
from app.services.bookings.booking_service import BookingService  # noqa: E402
from app.services.inventory.inventory_ledger import InventoryLedger  # noqa: E402
from app.services.requests.assignment_service import AssignmentResolver  # noqa: E402
from app.services.requests.request_service import RequestService  # noqa: E402
from app.services.requests.state_machine import RequestStateMachine  # noqa: E402

NOW = datetime(2026, 6, 1, 9, 0, tzinfo=timezone.utc)
TODAY = NOW.date()
TOMORROW = TODAY + timedelta(days=1)


class FakeRedis:
    """Just enough of redis.asyncio.Redis for RedisCache."""

    def __init__(self):
        self.store = {}

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed


def fixed_clock():
    return NOW


@pytest.fixture
async def engine(tmp_path):
    db_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'traveldesk.db'}",
        connect_args={"timeout": 30},
    )
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as db:
        yield db


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def cache(fake_redis):
    return RedisCache(fake_redis)


@pytest.fixture
def audit(session_factory):
    return AuditTrail(session_factory)


@pytest.fixture
def state_machine(audit, cache):
    return RequestStateMachine(audit, cache, clock=fixed_clock)


@pytest.fixture
def resolver(state_machine, cache):
    return AssignmentResolver(state_machine, cache)


@pytest.fixture
def request_service(state_machine):
    return RequestService(state_machine)


@pytest.fixture
def ledger():
    return InventoryLedger()


@pytest.fixture
def booking_service(ledger, audit):
    return BookingService(ledger, audit, clock=fixed_clock)


async def make_user(session, role=UserRole.user, name="Ana Traveller", email=None, active=True):
    user = User(
        name=name,
        email=email or f"{name.lower().replace(' ', '.')}@example.com",
        phone="+1 555 0100",
        role=role,
        active=active,
    )
    session.add(user)
    await session.commit()
    await session.refresh(user)
    return user


async def make_package(session, seats=10, price="100.00", active=True, title="Bali Escape"):
    package = TourPackage(
        slug=title.lower().replace(" ", "-"),
        title=title,
        destination="Bali",
        price=Decimal(price),
        duration_days=5,
        duration_nights=4,
        seats_total=seats,
        seats_available=seats,
        itinerary=[{"day": 1, "title": "Arrival", "description": "Transfer to Ubud"}],
        includes=["Hotel"],
        excludes=["Flights"],
        highlights=["Rice terraces"],
        active=active,
    )
    session.add(package)
    await session.commit()
    await session.refresh(package)
    return package


async def make_request(session, owner, status=RequestStatus.pending, guide=None, destination="Kyoto"):
    request = TravelRequest(
        user_id=owner.id,
        destination=destination,
        message="Two weeks in spring",
        status=status,
        tour_guide_id=guide.id if guide is not None else None,
    )
    session.add(request)
    await session.commit()
    await session.refresh(request)
    return request


def actor_for(user):
    return Actor(user_id=user.id, role=user.role)


def booking_payload(package_id, num_travelers=3, departure_date=TOMORROW):
    return BookingCreate(
        package_id=package_id,
        departure_date=departure_date,
        num_travelers=num_travelers,
        contact_name="Ana Traveller",
        contact_email="ana@example.com",
        contact_phone="+1 555 0100",
    )


async def fetch(session_factory, model, entity_id):
    """Read a row through a fresh session, bypassing any identity map."""
    async with session_factory() as db:
        return await db.get(model, entity_id)


@pytest.fixture
async def customer(session):
    return await make_user(session, UserRole.user, "Ana Traveller")


@pytest.fixture
async def admin(session):
    return await make_user(session, UserRole.admin, "Root Admin")


@pytest.fixture
async def guide_a(session):
    return await make_user(session, UserRole.tour_guide, "Guide Alpha")


@pytest.fixture
async def guide_b(session):
    return await make_user(session, UserRole.tour_guide, "Guide Bravo")


@pytest.fixture
async def package(session):
    return await make_package(session)
