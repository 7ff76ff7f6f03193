from fastapi import Depends

from app.core.cache import RedisCache
from app.core.database import SessionLocal
from app.core.redis_lifecycle import get_cache
from app.services.activity.audit_trail import AuditTrail
from app.services.bookings.booking_service import BookingService
from app.services.inventory.inventory_ledger import InventoryLedger
from app.services.requests.assignment_service import AssignmentResolver
from app.services.requests.request_service import RequestService
from app.services.requests.state_machine import RequestStateMachine


def get_audit_trail() -> AuditTrail:
    return AuditTrail(SessionLocal)


def get_state_machine(
    audit: AuditTrail = Depends(get_audit_trail),
    cache: RedisCache = Depends(get_cache),
) -> RequestStateMachine:
    return RequestStateMachine(audit, cache)


def get_request_service(
    state_machine: RequestStateMachine = Depends(get_state_machine),
) -> RequestService:
    return RequestService(state_machine)


def get_assignment_resolver(
    state_machine: RequestStateMachine = Depends(get_state_machine),
    cache: RedisCache = Depends(get_cache),
) -> AssignmentResolver:
    return AssignmentResolver(state_machine, cache)


def get_booking_service(audit: AuditTrail = Depends(get_audit_trail)) -> BookingService:
    return BookingService(InventoryLedger(), audit)
