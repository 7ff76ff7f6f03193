from typing import Any, Optional


class TravelDeskError(Exception):
    """Base class for domain errors.

    ``code`` is the machine-readable kind, ``status_code`` the HTTP status the
    API layer answers with and ``detail`` the structured context (entity id,
    current and requested status, seat counts) a client needs to render a
    specific message.
    """

    code = "travel_desk_error"
    status_code = 400

    def __init__(self, message: str, **detail: Any) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_dict(self) -> dict:
        return {"error": self.code, "message": self.message, "detail": self.detail}


class NotFound(TravelDeskError):
    code = "not_found"
    status_code = 404

    def __init__(self, entity: str, entity_id: Any) -> None:
        super().__init__(f"{entity} {entity_id} not found", entity=entity, entity_id=entity_id)
        self.entity = entity
        self.entity_id = entity_id


class PermissionDenied(TravelDeskError):
    code = "permission_denied"
    status_code = 403

    def __init__(self, action: str, actor_id: int, actor_role: str, entity_id: Optional[int] = None) -> None:
        super().__init__(
            f"{actor_role} {actor_id} may not {action}",
            action=action,
            actor_id=actor_id,
            actor_role=actor_role,
            entity_id=entity_id,
        )


class IllegalTransition(TravelDeskError):
    code = "illegal_transition"
    status_code = 409

    def __init__(self, entity: str, entity_id: int, current: str, requested: str) -> None:
        super().__init__(
            f"{entity} {entity_id} cannot move from {current} to {requested}",
            entity=entity,
            entity_id=entity_id,
            current_status=current,
            requested_status=requested,
        )
        self.current = current
        self.requested = requested


class GuideInactive(TravelDeskError):
    code = "guide_inactive"
    status_code = 409

    def __init__(self, guide_id: int) -> None:
        super().__init__(f"Tour guide {guide_id} is not active", tour_guide_id=guide_id)


class RequestNotAssignable(TravelDeskError):
    code = "request_not_assignable"
    status_code = 409

    def __init__(self, request_id: int, current: str, action: str) -> None:
        super().__init__(
            f"Request {request_id} in status {current} cannot be handled by {action}",
            request_id=request_id,
            current_status=current,
            action=action,
        )


class InsufficientInventory(TravelDeskError):
    code = "insufficient_inventory"
    status_code = 409

    def __init__(self, package_id: int, requested: int, available: int) -> None:
        super().__init__(
            f"Package {package_id} has {available} seats left, {requested} requested",
            package_id=package_id,
            requested=requested,
            seats_available=available,
        )


class InventoryInconsistency(TravelDeskError):
    """Releasing seats would push seats_available past seats_total."""

    code = "inventory_inconsistency"
    status_code = 500

    def __init__(self, package_id: int, releasing: int, available: int, total: int) -> None:
        super().__init__(
            f"Releasing {releasing} seats on package {package_id} would exceed its total of {total}",
            package_id=package_id,
            releasing=releasing,
            seats_available=available,
            seats_total=total,
        )


class PackageUnavailable(TravelDeskError):
    code = "package_unavailable"
    status_code = 409

    def __init__(self, package_id: int) -> None:
        super().__init__(f"Package {package_id} is not open for booking", package_id=package_id)


class InvalidDeparture(TravelDeskError):
    code = "invalid_departure"
    status_code = 422

    def __init__(self, departure_date, today) -> None:
        super().__init__(
            f"Departure date {departure_date} must be after {today}",
            departure_date=str(departure_date),
            today=str(today),
        )


class InvalidTravelerCount(TravelDeskError):
    code = "invalid_traveler_count"
    status_code = 422

    def __init__(self, num_travelers: int) -> None:
        super().__init__(f"At least 1 traveler required, got {num_travelers}", num_travelers=num_travelers)


class AlreadyCancelled(TravelDeskError):
    code = "already_cancelled"
    status_code = 409

    def __init__(self, booking_id: int) -> None:
        super().__init__(f"Booking {booking_id} is already cancelled", booking_id=booking_id)


class NotCancellable(TravelDeskError):
    code = "not_cancellable"
    status_code = 409

    def __init__(self, booking_id: int, current: str) -> None:
        super().__init__(
            f"Booking {booking_id} in status {current} cannot be cancelled",
            booking_id=booking_id,
            current_status=current,
        )


class DuplicateEntity(TravelDeskError):
    code = "duplicate_entity"
    status_code = 409

    def __init__(self, entity: str, field: str, value: Any) -> None:
        super().__init__(f"{entity} with {field} {value} already exists", entity=entity, field=field, value=value)


class InvalidSeatTotal(TravelDeskError):
    code = "invalid_seat_total"
    status_code = 422

    def __init__(self, package_id: int, seats_total: int, reserved: int) -> None:
        super().__init__(
            f"Package {package_id} has {reserved} seats reserved, cannot shrink to {seats_total}",
            package_id=package_id,
            seats_total=seats_total,
            reserved=reserved,
        )


class PackageInUse(TravelDeskError):
    code = "package_in_use"
    status_code = 409

    def __init__(self, package_id: int, open_bookings: int) -> None:
        super().__init__(
            f"Package {package_id} still has {open_bookings} open bookings",
            package_id=package_id,
            open_bookings=open_bookings,
        )


class AuditWriteFailure(TravelDeskError):
    """The activity trail could not be persisted. Never fatal to the caller."""

    code = "audit_write_failure"
    status_code = 500

    def __init__(self, action: str, reason: str) -> None:
        super().__init__(f"Could not record {action}: {reason}", action=action, reason=reason)
