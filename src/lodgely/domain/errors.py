"""Reservation engine error taxonomy.

Every failure the engine reports is a subclass of ReservationError and
carries a stable ``code`` so the API layer (and any other caller) can
branch on the kind without parsing messages.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from lodgely.domain.availability import Conflict


class ReservationError(Exception):
    """Base class for all engine errors."""

    code = "reservation_error"

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": str(self)}


class ValidationError(ReservationError):
    """A request field or business rule failed at creation time."""

    code = "validation_error"

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "field": self.field, "reason": self.reason}


class AvailabilityConflict(ReservationError):
    """Requested range is unavailable when the request is created."""

    code = "availability_conflict"

    def __init__(self, conflict: Conflict) -> None:
        self.conflict = conflict
        super().__init__(f"Requested dates are unavailable ({conflict.reason})")

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, **self.conflict.to_dict()}


class BookingConflict(ReservationError):
    """Approval re-check failed; another approval won the race."""

    code = "booking_conflict"

    def __init__(self, reason: str, conflict: Conflict | None = None) -> None:
        self.reason = reason
        self.conflict = conflict
        super().__init__(f"Reservation cannot be approved ({reason})")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "reason": self.reason}
        if self.conflict is not None:
            data.update(self.conflict.to_dict())
        return data


class InvalidStateTransition(ReservationError):
    """Attempted to decide a request that is no longer pending."""

    code = "invalid_state_transition"

    def __init__(self, current: str, target: str) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition reservation from {current} to {target}")

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "current": self.current, "target": self.target}


class ReservationNotFound(ReservationError):
    code = "reservation_not_found"


class PropertyNotFound(ReservationError):
    code = "property_not_found"


class NotPropertyOwner(ReservationError):
    """Caller is not the owner of the property the operation targets."""

    code = "not_property_owner"


class NotificationDeliveryFailure(ReservationError):
    """Notification could not be delivered. Logged, never propagated."""

    code = "notification_delivery_failure"
