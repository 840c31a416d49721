"""Mapping of engine errors to HTTP responses."""

from fastapi import HTTPException

from lodgely.domain.errors import ReservationError

STATUS_BY_CODE: dict[str, int] = {
    "validation_error": 422,
    "availability_conflict": 409,
    "booking_conflict": 409,
    "invalid_state_transition": 409,
    "reservation_not_found": 404,
    "property_not_found": 404,
    "not_property_owner": 403,
}


def to_http(exc: ReservationError) -> HTTPException:
    """HTTPException with ``{"detail": {"code": ...}}`` for an engine error."""
    return HTTPException(status_code=STATUS_BY_CODE.get(exc.code, 500), detail=exc.to_dict())
