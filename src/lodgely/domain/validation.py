"""Creation-time validation of reservation requests.

Checks run in a fixed order and the first failure is raised as a
ValidationError naming the offending field, so callers can render a
field-specific message. These facts are immutable once the request exists
and are not re-checked at approval.
"""

from __future__ import annotations

from datetime import date

from lodgely.domain.errors import ValidationError
from lodgely.domain.pricing import PropertyBookingConfig

# Reason codes
MISSING = "missing"
CHECK_OUT_NOT_AFTER_CHECK_IN = "check_out_not_after_check_in"
IN_PAST = "in_past"
BELOW_MINIMUM_STAY = "below_minimum_stay"
SELF_BOOKING = "self_booking"
PHONE_REQUIRED = "phone_required"
INVALID_GUEST_COUNT = "invalid_guest_count"


def validate_request(
    *,
    config: PropertyBookingConfig,
    requester_id: str,
    check_in: date | None,
    check_out: date | None,
    today: date,
    share_phone: bool = False,
    contact_phone: str | None = None,
    guest_count: int = 1,
) -> int:
    """Validate a reservation request against the property's booking terms.

    Returns:
        Number of nights of the stay.

    Raises:
        ValidationError: On the first failed rule.
    """
    if check_in is None:
        raise ValidationError("check_in", MISSING)
    if check_out is None:
        raise ValidationError("check_out", MISSING)
    if check_in >= check_out:
        raise ValidationError("check_out", CHECK_OUT_NOT_AFTER_CHECK_IN)
    if check_in < today:
        raise ValidationError("check_in", IN_PAST)

    nights = (check_out - check_in).days
    if nights < config.minimum_stay_nights:
        raise ValidationError("nights", BELOW_MINIMUM_STAY)

    if requester_id == config.owner_id:
        raise ValidationError("requester_id", SELF_BOOKING)

    if share_phone and not (contact_phone or "").strip():
        raise ValidationError("contact_phone", PHONE_REQUIRED)

    if guest_count < 1:
        raise ValidationError("guest_count", INVALID_GUEST_COUNT)

    return nights
