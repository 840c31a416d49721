"""Property catalog adapter (read-only).

The catalog owns nightly rate, minimum stay and discount tiers. The engine
only reads them, one property at a time, as a PropertyBookingConfig.
"""

from __future__ import annotations

from psycopg2.extensions import cursor as PgCursor

from lodgely.domain.errors import PropertyNotFound
from lodgely.domain.pricing import TIER_THRESHOLDS, PropertyBookingConfig

from .db import fetchone, txn

_DISCOUNT_COLUMNS = ", ".join(f"discount_{n}_nights" for n in TIER_THRESHOLDS)


def _row_to_config(row: tuple) -> PropertyBookingConfig:
    property_id, owner_id, price_cents, currency, minimum_stay, *discounts = row
    return PropertyBookingConfig(
        property_id=str(property_id),
        owner_id=str(owner_id),
        price_per_night_cents=price_cents,
        currency=currency,
        minimum_stay_nights=minimum_stay or 1,
        discount_tiers=dict(zip(TIER_THRESHOLDS, discounts)),
    )


def get_booking_config(property_id: str, cur: PgCursor | None = None) -> PropertyBookingConfig:
    """Load the booking terms of a property.

    Args:
        property_id: Property identifier.
        cur: Optional cursor to read inside an existing transaction.

    Raises:
        PropertyNotFound: If the property does not exist.
    """
    query = f"""
        SELECT id, owner_id, price_per_night_cents, currency,
               minimum_stay_nights, {_DISCOUNT_COLUMNS}
        FROM properties
        WHERE id = %s
    """

    if cur is not None:
        row = fetchone(cur, query, (property_id,))
    else:
        with txn() as c:
            row = fetchone(c, query, (property_id,))

    if row is None:
        raise PropertyNotFound(f"Property {property_id} not found")
    return _row_to_config(row)
