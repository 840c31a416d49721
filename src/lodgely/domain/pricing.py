"""Pricing engine - tiered length-of-stay discounts.

Amounts are integer minor units (cents). A property may configure a
percent-off for stays of at least 3, 5, 7, 14 or 30 nights. Tiers do not
stack: thresholds are evaluated from the longest down and the first
configured tier the stay qualifies for wins. An unconfigured tier is
skipped, so the next shorter configured tier applies instead.

Rounding is half-up to a whole minor unit, applied once to the stay total
(never per night).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Mapping

TIER_THRESHOLDS: tuple[int, ...] = (3, 5, 7, 14, 30)

_HUNDRED = Decimal(100)


@dataclass(frozen=True)
class PropertyBookingConfig:
    """Booking terms of one property, as published by the property catalog.

    Attributes:
        property_id: Property identifier.
        owner_id: User id of the property owner.
        price_per_night_cents: Nightly rate in minor units (> 0).
        currency: ISO currency code.
        minimum_stay_nights: Shortest stay accepted (>= 1).
        discount_tiers: Threshold (nights) -> percent off (0..100) or None.
    """

    property_id: str
    owner_id: str
    price_per_night_cents: int
    currency: str
    minimum_stay_nights: int = 1
    discount_tiers: Mapping[int, Decimal | None] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.price_per_night_cents <= 0:
            raise ValueError("price_per_night_cents must be positive")
        if self.minimum_stay_nights < 1:
            raise ValueError("minimum_stay_nights must be at least 1")
        tiers: dict[int, Decimal | None] = {}
        for threshold, percent in self.discount_tiers.items():
            if threshold not in TIER_THRESHOLDS:
                raise ValueError(f"Unsupported discount threshold: {threshold}")
            if percent is not None:
                percent = Decimal(str(percent))
                if percent < 0 or percent > _HUNDRED:
                    raise ValueError(f"Discount for {threshold} nights must be within 0..100")
            tiers[threshold] = percent
        object.__setattr__(self, "discount_tiers", tiers)


@dataclass(frozen=True)
class PriceQuote:
    nights: int
    currency: str
    price_per_night_cents: int
    applied_discount_percent: Decimal
    per_night_after_discount: Decimal
    subtotal_cents: int
    total_cents: int
    savings_cents: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "nights": self.nights,
            "currency": self.currency,
            "price_per_night_cents": self.price_per_night_cents,
            "applied_discount_percent": str(self.applied_discount_percent),
            "per_night_after_discount": str(self.per_night_after_discount),
            "subtotal_cents": self.subtotal_cents,
            "total_cents": self.total_cents,
            "savings_cents": self.savings_cents,
        }


def _round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def select_discount(discount_tiers: Mapping[int, Decimal | None], nights: int) -> Decimal:
    """Percent off for a stay of ``nights`` (0 when no tier applies)."""
    for threshold in sorted(TIER_THRESHOLDS, reverse=True):
        percent = discount_tiers.get(threshold)
        if nights >= threshold and percent is not None:
            return Decimal(percent)
    return Decimal(0)


def price(config: PropertyBookingConfig, nights: int) -> PriceQuote:
    """Price a stay of ``nights`` under ``config``.

    ``nights`` must be >= 1; the validation layer rejects shorter stays
    before pricing is reached.
    """
    if nights < 1:
        raise ValueError("nights must be at least 1")

    rate = Decimal(config.price_per_night_cents)
    percent = select_discount(config.discount_tiers, nights)
    per_night = rate * (1 - percent / _HUNDRED)

    total = _round_half_up(per_night * nights)
    subtotal = _round_half_up(rate * nights)

    return PriceQuote(
        nights=nights,
        currency=config.currency,
        price_per_night_cents=config.price_per_night_cents,
        applied_discount_percent=percent,
        per_night_after_discount=per_night,
        subtotal_cents=subtotal,
        total_cents=total,
        savings_cents=subtotal - total,
    )
