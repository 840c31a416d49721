"""Owner-managed blocked dates.

A blocked date removes a single night from availability independently of
any reservation. Writes take the same per-property lock as approvals
(waiting is fine here), so a block and an approval can never interleave.
A date that lies inside an approved stay cannot be blocked.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from lodgely.domain.errors import NotPropertyOwner, ValidationError
from lodgely.domain.intervals import Interval
from lodgely.infra.db import txn
from lodgely.infra.property_catalog import get_booking_config
from lodgely.infra.repositories.blocked_dates_repository import (
    delete_all_blocked_dates,
    delete_blocked_date,
    list_blocked_dates as _list_blocked_dates,
    upsert_blocked_dates,
)
from lodgely.infra.repositories.reservation_requests_repository import (
    lock_property,
    read_snapshot,
)
from lodgely.observability.logging import get_logger
from lodgely.observability.redaction import safe_log_context

logger = get_logger(__name__)

# A single call may block at most this many days
MAX_BLOCK_SPAN_DAYS = 366

OVERLAPS_APPROVED_RESERVATION = "overlaps_approved_reservation"


def _assert_owner(cur, property_id: str, owner_id: str) -> None:
    config = get_booking_config(property_id, cur=cur)
    if config.owner_id != owner_id:
        raise NotPropertyOwner("Only the property owner can manage blocked dates")


def block_dates(
    property_id: str,
    *,
    owner_id: str,
    start: date,
    end: date | None = None,
    reason: str | None = None,
) -> list[date]:
    """Block every date of the inclusive range ``[start, end]``.

    Idempotent: re-blocking an already blocked date only refreshes its reason.

    Returns:
        The blocked dates, ascending.

    Raises:
        PropertyNotFound: Unknown property.
        NotPropertyOwner: Caller does not own the property.
        ValidationError: Bad range, or a date inside an approved stay.
    """
    end = end or start
    if end < start:
        raise ValidationError("end", "end_before_start")
    # Inclusive single-day semantics: [start, end] is the stay [start, end + 1)
    span = Interval(start, end + timedelta(days=1))
    if span.nights > MAX_BLOCK_SPAN_DAYS:
        raise ValidationError("end", "range_too_long")

    days = sorted(span.nights_iter())

    with txn() as cur:
        _assert_owner(cur, property_id, owner_id)
        lock_property(cur, property_id)

        snapshot = read_snapshot(cur, property_id)
        for approved in snapshot.approved:
            if approved.interval.overlaps(span):
                logger.info(
                    "block refused: approved stay in range",
                    extra={
                        "extra_fields": safe_log_context(
                            property_id=property_id,
                            reservation_id=approved.reservation_id,
                        )
                    },
                )
                raise ValidationError("dates", OVERLAPS_APPROVED_RESERVATION)

        upsert_blocked_dates(
            cur,
            property_id=property_id,
            dates=days,
            reason=(reason or "").strip() or None,
        )

    logger.info(
        "dates blocked",
        extra={
            "extra_fields": safe_log_context(
                property_id=property_id,
                start=start,
                end=end,
                count=len(days),
            )
        },
    )
    return days


def unblock_date(property_id: str, *, owner_id: str, day: date) -> bool:
    """Remove one blocked date. Returns False if it was not blocked."""
    with txn() as cur:
        _assert_owner(cur, property_id, owner_id)
        removed = delete_blocked_date(cur, property_id=property_id, day=day)

    logger.info(
        "date unblocked",
        extra={"extra_fields": safe_log_context(property_id=property_id, day=day, removed=removed)},
    )
    return removed


def unblock_all(property_id: str, *, owner_id: str) -> int:
    """Remove every blocked date of a property. Returns the number removed."""
    with txn() as cur:
        _assert_owner(cur, property_id, owner_id)
        removed = delete_all_blocked_dates(cur, property_id=property_id)

    logger.info(
        "all dates unblocked",
        extra={"extra_fields": safe_log_context(property_id=property_id, count=removed)},
    )
    return removed


def list_blocked_dates(
    property_id: str,
    *,
    start: date | None = None,
    end: date | None = None,
) -> list[dict[str, Any]]:
    with txn() as cur:
        return _list_blocked_dates(cur, property_id=property_id, start=start, end=end)
