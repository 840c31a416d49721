"""Reservation request lifecycle - create, approve, reject.

States: pending -> approved | rejected. Both targets are terminal.

create
    Validates the request, checks availability against the current
    snapshot, prices the stay and stores it as ``pending``. Overlapping
    pending requests are allowed to coexist.

approve
    One transaction: lock the request row, check owner and state, take the
    per-property lock with NOWAIT, re-read the snapshot, re-check
    availability and commit the status change. A second approval running
    at the same time for the same property fails fast with BookingConflict
    instead of queueing. The EXCLUDE constraint on approved stays is the
    last line: a violation is reported as BookingConflict as well.

reject
    Owner and state checks only; no availability check.

Notifications go out only after the transaction has committed.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from psycopg2 import errors as pg_errors
from psycopg2.extensions import cursor as PgCursor

from lodgely.domain.availability import find_conflict, unavailable_dates
from lodgely.domain.errors import (
    AvailabilityConflict,
    BookingConflict,
    InvalidStateTransition,
    NotPropertyOwner,
    ReservationNotFound,
    ValidationError,
)
from lodgely.domain.intervals import Interval
from lodgely.domain.notifications import notify
from lodgely.domain.pricing import PriceQuote, price
from lodgely.domain.validation import CHECK_OUT_NOT_AFTER_CHECK_IN, validate_request
from lodgely.infra import time as clock
from lodgely.infra.db import txn
from lodgely.infra.property_catalog import get_booking_config
from lodgely.infra.repositories.outbox_repository import (
    RESERVATION_APPROVED,
    RESERVATION_REJECTED,
    RESERVATION_REQUESTED,
    emit_reservation_event,
)
from lodgely.infra.repositories.reservation_requests_repository import (
    get_request,
    insert_request,
    list_requests,
    lock_property,
    read_snapshot,
    update_status,
)
from lodgely.observability.correlation import get_correlation_id
from lodgely.observability.logging import get_logger
from lodgely.observability.redaction import safe_log_context

logger = get_logger(__name__)

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"

TRANSITIONS: dict[str, frozenset[str]] = {
    PENDING: frozenset({APPROVED, REJECTED}),
    APPROVED: frozenset(),
    REJECTED: frozenset(),
}

# BookingConflict reasons
APPROVAL_IN_PROGRESS = "approval_in_progress"
DATES_NO_LONGER_AVAILABLE = "dates_no_longer_available"


@dataclass(frozen=True)
class ReservationRequest:
    id: str
    property_id: str
    requester_id: str
    owner_id: str
    check_in: date
    check_out: date
    nights: int
    guest_count: int
    price_per_night_cents: int
    applied_discount_percent: Decimal
    total_price_cents: int
    savings_cents: int
    currency: str
    status: str
    message: str | None
    share_phone: bool
    contact_phone: str | None
    response_message: str | None
    created_at: datetime
    decided_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ReservationRequest:
        return cls(
            id=str(row["id"]),
            property_id=str(row["property_id"]),
            requester_id=str(row["requester_id"]),
            owner_id=str(row["owner_id"]),
            check_in=row["check_in"],
            check_out=row["check_out"],
            nights=row["nights"],
            guest_count=row["guest_count"],
            price_per_night_cents=row["price_per_night_cents"],
            applied_discount_percent=Decimal(row["applied_discount_percent"]),
            total_price_cents=row["total_price_cents"],
            savings_cents=row["savings_cents"],
            currency=row["currency"],
            status=row["status"],
            message=row["message"],
            share_phone=bool(row["share_phone"]),
            contact_phone=row["contact_phone"],
            response_message=row["response_message"],
            created_at=row["created_at"],
            decided_at=row.get("decided_at"),
        )

    @property
    def interval(self) -> Interval:
        return Interval(self.check_in, self.check_out)

    def notification_context(self) -> dict[str, Any]:
        return {
            "reservation_id": self.id,
            "property_id": self.property_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "nights": self.nights,
            "response_message": self.response_message,
        }

    def to_dict(self, *, include_contact: bool = False) -> dict[str, Any]:
        """Serializable view. The phone is only included when asked for and shared."""
        data = {
            "id": self.id,
            "property_id": self.property_id,
            "requester_id": self.requester_id,
            "owner_id": self.owner_id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "nights": self.nights,
            "guest_count": self.guest_count,
            "price_per_night_cents": self.price_per_night_cents,
            "applied_discount_percent": str(self.applied_discount_percent),
            "total_price_cents": self.total_price_cents,
            "savings_cents": self.savings_cents,
            "currency": self.currency,
            "status": self.status,
            "message": self.message,
            "share_phone": self.share_phone,
            "response_message": self.response_message,
            "created_at": self.created_at.isoformat(),
            "decided_at": self.decided_at.isoformat() if self.decided_at else None,
        }
        if include_contact and self.share_phone:
            data["contact_phone"] = self.contact_phone
        return data


def assert_transition(current: str, target: str) -> None:
    if target not in TRANSITIONS.get(current, frozenset()):
        raise InvalidStateTransition(current, target)


def quote_stay(
    property_id: str,
    check_in: date,
    check_out: date,
    *,
    today: date | None = None,
) -> dict[str, Any]:
    """Price a candidate stay and report whether it can currently be requested.

    Uses the same pricing function as create_reservation_request, so the
    displayed price and the stored price cannot diverge.

    Raises:
        PropertyNotFound: Unknown property.
        ValidationError: check_out not after check_in.
    """
    if check_in >= check_out:
        raise ValidationError("check_out", CHECK_OUT_NOT_AFTER_CHECK_IN)
    today = today or clock.today()

    with txn() as cur:
        config = get_booking_config(property_id, cur=cur)
        snapshot = read_snapshot(cur, property_id)

    candidate = Interval(check_in, check_out)
    conflict = find_conflict(candidate, snapshot, today=today)
    quote: PriceQuote = price(config, candidate.nights)

    return {
        "property_id": property_id,
        "check_in": check_in,
        "check_out": check_out,
        "minimum_stay_nights": config.minimum_stay_nights,
        "meets_minimum_stay": candidate.nights >= config.minimum_stay_nights,
        "available": conflict is None,
        "conflict": conflict,
        "quote": quote,
    }


def availability_calendar(property_id: str, start: date, end: date) -> dict[str, Any]:
    """Blocked and unavailable dates of ``[start, end)`` for a calendar view.

    Raises:
        PropertyNotFound: Unknown property.
        ValidationError: end not after start.
    """
    if start >= end:
        raise ValidationError("to", CHECK_OUT_NOT_AFTER_CHECK_IN)

    with txn() as cur:
        config = get_booking_config(property_id, cur=cur)
        snapshot = read_snapshot(cur, property_id)

    window = Interval(start, end)
    return {
        "property_id": property_id,
        "from": start,
        "to": end,
        "minimum_stay_nights": config.minimum_stay_nights,
        "blocked_dates": sorted(d for d in snapshot.blocked_dates if window.contains_date(d)),
        "unavailable_dates": unavailable_dates(snapshot, start, end),
    }


def create_reservation_request(
    *,
    property_id: str,
    requester_id: str,
    check_in: date | None,
    check_out: date | None,
    message: str | None = None,
    share_phone: bool = False,
    contact_phone: str | None = None,
    guest_count: int = 1,
    today: date | None = None,
    cur: PgCursor | None = None,
) -> ReservationRequest:
    """Validate, check availability, price and persist a pending request.

    Args:
        property_id: Property being requested.
        requester_id: Authenticated caller (the guest).
        check_in: First night.
        check_out: Departure day (exclusive).
        message: Optional note to the owner.
        share_phone: Whether the guest shares a contact phone.
        contact_phone: Required when share_phone is True.
        guest_count: Number of guests (>= 1).
        today: Override of the current date (defaults to APP_TIMEZONE today).
        cur: Optional cursor to run inside an existing transaction.

    Raises:
        PropertyNotFound: Unknown property.
        ValidationError: A field or business rule failed.
        AvailabilityConflict: The range overlaps an approved stay or a block.
    """
    today = today or clock.today()
    correlation_id = get_correlation_id() or None

    def _do(c: PgCursor) -> dict[str, Any]:
        config = get_booking_config(property_id, cur=c)
        nights = validate_request(
            config=config,
            requester_id=requester_id,
            check_in=check_in,
            check_out=check_out,
            today=today,
            share_phone=share_phone,
            contact_phone=contact_phone,
            guest_count=guest_count,
        )

        snapshot = read_snapshot(c, property_id)
        conflict = find_conflict(Interval(check_in, check_out), snapshot, today=today)
        if conflict is not None:
            logger.info(
                "reservation request unavailable",
                extra={
                    "extra_fields": safe_log_context(
                        property_id=property_id,
                        check_in=check_in,
                        check_out=check_out,
                        conflict_reason=conflict.reason,
                    )
                },
            )
            raise AvailabilityConflict(conflict)

        quote = price(config, nights)
        row = insert_request(
            c,
            property_id=property_id,
            requester_id=requester_id,
            owner_id=config.owner_id,
            check_in=check_in,
            check_out=check_out,
            nights=nights,
            guest_count=guest_count,
            price_per_night_cents=config.price_per_night_cents,
            applied_discount_percent=quote.applied_discount_percent,
            total_price_cents=quote.total_cents,
            savings_cents=quote.savings_cents,
            currency=config.currency,
            message=(message or "").strip() or None,
            share_phone=share_phone,
            contact_phone=contact_phone.strip() if share_phone and contact_phone else None,
        )
        emit_reservation_event(
            c,
            event_type=RESERVATION_REQUESTED,
            request=row,
            correlation_id=correlation_id,
        )
        return row

    if cur is not None:
        row = _do(cur)
    else:
        with txn() as c:
            row = _do(c)

    request = ReservationRequest.from_row(row)
    logger.info(
        "reservation request created",
        extra={
            "extra_fields": safe_log_context(
                reservation_id=request.id,
                property_id=property_id,
                nights=request.nights,
                total_price_cents=request.total_price_cents,
            )
        },
    )

    notify(request.owner_id, "reservation_requested", request.notification_context())
    return request


def _load_for_decision(cur: PgCursor, request_id: str, owner_id: str, target: str) -> dict[str, Any]:
    row = get_request(cur, request_id, lock=True)
    if row is None:
        raise ReservationNotFound(f"Reservation request {request_id} not found")
    if str(row["owner_id"]) != owner_id:
        raise NotPropertyOwner("Only the property owner can decide on this request")
    assert_transition(row["status"], target)
    return row


def approve_reservation_request(
    request_id: str,
    *,
    owner_id: str,
    response_message: str | None = None,
    today: date | None = None,
) -> ReservationRequest:
    """Approve a pending request after re-checking availability.

    The re-check reads a fresh snapshot under the per-property lock, so the
    check and the status change form one atomic unit against every other
    approval for the same property.

    Raises:
        ReservationNotFound: Unknown request.
        NotPropertyOwner: Caller does not own the property.
        InvalidStateTransition: Request is not pending.
        BookingConflict: Another approval holds the property lock, or the
            dates are no longer available. The request stays pending.
    """
    today = today or clock.today()
    correlation_id = get_correlation_id() or None

    with txn() as cur:
        row = _load_for_decision(cur, request_id, owner_id, APPROVED)
        property_id = str(row["property_id"])

        try:
            lock_property(cur, property_id, nowait=True)
        except pg_errors.LockNotAvailable:
            logger.warning(
                "approval lock contention",
                extra={
                    "extra_fields": safe_log_context(
                        reservation_id=request_id,
                        property_id=property_id,
                    )
                },
            )
            raise BookingConflict(APPROVAL_IN_PROGRESS)

        snapshot = read_snapshot(cur, property_id, exclude_request_id=request_id)
        candidate = Interval(row["check_in"], row["check_out"])
        conflict = find_conflict(candidate, snapshot, today=today)
        if conflict is not None:
            logger.warning(
                "booking conflict on approval",
                extra={
                    "extra_fields": safe_log_context(
                        reservation_id=request_id,
                        property_id=property_id,
                        conflict_reason=conflict.reason,
                        conflicting_reservation_id=conflict.reservation_id,
                    )
                },
            )
            raise BookingConflict(DATES_NO_LONGER_AVAILABLE, conflict)

        try:
            updated = update_status(
                cur,
                request_id,
                status=APPROVED,
                response_message=response_message,
            )
        except pg_errors.ExclusionViolation:
            logger.warning(
                "booking conflict on approval (constraint)",
                extra={
                    "extra_fields": safe_log_context(
                        reservation_id=request_id,
                        property_id=property_id,
                    )
                },
            )
            raise BookingConflict(DATES_NO_LONGER_AVAILABLE)

        if updated is None:
            raise InvalidStateTransition(row["status"], APPROVED)

        emit_reservation_event(
            cur,
            event_type=RESERVATION_APPROVED,
            request=updated,
            correlation_id=correlation_id,
        )

    request = ReservationRequest.from_row(updated)
    logger.info(
        "reservation request approved",
        extra={
            "extra_fields": safe_log_context(
                reservation_id=request.id,
                property_id=request.property_id,
            )
        },
    )

    notify(request.requester_id, "reservation_approved", request.notification_context())
    return request


def reject_reservation_request(
    request_id: str,
    *,
    owner_id: str,
    response_message: str | None = None,
) -> ReservationRequest:
    """Reject a pending request.

    Raises:
        ReservationNotFound: Unknown request.
        NotPropertyOwner: Caller does not own the property.
        InvalidStateTransition: Request is not pending.
    """
    correlation_id = get_correlation_id() or None

    with txn() as cur:
        row = _load_for_decision(cur, request_id, owner_id, REJECTED)
        updated = update_status(
            cur,
            request_id,
            status=REJECTED,
            response_message=response_message,
        )
        if updated is None:
            raise InvalidStateTransition(row["status"], REJECTED)

        emit_reservation_event(
            cur,
            event_type=RESERVATION_REJECTED,
            request=updated,
            correlation_id=correlation_id,
        )

    request = ReservationRequest.from_row(updated)
    logger.info(
        "reservation request rejected",
        extra={
            "extra_fields": safe_log_context(
                reservation_id=request.id,
                property_id=request.property_id,
            )
        },
    )

    notify(request.requester_id, "reservation_rejected", request.notification_context())
    return request


def get_reservation_request(request_id: str, *, user_id: str) -> ReservationRequest:
    """Fetch a request visible to ``user_id`` (its requester or owner).

    Raises:
        ReservationNotFound: Unknown request, or not visible to the user.
    """
    with txn() as cur:
        row = get_request(cur, request_id)

    if row is None or user_id not in (str(row["requester_id"]), str(row["owner_id"])):
        raise ReservationNotFound(f"Reservation request {request_id} not found")
    return ReservationRequest.from_row(row)


def list_reservation_requests(
    *,
    user_id: str,
    box: str = "received",
    status: str | None = None,
    limit: int = 100,
) -> list[ReservationRequest]:
    """Requests received by (box="received") or sent by (box="sent") a user."""
    if box not in ("received", "sent"):
        raise ValueError(f"Unknown box: {box}")
    if status is not None and status not in TRANSITIONS:
        raise ValueError(f"Unknown status: {status}")

    with txn() as cur:
        rows = list_requests(
            cur,
            owner_id=user_id if box == "received" else None,
            requester_id=user_id if box == "sent" else None,
            status=status,
            limit=limit,
        )
    return [ReservationRequest.from_row(row) for row in rows]
