"""Reservation requests repository - persistence for reservation requests.

Uses raw SQL with psycopg2 (no ORM). Rows are returned as plain dicts; the
domain layer turns them into ReservationRequest objects.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from psycopg2.extensions import cursor as PgCursor

from lodgely.domain.availability import AvailabilitySnapshot
from lodgely.infra.db import for_update

REQUEST_COLUMNS = (
    "id",
    "property_id",
    "requester_id",
    "owner_id",
    "check_in",
    "check_out",
    "nights",
    "guest_count",
    "price_per_night_cents",
    "applied_discount_percent",
    "total_price_cents",
    "savings_cents",
    "currency",
    "status",
    "message",
    "share_phone",
    "contact_phone",
    "response_message",
    "created_at",
    "decided_at",
)

_SELECT = f"SELECT {', '.join(REQUEST_COLUMNS)} FROM reservation_requests"


def _row_to_dict(row: tuple) -> dict[str, Any]:
    data = dict(zip(REQUEST_COLUMNS, row))
    data["id"] = str(data["id"])
    return data


def insert_request(
    cur: PgCursor,
    *,
    property_id: str,
    requester_id: str,
    owner_id: str,
    check_in: date,
    check_out: date,
    nights: int,
    guest_count: int,
    price_per_night_cents: int,
    applied_discount_percent: Decimal,
    total_price_cents: int,
    savings_cents: int,
    currency: str,
    message: str | None,
    share_phone: bool,
    contact_phone: str | None,
) -> dict[str, Any]:
    """Insert a new request in ``pending`` status.

    Returns:
        The stored row as a dict (id and created_at filled by the database).
    """
    cur.execute(
        f"""
        INSERT INTO reservation_requests (
            property_id, requester_id, owner_id, check_in, check_out,
            nights, guest_count, price_per_night_cents,
            applied_discount_percent, total_price_cents, savings_cents,
            currency, status, message, share_phone, contact_phone
        )
        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, 'pending', %s, %s, %s)
        RETURNING {', '.join(REQUEST_COLUMNS)}
        """,
        (
            property_id,
            requester_id,
            owner_id,
            check_in,
            check_out,
            nights,
            guest_count,
            price_per_night_cents,
            applied_discount_percent,
            total_price_cents,
            savings_cents,
            currency,
            message,
            share_phone,
            contact_phone,
        ),
    )
    return _row_to_dict(cur.fetchone())


def get_request(
    cur: PgCursor,
    request_id: str,
    *,
    lock: bool = False,
) -> dict[str, Any] | None:
    """Fetch a request by id.

    Args:
        lock: If True, appends FOR UPDATE (caller must be inside a transaction).
    """
    query = f"{_SELECT} WHERE id = %s"
    if lock:
        row = for_update(cur, query, (request_id,))
    else:
        cur.execute(query, (request_id,))
        row = cur.fetchone()
    return _row_to_dict(row) if row is not None else None


def list_requests(
    cur: PgCursor,
    *,
    owner_id: str | None = None,
    requester_id: str | None = None,
    status: str | None = None,
    limit: int = 100,
) -> list[dict[str, Any]]:
    """List requests received by an owner or sent by a requester, newest first."""
    conditions: list[str] = []
    params: list[Any] = []

    if owner_id is not None:
        conditions.append("owner_id = %s")
        params.append(owner_id)
    if requester_id is not None:
        conditions.append("requester_id = %s")
        params.append(requester_id)
    if status is not None:
        conditions.append("status = %s")
        params.append(status)

    where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
    params.append(limit)

    cur.execute(f"{_SELECT}{where} ORDER BY created_at DESC LIMIT %s", params)
    return [_row_to_dict(row) for row in cur.fetchall()]


def update_status(
    cur: PgCursor,
    request_id: str,
    *,
    status: str,
    response_message: str | None = None,
) -> dict[str, Any] | None:
    """Move a pending request to ``status``.

    The ``status = 'pending'`` guard makes the transition happen at most once.

    Returns:
        The updated row, or None if the request was no longer pending.
    """
    cur.execute(
        f"""
        UPDATE reservation_requests
        SET status = %s,
            response_message = %s,
            decided_at = now()
        WHERE id = %s AND status = 'pending'
        RETURNING {', '.join(REQUEST_COLUMNS)}
        """,
        (status, response_message, request_id),
    )
    row = cur.fetchone()
    return _row_to_dict(row) if row is not None else None


def lock_property(cur: PgCursor, property_id: str, *, nowait: bool = False) -> bool:
    """Take the per-property lock that serializes approved-set mutations.

    Raises:
        psycopg2.errors.LockNotAvailable: With nowait, if another transaction
            holds the lock.

    Returns:
        False if the property row does not exist.
    """
    row = for_update(cur, "SELECT id FROM properties WHERE id = %s", (property_id,), nowait=nowait)
    return row is not None


def read_snapshot(
    cur: PgCursor,
    property_id: str,
    *,
    exclude_request_id: str | None = None,
) -> AvailabilitySnapshot:
    """Read approved intervals and blocked dates of a property together.

    A single statement keeps both collections consistent with each other.

    Args:
        exclude_request_id: Request to leave out of the approved set.
    """
    cur.execute(
        """
        SELECT 'approved' AS kind, id::text, check_in, check_out
        FROM reservation_requests
        WHERE property_id = %s
          AND status = 'approved'
          AND (%s::uuid IS NULL OR id <> %s::uuid)
        UNION ALL
        SELECT 'blocked' AS kind, NULL, blocked_date, NULL
        FROM property_blocked_dates
        WHERE property_id = %s
        """,
        (property_id, exclude_request_id, exclude_request_id, property_id),
    )
    approved: list[tuple[str, date, date]] = []
    blocked: list[date] = []
    for kind, request_id, start, end in cur.fetchall():
        if kind == "approved":
            approved.append((request_id, start, end))
        else:
            blocked.append(start)

    return AvailabilitySnapshot.from_rows(property_id, approved, blocked)
