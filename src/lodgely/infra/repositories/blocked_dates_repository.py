"""Blocked dates repository - owner-removed calendar days.

Uses raw SQL with psycopg2 (no ORM).
"""

from __future__ import annotations

from datetime import date
from typing import Any

from psycopg2.extensions import cursor as PgCursor


def upsert_blocked_dates(
    cur: PgCursor,
    *,
    property_id: str,
    dates: list[date],
    reason: str | None,
) -> int:
    """Block each date (idempotent via UNIQUE(property_id, blocked_date)).

    Re-blocking an already blocked date updates its reason.

    Returns:
        Number of dates written.
    """
    written = 0
    for day in dates:
        cur.execute(
            """
            INSERT INTO property_blocked_dates (property_id, blocked_date, reason)
            VALUES (%s, %s, %s)
            ON CONFLICT (property_id, blocked_date)
            DO UPDATE SET reason = EXCLUDED.reason
            """,
            (property_id, day, reason),
        )
        written += cur.rowcount
    return written


def delete_blocked_date(cur: PgCursor, *, property_id: str, day: date) -> bool:
    cur.execute(
        "DELETE FROM property_blocked_dates WHERE property_id = %s AND blocked_date = %s",
        (property_id, day),
    )
    return cur.rowcount > 0


def delete_all_blocked_dates(cur: PgCursor, *, property_id: str) -> int:
    cur.execute(
        "DELETE FROM property_blocked_dates WHERE property_id = %s",
        (property_id,),
    )
    return cur.rowcount


def list_blocked_dates(
    cur: PgCursor,
    *,
    property_id: str,
    start: date | None = None,
    end: date | None = None,
) -> list[dict[str, Any]]:
    """List blocked dates in ascending order, optionally within ``[start, end)``."""
    conditions = ["property_id = %s"]
    params: list[Any] = [property_id]

    if start is not None:
        conditions.append("blocked_date >= %s")
        params.append(start)
    if end is not None:
        conditions.append("blocked_date < %s")
        params.append(end)

    cur.execute(
        f"""
        SELECT id, blocked_date, reason
        FROM property_blocked_dates
        WHERE {' AND '.join(conditions)}
        ORDER BY blocked_date
        """,
        params,
    )
    return [
        {"id": str(row[0]), "date": row[1], "reason": row[2]}
        for row in cur.fetchall()
    ]
