"""Outbox events recording reservation request transitions.

Written in the transaction of the transition itself, so an event exists
exactly when the transition was committed. Payloads hold ids, dates and
amounts; guest messages and phones never reach the outbox.
"""

import json
from typing import Any

from psycopg2.extensions import cursor as PgCursor

RESERVATION_REQUESTED = "RESERVATION_REQUESTED"
RESERVATION_APPROVED = "RESERVATION_APPROVED"
RESERVATION_REJECTED = "RESERVATION_REJECTED"

AGGREGATE_TYPE = "reservation_request"

# Row fields copied into the event payload
PAYLOAD_FIELDS = (
    "check_in",
    "check_out",
    "nights",
    "status",
    "total_price_cents",
    "currency",
)


def event_payload(request: dict[str, Any]) -> dict[str, Any]:
    return {name: request[name] for name in PAYLOAD_FIELDS}


def emit_reservation_event(
    cur: PgCursor,
    *,
    event_type: str,
    request: dict[str, Any],
    correlation_id: str | None = None,
) -> int:
    """Insert one RESERVATION_* event for ``request`` (a repository row).

    Returns:
        The outbox event id.
    """
    cur.execute(
        """
        INSERT INTO outbox_events (
            property_id, event_type, aggregate_type,
            aggregate_id, payload, correlation_id
        )
        VALUES (%s, %s, %s, %s, %s::jsonb, %s)
        RETURNING id
        """,
        (
            request["property_id"],
            event_type,
            AGGREGATE_TYPE,
            request["id"],
            json.dumps(event_payload(request), default=str),
            correlation_id,
        ),
    )
    return cur.fetchone()[0]
