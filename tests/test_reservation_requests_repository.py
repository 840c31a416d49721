"""SQL-shape tests for the reservation requests repository (mock cursor)."""

import json
from datetime import date
from unittest.mock import MagicMock

import pytest

from lodgely.infra.repositories.outbox_repository import RESERVATION_APPROVED, emit_reservation_event
from lodgely.infra.repositories.reservation_requests_repository import (
    REQUEST_COLUMNS,
    get_request,
    list_requests,
    lock_property,
    read_snapshot,
    update_status,
)


@pytest.fixture
def cur():
    """Mocked psycopg2 cursor."""
    return MagicMock()


def _row(**overrides):
    values = {c: None for c in REQUEST_COLUMNS}
    values.update(id="r-1", status="pending")
    values.update(overrides)
    return tuple(values[c] for c in REQUEST_COLUMNS)


class TestReadSnapshot:
    def test_single_statement_split_by_kind(self, cur):
        cur.fetchall.return_value = [
            ("approved", "r-1", date(2030, 1, 10), date(2030, 1, 15)),
            ("blocked", None, date(2030, 1, 20), None),
            ("approved", "r-2", date(2030, 2, 1), date(2030, 2, 3)),
        ]

        snapshot = read_snapshot(cur, "prop-1")

        cur.execute.assert_called_once()
        assert "UNION ALL" in cur.execute.call_args[0][0]
        assert [a.reservation_id for a in snapshot.approved] == ["r-1", "r-2"]
        assert snapshot.blocked_dates == frozenset({date(2030, 1, 20)})

    def test_excludes_request_being_approved(self, cur):
        cur.fetchall.return_value = []
        read_snapshot(cur, "prop-1", exclude_request_id="r-1")
        assert cur.execute.call_args[0][1] == ("prop-1", "r-1", "r-1", "prop-1")

    def test_only_approved_rows_count(self, cur):
        cur.fetchall.return_value = []
        read_snapshot(cur, "prop-1")
        assert "status = 'approved'" in cur.execute.call_args[0][0]


class TestLocks:
    def test_lock_property_nowait(self, cur):
        cur.fetchone.return_value = ("prop-1",)
        assert lock_property(cur, "prop-1", nowait=True) is True
        assert cur.execute.call_args[0][0].endswith("FOR UPDATE NOWAIT")

    def test_lock_property_waits_by_default(self, cur):
        cur.fetchone.return_value = None
        assert lock_property(cur, "missing") is False
        assert cur.execute.call_args[0][0].endswith("FOR UPDATE")

    def test_get_request_for_update(self, cur):
        cur.fetchone.return_value = _row()
        row = get_request(cur, "r-1", lock=True)
        assert cur.execute.call_args[0][0].endswith("FOR UPDATE")
        assert row["id"] == "r-1"

    def test_get_request_missing(self, cur):
        cur.fetchone.return_value = None
        assert get_request(cur, "r-x") is None


class TestUpdateStatus:
    def test_pending_guard(self, cur):
        cur.fetchone.return_value = _row(status="approved")
        row = update_status(cur, "r-1", status="approved", response_message="ok")

        sql, params = cur.execute.call_args[0]
        assert "status = 'pending'" in sql
        assert params == ("approved", "ok", "r-1")
        assert row["status"] == "approved"

    def test_no_longer_pending(self, cur):
        cur.fetchone.return_value = None
        assert update_status(cur, "r-1", status="rejected") is None


class TestListRequests:
    def test_newest_first_with_filters(self, cur):
        cur.fetchall.return_value = [_row()]
        rows = list_requests(cur, owner_id="owner-1", status="pending", limit=10)

        sql, params = cur.execute.call_args[0]
        assert "ORDER BY created_at DESC" in sql
        assert params == ["owner-1", "pending", 10]
        assert len(rows) == 1


class TestOutboxEvents:
    def test_payload_has_no_pii(self, cur):
        cur.fetchone.return_value = (42,)
        row = {
            "id": "r-1",
            "property_id": "prop-1",
            "check_in": date(2030, 1, 10),
            "check_out": date(2030, 1, 15),
            "nights": 5,
            "status": "approved",
            "total_price_cents": 47500,
            "currency": "BRL",
            "contact_phone": "+5511999990000",
            "message": "hello",
        }

        event_id = emit_reservation_event(
            cur, event_type=RESERVATION_APPROVED, request=row, correlation_id="cid-1"
        )

        assert event_id == 42
        params = cur.execute.call_args[0][1]
        assert params[:4] == ("prop-1", "RESERVATION_APPROVED", "reservation_request", "r-1")
        assert params[5] == "cid-1"
        payload = json.loads(params[4])
        assert payload["check_in"] == "2030-01-10"
        assert payload["total_price_cents"] == 47500
        assert "contact_phone" not in payload
        assert "message" not in payload
