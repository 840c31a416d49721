"""Unit tests for owner blocked-date management (mocked database)."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from lodgely.domain import blocked_dates
from lodgely.domain.availability import AvailabilitySnapshot
from lodgely.domain.errors import NotPropertyOwner, PropertyNotFound, ValidationError
from lodgely.domain.pricing import PropertyBookingConfig

MODULE = "lodgely.domain.blocked_dates"


@pytest.fixture
def cur():
    cur = MagicMock()

    @contextmanager
    def fake_txn():
        yield cur

    with patch(f"{MODULE}.txn", fake_txn):
        yield cur


@pytest.fixture
def owned():
    config = PropertyBookingConfig(
        property_id="prop-1",
        owner_id="owner-1",
        price_per_night_cents=10000,
        currency="BRL",
    )
    with patch(f"{MODULE}.get_booking_config", return_value=config) as m:
        yield m


class TestBlockDates:
    def test_inclusive_range(self, cur, owned):
        with patch(f"{MODULE}.lock_property") as mock_lock, \
             patch(f"{MODULE}.read_snapshot", return_value=AvailabilitySnapshot("prop-1")), \
             patch(f"{MODULE}.upsert_blocked_dates") as mock_upsert:
            days = blocked_dates.block_dates(
                "prop-1", owner_id="owner-1", start=date(2030, 1, 10), end=date(2030, 1, 12), reason=" maintenance "
            )

        assert days == [date(2030, 1, 10), date(2030, 1, 11), date(2030, 1, 12)]
        mock_lock.assert_called_once_with(cur, "prop-1")
        assert mock_upsert.call_args.kwargs["dates"] == days
        assert mock_upsert.call_args.kwargs["reason"] == "maintenance"

    def test_single_day(self, cur, owned):
        with patch(f"{MODULE}.lock_property"), \
             patch(f"{MODULE}.read_snapshot", return_value=AvailabilitySnapshot("prop-1")), \
             patch(f"{MODULE}.upsert_blocked_dates"):
            days = blocked_dates.block_dates("prop-1", owner_id="owner-1", start=date(2030, 1, 10))
        assert days == [date(2030, 1, 10)]

    def test_refuses_dates_inside_approved_stay(self, cur, owned):
        snapshot = AvailabilitySnapshot.from_rows(
            "prop-1", [("res-1", date(2030, 1, 10), date(2030, 1, 15))], []
        )
        with patch(f"{MODULE}.lock_property"), \
             patch(f"{MODULE}.read_snapshot", return_value=snapshot), \
             patch(f"{MODULE}.upsert_blocked_dates") as mock_upsert:
            with pytest.raises(ValidationError) as exc_info:
                blocked_dates.block_dates("prop-1", owner_id="owner-1", start=date(2030, 1, 14))

        assert exc_info.value.reason == "overlaps_approved_reservation"
        mock_upsert.assert_not_called()

    def test_checkout_day_of_approved_stay_can_be_blocked(self, cur, owned):
        snapshot = AvailabilitySnapshot.from_rows(
            "prop-1", [("res-1", date(2030, 1, 10), date(2030, 1, 15))], []
        )
        with patch(f"{MODULE}.lock_property"), \
             patch(f"{MODULE}.read_snapshot", return_value=snapshot), \
             patch(f"{MODULE}.upsert_blocked_dates") as mock_upsert:
            blocked_dates.block_dates("prop-1", owner_id="owner-1", start=date(2030, 1, 15))
        mock_upsert.assert_called_once()

    def test_end_before_start(self, cur, owned):
        with pytest.raises(ValidationError) as exc_info:
            blocked_dates.block_dates(
                "prop-1", owner_id="owner-1", start=date(2030, 1, 10), end=date(2030, 1, 9)
            )
        assert exc_info.value.reason == "end_before_start"

    def test_range_too_long(self, cur, owned):
        with pytest.raises(ValidationError) as exc_info:
            blocked_dates.block_dates(
                "prop-1", owner_id="owner-1", start=date(2030, 1, 1), end=date(2031, 6, 1)
            )
        assert exc_info.value.reason == "range_too_long"

    def test_only_owner(self, cur, owned):
        with pytest.raises(NotPropertyOwner):
            blocked_dates.block_dates("prop-1", owner_id="guest-1", start=date(2030, 1, 10))

    def test_unknown_property(self, cur):
        with patch(f"{MODULE}.get_booking_config", side_effect=PropertyNotFound("nope")):
            with pytest.raises(PropertyNotFound):
                blocked_dates.block_dates("nope", owner_id="owner-1", start=date(2030, 1, 10))


class TestUnblock:
    def test_unblock_date(self, cur, owned):
        with patch(f"{MODULE}.delete_blocked_date", return_value=True) as mock_delete:
            assert blocked_dates.unblock_date("prop-1", owner_id="owner-1", day=date(2030, 1, 10)) is True
        mock_delete.assert_called_once_with(cur, property_id="prop-1", day=date(2030, 1, 10))

    def test_unblock_all(self, cur, owned):
        with patch(f"{MODULE}.delete_all_blocked_dates", return_value=4):
            assert blocked_dates.unblock_all("prop-1", owner_id="owner-1") == 4

    def test_unblock_requires_owner(self, cur, owned):
        with patch(f"{MODULE}.delete_all_blocked_dates") as mock_delete:
            with pytest.raises(NotPropertyOwner):
                blocked_dates.unblock_all("prop-1", owner_id="guest-1")
        mock_delete.assert_not_called()


class TestBlockedDatesRepository:
    def test_upsert_is_idempotent_sql(self):
        from lodgely.infra.repositories.blocked_dates_repository import upsert_blocked_dates

        cur = MagicMock()
        cur.rowcount = 1
        written = upsert_blocked_dates(
            cur, property_id="prop-1", dates=[date(2030, 1, 1), date(2030, 1, 2)], reason=None
        )

        assert written == 2
        sql = cur.execute.call_args[0][0]
        assert "ON CONFLICT (property_id, blocked_date)" in sql

    def test_list_window_is_half_open(self):
        from lodgely.infra.repositories.blocked_dates_repository import list_blocked_dates

        cur = MagicMock()
        cur.fetchall.return_value = [("b-1", date(2030, 1, 5), "owner trip")]
        rows = list_blocked_dates(cur, property_id="prop-1", start=date(2030, 1, 1), end=date(2030, 2, 1))

        sql, params = cur.execute.call_args[0]
        assert "blocked_date < %s" in sql
        assert params == ["prop-1", date(2030, 1, 1), date(2030, 2, 1)]
        assert rows == [{"id": "b-1", "date": date(2030, 1, 5), "reason": "owner trip"}]
