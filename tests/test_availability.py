"""Unit tests for the availability calculator (pure, no database)."""

from datetime import date

import pytest

from lodgely.domain.availability import (
    REASON_APPROVED_OVERLAP,
    REASON_BLOCKED_DATE,
    REASON_IN_PAST,
    AvailabilitySnapshot,
    find_conflict,
    is_available,
    unavailable_dates,
)
from lodgely.domain.intervals import Interval

TODAY = date(2030, 1, 1)


def _snapshot(approved=(), blocked=()):
    return AvailabilitySnapshot.from_rows("prop-1", list(approved), list(blocked))


@pytest.fixture
def jan_10_15():
    """One approved stay 2030-01-10 -> 2030-01-15."""
    return _snapshot(approved=[("res-1", date(2030, 1, 10), date(2030, 1, 15))])


class TestFindConflict:
    def test_empty_snapshot_is_available(self):
        candidate = Interval(date(2030, 1, 10), date(2030, 1, 15))
        assert find_conflict(candidate, _snapshot(), today=TODAY) is None

    def test_back_to_back_after_is_available(self, jan_10_15):
        candidate = Interval(date(2030, 1, 15), date(2030, 1, 18))
        assert is_available(candidate, jan_10_15, today=TODAY)

    def test_back_to_back_before_is_available(self, jan_10_15):
        candidate = Interval(date(2030, 1, 7), date(2030, 1, 10))
        assert is_available(candidate, jan_10_15, today=TODAY)

    def test_partial_overlap_reports_existing_stay(self, jan_10_15):
        candidate = Interval(date(2030, 1, 14), date(2030, 1, 16))

        conflict = find_conflict(candidate, jan_10_15, today=TODAY)

        assert conflict.reason == REASON_APPROVED_OVERLAP
        assert conflict.reservation_id == "res-1"
        assert conflict.existing == Interval(date(2030, 1, 10), date(2030, 1, 15))

    def test_blocked_date_inside_stay(self):
        snapshot = _snapshot(blocked=[date(2030, 1, 12)])
        candidate = Interval(date(2030, 1, 10), date(2030, 1, 15))

        conflict = find_conflict(candidate, snapshot, today=TODAY)

        assert conflict.reason == REASON_BLOCKED_DATE
        assert conflict.blocked_dates == (date(2030, 1, 12),)

    def test_blocked_checkout_day_is_not_a_conflict(self):
        snapshot = _snapshot(blocked=[date(2030, 1, 15)])
        candidate = Interval(date(2030, 1, 10), date(2030, 1, 15))
        assert find_conflict(candidate, snapshot, today=TODAY) is None

    def test_past_check_in(self):
        candidate = Interval(date(2029, 12, 31), date(2030, 1, 3))
        conflict = find_conflict(candidate, _snapshot(), today=TODAY)
        assert conflict.reason == REASON_IN_PAST

    def test_today_is_not_past(self):
        candidate = Interval(TODAY, date(2030, 1, 3))
        assert find_conflict(candidate, _snapshot(), today=TODAY) is None

    def test_order_past_before_blocked_before_approved(self):
        snapshot = _snapshot(
            approved=[("res-1", date(2029, 12, 30), date(2030, 1, 5))],
            blocked=[date(2029, 12, 31)],
        )
        past = Interval(date(2029, 12, 30), date(2030, 1, 2))
        assert find_conflict(past, snapshot, today=TODAY).reason == REASON_IN_PAST

        future = Interval(date(2030, 1, 1), date(2030, 1, 3))
        blocked = _snapshot(
            approved=[("res-1", date(2030, 1, 1), date(2030, 1, 5))],
            blocked=[date(2030, 1, 2)],
        )
        assert find_conflict(future, blocked, today=TODAY).reason == REASON_BLOCKED_DATE

    def test_earliest_overlapping_stay_reported(self):
        snapshot = _snapshot(
            approved=[
                ("res-late", date(2030, 1, 20), date(2030, 1, 25)),
                ("res-early", date(2030, 1, 10), date(2030, 1, 12)),
            ]
        )
        candidate = Interval(date(2030, 1, 11), date(2030, 1, 21))
        assert find_conflict(candidate, snapshot, today=TODAY).reservation_id == "res-early"

    def test_idempotent(self, jan_10_15):
        candidate = Interval(date(2030, 1, 12), date(2030, 1, 14))
        first = find_conflict(candidate, jan_10_15, today=TODAY)
        second = find_conflict(candidate, jan_10_15, today=TODAY)
        assert first == second

    def test_conflict_to_dict(self, jan_10_15):
        conflict = find_conflict(
            Interval(date(2030, 1, 14), date(2030, 1, 16)), jan_10_15, today=TODAY
        )
        assert conflict.to_dict() == {
            "conflict_reason": "approved_overlap",
            "conflicting_reservation_id": "res-1",
            "existing_check_in": "2030-01-10",
            "existing_check_out": "2030-01-15",
        }


class TestUnavailableDates:
    def test_union_of_approved_nights_and_blocked(self):
        snapshot = _snapshot(
            approved=[("res-1", date(2030, 1, 10), date(2030, 1, 12))],
            blocked=[date(2030, 1, 20)],
        )
        days = unavailable_dates(snapshot, date(2030, 1, 1), date(2030, 2, 1))
        assert days == [date(2030, 1, 10), date(2030, 1, 11), date(2030, 1, 20)]

    def test_clipped_to_window(self, jan_10_15):
        days = unavailable_dates(jan_10_15, date(2030, 1, 13), date(2030, 1, 20))
        assert days == [date(2030, 1, 13), date(2030, 1, 14)]

    def test_empty_window(self, jan_10_15):
        assert unavailable_dates(jan_10_15, date(2030, 1, 13), date(2030, 1, 13)) == []
