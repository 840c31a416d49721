"""Availability calculator.

Pure functions over an AvailabilitySnapshot: the approved intervals and
owner-blocked dates of one property, read together at one point in time.
Nothing here touches the database; callers are responsible for handing in
a consistent snapshot (see reservation_requests_repository.read_snapshot).

Rejection order for a candidate stay:
1. check_in before today            -> "in_past"
2. a blocked date inside the stay   -> "blocked_date"
3. overlap with an approved stay    -> "approved_overlap"
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from lodgely.domain.intervals import Interval, expand, overlaps

REASON_IN_PAST = "in_past"
REASON_BLOCKED_DATE = "blocked_date"
REASON_APPROVED_OVERLAP = "approved_overlap"


@dataclass(frozen=True)
class ApprovedInterval:
    """Stay range of a reservation request currently in ``approved`` status."""

    reservation_id: str
    interval: Interval


@dataclass(frozen=True)
class AvailabilitySnapshot:
    property_id: str
    approved: tuple[ApprovedInterval, ...] = ()
    blocked_dates: frozenset[date] = field(default_factory=frozenset)

    @classmethod
    def from_rows(
        cls,
        property_id: str,
        approved: list[tuple[str, date, date]],
        blocked_dates: list[date],
    ) -> AvailabilitySnapshot:
        return cls(
            property_id=property_id,
            approved=tuple(
                ApprovedInterval(reservation_id=str(rid), interval=Interval(ci, co))
                for rid, ci, co in approved
            ),
            blocked_dates=frozenset(blocked_dates),
        )


@dataclass(frozen=True)
class Conflict:
    """Why a candidate stay is unavailable."""

    reason: str
    blocked_dates: tuple[date, ...] = ()
    reservation_id: str | None = None
    existing: Interval | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"conflict_reason": self.reason}
        if self.blocked_dates:
            data["blocked_dates"] = [d.isoformat() for d in self.blocked_dates]
        if self.reservation_id is not None:
            data["conflicting_reservation_id"] = self.reservation_id
        if self.existing is not None:
            data["existing_check_in"] = self.existing.check_in.isoformat()
            data["existing_check_out"] = self.existing.check_out.isoformat()
        return data


def find_conflict(
    candidate: Interval,
    snapshot: AvailabilitySnapshot,
    *,
    today: date,
) -> Conflict | None:
    """Return the first reason ``candidate`` cannot be booked, or None."""
    if candidate.check_in < today:
        return Conflict(reason=REASON_IN_PAST)

    hit = sorted(d for d in snapshot.blocked_dates if candidate.contains_date(d))
    if hit:
        return Conflict(reason=REASON_BLOCKED_DATE, blocked_dates=tuple(hit))

    # Earliest overlapping stay first so the reported conflict is deterministic
    for approved in sorted(snapshot.approved, key=lambda a: a.interval):
        if overlaps(candidate, approved.interval):
            return Conflict(
                reason=REASON_APPROVED_OVERLAP,
                reservation_id=approved.reservation_id,
                existing=approved.interval,
            )

    return None


def is_available(
    candidate: Interval,
    snapshot: AvailabilitySnapshot,
    *,
    today: date,
) -> bool:
    return find_conflict(candidate, snapshot, today=today) is None


def unavailable_dates(
    snapshot: AvailabilitySnapshot,
    start: date,
    end: date,
) -> list[date]:
    """Dates in ``[start, end)`` to disable in a calendar.

    Display only: availability decisions go through find_conflict.
    """
    if start >= end:
        return []
    window = Interval(start, end)
    days: set[date] = {d for d in snapshot.blocked_dates if window.contains_date(d)}
    for approved in snapshot.approved:
        if overlaps(window, approved.interval):
            days |= {d for d in expand(approved.interval) if window.contains_date(d)}
    return sorted(days)

