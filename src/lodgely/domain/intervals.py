"""Half-open stay intervals.

A stay is ``[check_in, check_out)``: the check-in night is included, the
departure day is not. Two stays overlap iff::

    a.check_in < b.check_out AND b.check_in < a.check_out

Strict inequality makes same-day turnover legal: a checkout date can be
the next guest's check-in date.

Conflict decisions use ``overlaps``. ``expand`` exists for calendar
display only.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterator


@dataclass(frozen=True, order=True)
class Interval:
    check_in: date
    check_out: date

    def __post_init__(self) -> None:
        if self.check_in >= self.check_out:
            raise ValueError("check_in must be before check_out")

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    def overlaps(self, other: Interval) -> bool:
        return overlaps(self, other)

    def contains_date(self, day: date) -> bool:
        """True if the night of ``day`` falls inside the stay."""
        return self.check_in <= day < self.check_out

    def contains(self, other: Interval) -> bool:
        return self.check_in <= other.check_in and other.check_out <= self.check_out

    def nights_iter(self) -> Iterator[date]:
        current = self.check_in
        while current < self.check_out:
            yield current
            current += timedelta(days=1)

    def expand(self) -> set[date]:
        return expand(self)


def overlaps(a: Interval, b: Interval) -> bool:
    """Half-open overlap test. Symmetric; covers subset, superset and partial cases."""
    return a.check_in < b.check_out and b.check_in < a.check_out


def expand(interval: Interval) -> set[date]:
    """Every occupied night of the interval (display projection)."""
    return set(interval.nights_iter())
