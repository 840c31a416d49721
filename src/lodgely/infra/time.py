"""Time utilities for consistent timestamp handling."""

import os
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "UTC"


def utc_now() -> datetime:
    """Return current UTC timestamp (timezone-aware)."""
    return datetime.now(timezone.utc)


def today(tz_name: str | None = None) -> date:
    """Current calendar date in APP_TIMEZONE (or ``tz_name``).

    This is the "today" that check-in dates are compared against.
    """
    tz = ZoneInfo(tz_name or os.environ.get("APP_TIMEZONE") or DEFAULT_TIMEZONE)
    return datetime.now(tz).date()
