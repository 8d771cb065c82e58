"""Timezone-aware clock utilities.

All timestamps in facility-attention MUST be UTC-aware.  This module is the
single source of "now" so tests can monkey-patch it trivially.
"""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def hours_since(ts: datetime, now: datetime | None = None) -> float:
    """Hours elapsed between *ts* and *now* (negative for future timestamps)."""
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    now = now or utc_now()
    return (now - ts).total_seconds() / 3600.0


def is_stale(ts: datetime | None, now: datetime | None = None, threshold_hours: float = 4.0) -> bool:
    """True when *ts* is missing or older than *threshold_hours*."""
    if ts is None:
        return True
    return hours_since(ts, now) > threshold_hours
