"""Deterministic ID generation for domain objects."""

from __future__ import annotations

from datetime import datetime


def signal_id(prefix: str, facility_id: str, detected_at: datetime) -> str:
    """Build a signal id of the form ``<prefix>-<facility>-<epoch millis>``."""
    return f"{prefix}-{facility_id}-{int(detected_at.timestamp() * 1000)}"


def sync_offset_hours(facility_id: str, spread_hours: int = 7) -> int:
    """Reproducible "hours since last sync" for a facility.

    Sum of the character codes of the id, modulo *spread_hours*.  The same
    id always lands in the same staleness bucket.
    """
    if spread_hours <= 0:
        return 0
    return sum(ord(ch) for ch in facility_id) % spread_hours
