"""Tests for the clock and identifier helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from facility_attention.foundation.clock import hours_since, is_stale, utc_now
from facility_attention.foundation.identifiers import signal_id, sync_offset_hours

_NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


class TestClock:
    def test_utc_now_is_aware(self) -> None:
        assert utc_now().tzinfo is not None

    def test_hours_since(self) -> None:
        assert hours_since(_NOW - timedelta(hours=3), _NOW) == 3.0
        assert hours_since(_NOW + timedelta(hours=1), _NOW) == -1.0

    def test_naive_timestamp_treated_as_utc(self) -> None:
        naive = datetime(2026, 3, 2, 10, 0)
        assert hours_since(naive, _NOW) == 2.0

    def test_is_stale_boundary(self) -> None:
        assert is_stale(_NOW - timedelta(hours=4), _NOW) is False
        assert is_stale(_NOW - timedelta(hours=4, seconds=1), _NOW) is True
        assert is_stale(None, _NOW) is True

    def test_is_stale_custom_threshold(self) -> None:
        assert is_stale(_NOW - timedelta(hours=2), _NOW, threshold_hours=1) is True


class TestIdentifiers:
    def test_sync_offset_is_reproducible(self) -> None:
        assert sync_offset_hours("fac-101") == 6
        assert sync_offset_hours("fac-101") == sync_offset_hours("fac-101")

    def test_sync_offset_bounds(self) -> None:
        for facility_id in ("a", "fac-1", "fac-crit", "zzz-999"):
            assert 0 <= sync_offset_hours(facility_id) < 7
        assert sync_offset_hours("fac-101", spread_hours=0) == 0

    def test_signal_id(self) -> None:
        assert signal_id("staffing-RN", "fac-1", _NOW) == f"staffing-RN-fac-1-{int(_NOW.timestamp() * 1000)}"
