"""In-memory briefing store with async-safe whole-collection refresh.

Design notes:
    - The store holds the raw facility collection and the last completed
      canonical snapshot.  The snapshot is an immutable tuple that is only
      ever replaced, never edited in place, so readers always see one
      complete refresh pass.
    - ``refresh()`` recomputes every facility from scratch in a worker
      thread and swaps the result in under an asyncio.Lock.  Each pass takes
      a generation number when it starts; a pass that finishes after a
      newer pass has already been swapped in is discarded.
    - Dashboard overrides (``mark_synced``, ``set_revenue_delta``) replace a
      single canonical record with an updated copy.  They last until the
      next refresh.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Any

from facility_attention.core.builder import CanonicalFacilityBuilder
from facility_attention.domain.canonical import CanonicalFacility
from facility_attention.domain.enums import FocusArea
from facility_attention.domain.facility import RawFacility
from facility_attention.foundation.clock import utc_now

logger = logging.getLogger(__name__)


def rank_facilities(
    facilities: Iterable[CanonicalFacility],
    focus: FocusArea = FocusArea.ALL,
    limit: int | None = None,
) -> list[CanonicalFacility]:
    """Filter by focus area, then order by intensity and revenue at stake.

    Critical before Elevated before Low; within one intensity the larger
    revenueDelta comes first.  The sort is stable, so input order breaks
    any remaining tie.
    """
    category = focus.category
    selected = [f for f in facilities if category is None or f.stress_category == category]
    selected.sort(key=lambda f: (-f.intensity.order, -f.revenue_delta))
    if limit is not None:
        selected = selected[:max(0, limit)]
    return selected


class BriefingStore:
    """Async-safe, in-memory store for the facility briefing.

    Args:
        builder: Builds one CanonicalFacility per raw facility.
        facilities: Optional initial raw collection.
    """

    def __init__(
        self,
        builder: CanonicalFacilityBuilder | None = None,
        facilities: Iterable[RawFacility | Mapping[str, Any]] = (),
    ) -> None:
        self._builder = builder or CanonicalFacilityBuilder()
        self._lock = asyncio.Lock()
        self._raw: dict[str, dict[str, Any]] = {}
        self._snapshot: tuple[CanonicalFacility, ...] = ()
        self._started = 0
        self._generation = 0
        self._refreshed_at: datetime | None = None
        for raw in facilities:
            record = _raw_record(raw)
            self._raw[_raw_key(record)] = record

    @property
    def builder(self) -> CanonicalFacilityBuilder:
        return self._builder

    # ── Raw collection ───────────────────────────────────────────────────

    async def upsert_raw(self, raw: RawFacility | Mapping[str, Any]) -> str:
        """Insert or replace a raw facility by id.  Returns the id."""
        record = _raw_record(raw)
        key = _raw_key(record)
        async with self._lock:
            replaced = key in self._raw
            self._raw[key] = record
        logger.debug("%s raw facility %s", "Replaced" if replaced else "Added", key)
        return key

    async def raw(self, facility_id: str) -> dict[str, Any] | None:
        async with self._lock:
            record = self._raw.get(facility_id)
            return dict(record) if record is not None else None

    async def raw_count(self) -> int:
        async with self._lock:
            return len(self._raw)

    async def find_by_name(self, fragment: str) -> str | None:
        """Id of the first raw facility whose name contains *fragment* (case-insensitive)."""
        needle = fragment.strip().lower()
        if not needle:
            return None
        async with self._lock:
            for key, record in self._raw.items():
                name = record.get("name")
                if isinstance(name, str) and needle in name.lower():
                    return key
        return None

    # ── Refresh ──────────────────────────────────────────────────────────

    async def refresh(self, now: datetime | None = None) -> tuple[CanonicalFacility, ...]:
        """Recompute every facility and swap the snapshot in atomically.

        Returns the snapshot current after this pass, which is a newer
        generation's snapshot if one finished first.
        """
        async with self._lock:
            self._started += 1
            generation = self._started
            raws = list(self._raw.values())

        now = now or utc_now()
        built = await asyncio.to_thread(self._builder.build_all, raws, now)

        async with self._lock:
            if generation > self._generation:
                self._snapshot = tuple(built)
                self._generation = generation
                self._refreshed_at = now
                fallbacks = sum(1 for f in built if f.is_fallback)
                logger.info(
                    "Refresh #%d built %d facilit%s (%d fallback)",
                    generation,
                    len(built),
                    "y" if len(built) == 1 else "ies",
                    fallbacks,
                )
            else:
                logger.info(
                    "Discarded refresh #%d; generation #%d is already current",
                    generation,
                    self._generation,
                )
            return self._snapshot

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def refreshed_at(self) -> datetime | None:
        return self._refreshed_at

    # ── Reads ────────────────────────────────────────────────────────────

    async def all(self) -> tuple[CanonicalFacility, ...]:
        async with self._lock:
            return self._snapshot

    async def get(self, facility_id: str) -> CanonicalFacility | None:
        async with self._lock:
            return self._find(facility_id)

    async def ranked(
        self,
        focus: FocusArea = FocusArea.ALL,
        limit: int | None = None,
    ) -> list[CanonicalFacility]:
        async with self._lock:
            snapshot = self._snapshot
        return rank_facilities(snapshot, focus, limit)

    # ── Dashboard overrides ──────────────────────────────────────────────

    async def mark_synced(
        self,
        facility_id: str,
        ts: datetime | None = None,
    ) -> CanonicalFacility | None:
        """Stamp one facility as freshly synced until the next refresh."""
        return await self._replace(facility_id, sync_timestamp=ts or utc_now())

    async def set_revenue_delta(self, facility_id: str, delta: float) -> CanonicalFacility | None:
        """Override one facility's revenueDelta until the next refresh."""
        if delta < 0:
            raise ValueError("revenue delta must be non-negative")
        return await self._replace(facility_id, revenue_delta=float(delta))

    # ── Internals ────────────────────────────────────────────────────────

    async def _replace(self, facility_id: str, **update: Any) -> CanonicalFacility | None:
        async with self._lock:
            current = self._find(facility_id)
            if current is None:
                return None
            updated = current.model_copy(update=update)
            self._snapshot = tuple(
                updated if f.id == facility_id else f for f in self._snapshot
            )
            return updated

    def _find(self, facility_id: str) -> CanonicalFacility | None:
        """Must be called while holding self._lock."""
        for facility in self._snapshot:
            if facility.id == facility_id:
                return facility
        return None


# ── Helpers ──────────────────────────────────────────────────────────────────

def _raw_record(raw: RawFacility | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(raw, RawFacility):
        return raw.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(raw, Mapping):
        return dict(raw)
    raise TypeError(f"expected a facility mapping, got {type(raw).__name__}")


def _raw_key(record: Mapping[str, Any]) -> str:
    facility_id = record.get("id")
    if facility_id is None or facility_id == "":
        raise ValueError("raw facility is missing an 'id'")
    return str(facility_id)
