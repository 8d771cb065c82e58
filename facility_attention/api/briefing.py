"""REST read surface over the BriefingStore.

Paths:
    GET  /api/facilities                  ranked briefing (?focus=&limit=)
    GET  /api/facilities/{id}             one facility, with its raw payload
    GET  /api/facilities/{id}/score       attention score and stress signals
    GET  /api/facilities/{id}/revenue     Model A, Model B and the standardized figure
    POST /api/facilities/{id}/sync        mark a facility as freshly synced
    GET  /api/briefing/text               plain-text brief

Field names are camelCase and each facility carries a ``stale`` flag.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse

from facility_attention.api.views import briefing_view, facility_view
from facility_attention.api.ws_briefing import BriefingBroadcaster
from facility_attention.core.normalize import FacilityNormalizationError
from facility_attention.domain.canonical import CanonicalFacility
from facility_attention.domain.enums import FocusArea
from facility_attention.explain.formatter import BriefingFormatter
from facility_attention.foundation.clock import utc_now
from facility_attention.store.briefing_store import BriefingStore

logger = logging.getLogger(__name__)


def create_briefing_router(
    store: BriefingStore,
    broadcaster: BriefingBroadcaster | None = None,
    stale_threshold_hours: float = 4.0,
) -> APIRouter:
    """Factory that wires the read endpoints to the store."""

    router = APIRouter(prefix="/api", tags=["briefing"])

    async def _require(facility_id: str) -> CanonicalFacility:
        facility = await store.get(facility_id)
        if facility is None:
            raise HTTPException(status_code=404, detail=f"Facility {facility_id} not found")
        return facility

    async def _require_raw(facility_id: str) -> dict[str, Any]:
        raw = await store.raw(facility_id)
        if raw is None:
            raise HTTPException(status_code=404, detail=f"Facility {facility_id} not found")
        return raw

    @router.get("/facilities")
    async def list_facilities(
        focus: FocusArea = FocusArea.ALL,
        limit: Optional[int] = Query(default=None, ge=0),
    ) -> dict[str, Any]:
        """Ranked briefing: Critical first, then by revenue at stake."""
        now = utc_now()
        ranked = await store.ranked(focus, limit)
        return {
            "facilities": briefing_view(ranked, now, stale_threshold_hours),
            "count": len(ranked),
            "focus": focus.value,
            "generation": store.generation,
        }

    @router.get("/facilities/{facility_id}")
    async def get_facility(facility_id: str) -> dict[str, Any]:
        facility = await _require(facility_id)
        return facility_view(facility, utc_now(), stale_threshold_hours, include_raw=True)

    @router.get("/facilities/{facility_id}/score")
    async def get_score(facility_id: str) -> dict[str, Any]:
        raw = await _require_raw(facility_id)
        try:
            snapshot = store.builder.snapshot(raw)
        except FacilityNormalizationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        result = store.builder.score(snapshot)
        return result.model_dump(mode="json", by_alias=True)

    @router.get("/facilities/{facility_id}/revenue")
    async def get_revenue(facility_id: str) -> dict[str, Any]:
        facility = await _require(facility_id)
        raw = await _require_raw(facility_id)
        try:
            snapshot = store.builder.snapshot(raw)
        except FacilityNormalizationError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        calculator = store.builder.revenue
        leak = calculator.calculate_revenue_leak(snapshot.all_records, snapshot.estimated_census)
        alerts = calculator.detect_revenue_leakage(snapshot)
        return {
            "facilityId": facility.id,
            "revenueDelta": facility.revenue_delta,
            "leak": leak.model_dump(mode="json", by_alias=True),
            "alerts": [a.model_dump(mode="json", by_alias=True) for a in alerts],
        }

    @router.post("/facilities/{facility_id}/sync")
    async def mark_synced(facility_id: str) -> dict[str, Any]:
        """Stamp a facility as synced now; the next refresh recomputes it."""
        now = utc_now()
        updated = await store.mark_synced(facility_id, now)
        if updated is None:
            raise HTTPException(status_code=404, detail=f"Facility {facility_id} not found")
        logger.info("Facility %s marked as synced", facility_id)
        if broadcaster is not None:
            await broadcaster.broadcast_briefing()
        return facility_view(updated, now, stale_threshold_hours)

    @router.get("/briefing/text", response_class=PlainTextResponse)
    async def briefing_text(
        focus: FocusArea = FocusArea.ALL,
        limit: Optional[int] = Query(default=None, ge=0),
    ) -> str:
        ranked = await store.ranked(focus, limit)
        return BriefingFormatter.format_plain(ranked, utc_now(), stale_threshold_hours)

    return router
