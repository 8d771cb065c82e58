"""REST ingestion of upstream facility payloads.

Path: POST /api/ingest

Routes the payload through the AdapterRegistry, merges the result into the
store's raw collection, refreshes the briefing and pushes it to connected
dashboards.  The response carries the capture layer's own critical flag,
which is independent of the attention score.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException

from facility_attention.adapters.capture import (
    CRITICAL_GAP_HOURS,
    capture_timestamp,
    compute_capture_observation,
    has_required_fields,
    overlay,
    resolve_facility_id,
)
from facility_attention.adapters.registry import (
    AdaptationError,
    AdapterRegistry,
    NoAdapterFoundError,
)
from facility_attention.api.ws_briefing import BriefingBroadcaster
from facility_attention.foundation.clock import utc_now
from facility_attention.store.briefing_store import BriefingStore

logger = logging.getLogger(__name__)


def create_ingest_router(
    store: BriefingStore,
    registry: AdapterRegistry,
    broadcaster: BriefingBroadcaster | None = None,
    critical_gap_hours: float = CRITICAL_GAP_HOURS,
) -> APIRouter:
    """Factory that wires the ingest endpoint to store + registry."""

    router = APIRouter(prefix="/api", tags=["ingest"])

    @router.post("/ingest")
    async def ingest(payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
        # ── Select adapter ───────────────────────────────────────────────
        try:
            adapter = registry.select(payload)
        except NoAdapterFoundError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        # ── Resolve the facility for capture payloads ────────────────────
        if adapter.source_name == "capture":
            if not has_required_fields(payload):
                raise HTTPException(
                    status_code=400,
                    detail="Invalid payload: need facilityName/facility_id and staffing "
                           "data (census, rn, cna, or staffing object)",
                )
            facility_id = resolve_facility_id(payload)
            if facility_id is None and payload.get("facilityName"):
                facility_id = await store.find_by_name(str(payload["facilityName"]))
            if facility_id is None:
                raise HTTPException(
                    status_code=400,
                    detail="Unable to determine facility_id: include facility_id or a "
                           "facilityName that matches a known facility",
                )
            payload = {**payload, "facility_id": facility_id}

        # ── Adapt ────────────────────────────────────────────────────────
        try:
            facility = registry.adapt(payload)
            observation = compute_capture_observation(payload, critical_gap_hours)
        except AdaptationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        # ── Merge into the raw collection and refresh ────────────────────
        facility_id = str(facility["id"])
        existing = await store.raw(facility_id)
        await store.upsert_raw(overlay(existing, facility))
        await store.refresh()
        if broadcaster is not None:
            await broadcaster.broadcast_briefing()

        if observation.is_critical:
            logger.warning("Facility %s capture flagged critical: %s", facility_id, observation.critical_reason)
        else:
            logger.info("Ingested %s payload for facility %s", adapter.source_name, facility_id)

        return {
            "success": True,
            "facility_id": facility_id,
            "adapter": adapter.source_name,
            "state_observation": observation.model_dump(),
            "sync_timestamp": capture_timestamp(payload) or utc_now().isoformat(),
        }

    return router
