"""facility-attention — attention scoring and briefing service.

This is the application entry point.  It wires the scoring engine, the
BriefingStore, the AdapterRegistry and the REST/WebSocket endpoints
together.
"""

from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from pathlib import Path
from typing import Any, AsyncIterator

from fastapi import FastAPI

from facility_attention.adapters.capture import CaptureAdapter
from facility_attention.adapters.facility import FacilityAdapter
from facility_attention.adapters.registry import AdapterRegistry
from facility_attention.api.briefing import create_briefing_router
from facility_attention.api.ingest import create_ingest_router
from facility_attention.api.ws_briefing import BriefingBroadcaster, create_briefing_ws_router
from facility_attention.config import Settings, settings
from facility_attention.core.builder import CanonicalFacilityBuilder
from facility_attention.core.detector import DetectorThresholds, SignalDetector
from facility_attention.core.revenue import RevenueLeakCalculator, RevenueRates
from facility_attention.domain.enums import StaffingRole
from facility_attention.store.briefing_store import BriefingStore

# ── Logging ──────────────────────────────────────────────────────────────────

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


# ── Scoring engine ───────────────────────────────────────────────────────────

def build_engine(config: Settings) -> CanonicalFacilityBuilder:
    detector = SignalDetector(DetectorThresholds(
        staffing_gap=config.staffing_gap_threshold,
        role_multipliers={
            StaffingRole.RN: config.rn_severity_multiplier,
            StaffingRole.LPN: config.lpn_severity_multiplier,
            StaffingRole.CNA: config.cna_severity_multiplier,
        },
        acuity_mismatch=config.acuity_mismatch_threshold,
        trend_decline=config.trend_decline_threshold,
        trend_multiplier=config.trend_severity_multiplier,
        communication_severity=config.communication_severity,
    ))
    revenue = RevenueLeakCalculator(RevenueRates(
        gap_threshold_pct=config.revenue_gap_threshold_pct,
        per_resident_daily=config.per_resident_daily_rate,
        standardized_daily=config.standardized_daily_rate,
    ))
    return CanonicalFacilityBuilder(
        detector=detector,
        revenue=revenue,
        sync_spread_hours=config.sync_spread_hours,
        fallback_staleness=timedelta(hours=config.fallback_staleness_hours),
        cna_hours_per_resident=config.cna_hours_per_resident,
    )


def load_seed(path: str | None) -> list[dict[str, Any]]:
    """Raw facilities from a JSON file holding a list (or {"facilities": [...]})."""
    if not path:
        return []
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data.get("facilities", [])
    if not isinstance(data, list):
        raise ValueError(f"seed file {path} must contain a list of facilities")
    return data


# ── State ────────────────────────────────────────────────────────────────────

builder = build_engine(settings)
store = BriefingStore(builder, load_seed(settings.seed_file))
broadcaster = BriefingBroadcaster(store, stale_threshold_hours=settings.stale_threshold_hours)

# ── Adapter Registry ────────────────────────────────────────────────────────

registry = AdapterRegistry()
registry.register(CaptureAdapter())
registry.register(FacilityAdapter())


# ── App ──────────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    snapshot = await store.refresh()
    logger.info("Initial briefing ready: %d facilit%s", len(snapshot), "y" if len(snapshot) == 1 else "ies")
    yield


app = FastAPI(
    title=settings.app_name,
    description="Facility attention scoring and leadership briefing",
    version="0.1.0",
    lifespan=lifespan,
)

# ── Routes ───────────────────────────────────────────────────────────────────

app.include_router(create_briefing_router(
    store,
    broadcaster,
    stale_threshold_hours=settings.stale_threshold_hours,
))
app.include_router(create_ingest_router(
    store,
    registry,
    broadcaster,
    critical_gap_hours=settings.capture_critical_gap_hours,
))
app.include_router(create_briefing_ws_router(broadcaster))


# ── Health ───────────────────────────────────────────────────────────────────

@app.get("/health")
async def health() -> dict:
    facilities = await store.all()
    return {
        "status": "ok",
        "facilities": len(facilities),
        "raw_facilities": await store.raw_count(),
        "fallback_facilities": sum(1 for f in facilities if f.is_fallback),
        "generation": store.generation,
        "refreshed_at": store.refreshed_at.isoformat() if store.refreshed_at else None,
        "dashboard_clients": broadcaster.client_count,
        "adapters": registry.stats,
        "total_adapted": registry.total_accepted,
        "total_rejected": registry.total_rejected,
    }
