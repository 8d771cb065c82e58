"""CanonicalFacilityBuilder — one raw facility in, one CanonicalFacility out.

Pipeline:
    normalize → SignalDetector → ConfidenceEstimator → ScoreAggregator
              → narrative strategy → RevenueLeakCalculator → assemble

Rules:
    - ``build`` NEVER raises.  Any exception inside the pipeline is logged and
      replaced by the fallback record: intensity Elevated, confidence Low,
      category compliance, sync time pre-marked stale (now − 4h), headline
      "<name>: Calculation Error", zero revenue, empty evidence.
    - Failures are contained per facility: ``build_all`` always returns one
      record per input, in input order.
    - Every generated string passes the safe-harbor filter.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any

from facility_attention.core.aggregator import ScoreAggregator, intensity_label
from facility_attention.core.confidence import ConfidenceEstimator
from facility_attention.core.detector import SignalDetector
from facility_attention.core.narrative import narrate
from facility_attention.core.normalize import DEFAULT_CNA_HOURS_PER_RESIDENT, normalize_facility
from facility_attention.core.revenue import RevenueLeakCalculator
from facility_attention.core.safe_harbor import SafeHarborFilter
from facility_attention.domain.canonical import (
    FALLBACK_HEADLINE_SUFFIX,
    FALLBACK_OBSERVATION,
    FALLBACK_STATE_OBSERVATION,
    UNKNOWN_FACILITY_NAME,
    CanonicalFacility,
    Evidence,
)
from facility_attention.domain.enums import ConfidenceRating, Intensity, SignalCategory
from facility_attention.domain.facility import FacilitySnapshot, RawFacility
from facility_attention.domain.scoring import AttentionScoreResult
from facility_attention.foundation.clock import utc_now
from facility_attention.foundation.identifiers import sync_offset_hours

logger = logging.getLogger(__name__)

RawInput = RawFacility | Mapping[str, Any]


class CanonicalFacilityBuilder:
    """Stateless orchestration of the attention scoring engine."""

    def __init__(
        self,
        detector: SignalDetector | None = None,
        aggregator: ScoreAggregator | None = None,
        estimator: ConfidenceEstimator | None = None,
        revenue: RevenueLeakCalculator | None = None,
        sync_spread_hours: int = 7,
        fallback_staleness: timedelta = timedelta(hours=4),
        cna_hours_per_resident: float = DEFAULT_CNA_HOURS_PER_RESIDENT,
    ) -> None:
        self._detector = detector or SignalDetector()
        self._aggregator = aggregator or ScoreAggregator()
        self._estimator = estimator or ConfidenceEstimator()
        self._revenue = revenue or RevenueLeakCalculator()
        self._sync_spread_hours = sync_spread_hours
        self._fallback_staleness = fallback_staleness
        self._cna_hours_per_resident = cna_hours_per_resident

    @property
    def revenue(self) -> RevenueLeakCalculator:
        return self._revenue

    # ── Public API ───────────────────────────────────────────────────────

    def snapshot(self, raw: RawInput) -> FacilitySnapshot:
        return normalize_facility(raw, self._cna_hours_per_resident)

    def score(self, facility: FacilitySnapshot) -> AttentionScoreResult:
        """Detect signals and aggregate them into an AttentionScoreResult."""
        signals = self._detector.detect(facility)
        confidence = self._estimator.score_confidence(facility)
        return self._aggregator.aggregate(signals, confidence)

    def build(self, raw: RawInput, now: datetime | None = None) -> CanonicalFacility:
        """Build the canonical record for *raw*, falling back on any failure."""
        now = now or utc_now()
        try:
            return self._build(raw, now)
        except Exception as exc:
            logger.error(
                "Canonical build failed for facility %s: %s",
                _peek(raw, "id") or "unknown",
                exc,
            )
            return self.fallback(raw, now)

    def build_all(
        self,
        raws: Iterable[RawInput],
        now: datetime | None = None,
    ) -> list[CanonicalFacility]:
        """Build every facility against one shared clock reading."""
        now = now or utc_now()
        return [self.build(raw, now) for raw in raws]

    def fallback(self, raw: Any, now: datetime | None = None) -> CanonicalFacility:
        """The deterministic degraded record for a facility that failed to build."""
        now = now or utc_now()
        name = _peek(raw, "name")
        return CanonicalFacility(
            id=_peek(raw, "id") or "",
            name=name or UNKNOWN_FACILITY_NAME,
            sync_timestamp=now - self._fallback_staleness,
            revenue_delta=0.0,
            intensity=Intensity.ELEVATED,
            stress_category=SignalCategory.COMPLIANCE,
            headline=f"{name or 'Facility'}: {FALLBACK_HEADLINE_SUFFIX}",
            observation=FALLBACK_OBSERVATION,
            state_observation=FALLBACK_STATE_OBSERVATION,
            confidence=ConfidenceRating.LOW,
            evidence=Evidence(),
            raw_data=_raw_dict(raw),
        )

    def sync_timestamp(self, facility_id: str, now: datetime) -> datetime:
        """Deterministic last-sync time: now minus a per-id hour offset."""
        return now - timedelta(hours=sync_offset_hours(facility_id, self._sync_spread_hours))

    # ── Internals ────────────────────────────────────────────────────────

    def _build(self, raw: RawInput, now: datetime) -> CanonicalFacility:
        facility = self.snapshot(raw)
        result = self.score(facility)
        story = narrate(facility, result)

        revenue_delta = self._revenue.standardized_revenue_delta(facility)
        evidence = story.to_evidence()
        if revenue_delta > 0:
            evidence = evidence.model_copy(update={"revenue_leak": revenue_delta})

        return CanonicalFacility(
            id=facility.id,
            name=facility.name,
            sync_timestamp=self.sync_timestamp(facility.id, now),
            revenue_delta=revenue_delta,
            intensity=intensity_label(result.score),
            stress_category=result.stress_category,
            headline=SafeHarborFilter.apply(story.headline),
            observation=SafeHarborFilter.apply(story.observation),
            state_observation=SafeHarborFilter.apply(story.state_observation),
            confidence=self._estimator.facility_confidence(facility),
            evidence=evidence,
            raw_data=_raw_dict(raw),
        )


# ── Helpers ──────────────────────────────────────────────────────────────────

def _peek(raw: Any, key: str) -> str | None:
    """Best-effort read of an identifying field from any raw input."""
    if isinstance(raw, RawFacility):
        value = getattr(raw, key, None)
    elif isinstance(raw, Mapping):
        value = raw.get(key)
    else:
        return None
    if value is None or value == "":
        return None
    return str(value)


def _raw_dict(raw: Any) -> dict[str, Any] | None:
    if isinstance(raw, RawFacility):
        return raw.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(raw, Mapping):
        # raw_data is keyed by str; anything else cannot be carried through
        return {k: v for k, v in raw.items() if isinstance(k, str)}
    return None
