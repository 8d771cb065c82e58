"""SignalDetector — independent stress rules evaluated against one snapshot.

Rules (all evaluated, no early exit), in this order:

    1. Staffing gap, per role (RN, LPN, CNA):
           gap_ratio = Σ gap / Σ scheduled        fires when gap_ratio > 0.15
           severity  = min(100, gap_ratio × k)    k = 200 (RN), 180 (LPN), 150 (CNA)
    2. Acuity mismatch:
           mismatch  = max(0, rank(observed) − rank(billing)) / 3
           fires when mismatch > 0.1;  severity = min(100, mismatch × 100)
    3. Communication gap:
           fires when no mitigation action is documented;  severity = 40
    4. Staffing trend decline (last 3 points of the trend series):
           trend = (last − first) / 3
           fires when trend < −0.05;  severity = min(100, |trend| × 200)

Output order is evaluation order.  The ScoreAggregator relies on it: the
first signal wins a severity tie for the primary signal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from facility_attention.core.safe_harbor import SafeHarborFilter
from facility_attention.domain.enums import MAX_ACUITY_SPAN, AcuityLevel, SignalCategory, StaffingRole
from facility_attention.domain.facility import FacilitySnapshot, StaffingRecord
from facility_attention.domain.signal import IncidentSignal
from facility_attention.foundation.clock import utc_now
from facility_attention.foundation.identifiers import signal_id

logger = logging.getLogger(__name__)

TREND_WINDOW = 3


@dataclass(frozen=True)
class DetectorThresholds:
    """Configurable thresholds for the detection rules."""

    staffing_gap: float = 0.15
    role_multipliers: dict[StaffingRole, float] = field(default_factory=lambda: {
        StaffingRole.RN: 200.0,
        StaffingRole.LPN: 180.0,
        StaffingRole.CNA: 150.0,
    })
    acuity_mismatch: float = 0.1
    trend_decline: float = -0.05
    trend_multiplier: float = 200.0
    communication_severity: float = 40.0


# ── Pure calculations ────────────────────────────────────────────────────────

def staffing_gap_ratio(records: tuple[StaffingRecord, ...] | list[StaffingRecord]) -> float:
    """Total hours below schedule as a fraction of total scheduled hours (0–1)."""
    total_scheduled = sum(r.scheduled for r in records)
    if total_scheduled == 0:
        return 0.0
    return sum(r.gap for r in records) / total_scheduled


def acuity_rank_gap(observed: AcuityLevel, billing: AcuityLevel) -> int:
    """How many acuity ranks the observed state sits above the billing code."""
    return max(0, observed.rank - billing.rank)


def acuity_mismatch(observed: AcuityLevel, billing: AcuityLevel) -> float:
    """Rank gap normalised by the widest possible span (0–1)."""
    return acuity_rank_gap(observed, billing) / MAX_ACUITY_SPAN


def trend_slope(trend: tuple[float, ...] | list[float]) -> float | None:
    """Average per-point change over the trailing window, or None if too short."""
    if len(trend) < TREND_WINDOW:
        return None
    recent = trend[-TREND_WINDOW:]
    return (recent[-1] - recent[0]) / len(recent)


# ── Detector ─────────────────────────────────────────────────────────────────

Rule = Callable[[FacilitySnapshot, datetime], list[IncidentSignal]]


class SignalDetector:
    """Stateless rule evaluator.

    Accepts a FacilitySnapshot and returns the ordered list of signals that
    fired.  It never mutates the snapshot.
    """

    def __init__(self, thresholds: DetectorThresholds | None = None) -> None:
        self._t = thresholds or DetectorThresholds()
        self._rules: list[Rule] = [
            self._staffing_gaps,
            self._acuity_mismatch,
            self._communication_gap,
            self._trend_decline,
        ]

    @property
    def thresholds(self) -> DetectorThresholds:
        return self._t

    def detect(self, facility: FacilitySnapshot) -> list[IncidentSignal]:
        now = utc_now()
        signals: list[IncidentSignal] = []
        for rule in self._rules:
            signals.extend(rule(facility, now))
        logger.debug("Facility %s: %d signal(s) fired", facility.id, len(signals))
        return signals

    # ── Rules ────────────────────────────────────────────────────────────

    def _staffing_gaps(self, facility: FacilitySnapshot, now: datetime) -> list[IncidentSignal]:
        signals = []
        for role in StaffingRole:
            ratio = staffing_gap_ratio(facility.records(role))
            if ratio <= self._t.staffing_gap:
                continue
            multiplier = self._t.role_multipliers[role]
            signals.append(self._signal(
                prefix=f"staffing-{role.value.lower()}",
                facility=facility,
                now=now,
                category=SignalCategory.STAFFING,
                description=f"{role.value} coverage gap detected: {ratio * 100:.1f}% below scheduled",
                severity=ratio * multiplier,
                metadata={"role": role.value, "gapPercentage": ratio},
            ))
        return signals

    def _acuity_mismatch(self, facility: FacilitySnapshot, now: datetime) -> list[IncidentSignal]:
        mismatch = acuity_mismatch(facility.observed_acuity, facility.billing_status)
        if mismatch <= self._t.acuity_mismatch:
            return []
        return [self._signal(
            prefix="acuity",
            facility=facility,
            now=now,
            category=SignalCategory.ACUITY,
            description=(
                f"Acuity drift detected: Observed {facility.observed_acuity.value} "
                f"vs Billed {facility.billing_status.value}"
            ),
            severity=mismatch * 100,
            metadata={
                "observed": facility.observed_acuity.value,
                "billing": facility.billing_status.value,
                "mismatch": mismatch,
            },
        )]

    def _communication_gap(self, facility: FacilitySnapshot, now: datetime) -> list[IncidentSignal]:
        if facility.defensibility.documented_count > 0:
            return []
        return [self._signal(
            prefix="communication",
            facility=facility,
            now=now,
            category=SignalCategory.COMMUNICATION,
            description="Documentation gap: No mitigation actions documented",
            severity=self._t.communication_severity,
            metadata={"missingActions": True},
        )]

    def _trend_decline(self, facility: FacilitySnapshot, now: datetime) -> list[IncidentSignal]:
        slope = trend_slope(facility.staffing_trend)
        if slope is None or slope >= self._t.trend_decline:
            return []
        return [self._signal(
            prefix="trend",
            facility=facility,
            now=now,
            category=SignalCategory.STAFFING,
            description=f"Operational drift: Staffing trend declining over {TREND_WINDOW}-day period",
            severity=abs(slope) * self._t.trend_multiplier,
            metadata={"trend": slope, "recentValues": list(facility.staffing_trend[-TREND_WINDOW:])},
        )]

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _signal(
        prefix: str,
        facility: FacilitySnapshot,
        now: datetime,
        category: SignalCategory,
        description: str,
        severity: float,
        metadata: dict,
    ) -> IncidentSignal:
        return IncidentSignal(
            id=signal_id(prefix, facility.id, now),
            type=category,
            description=SafeHarborFilter.apply(description),
            severity=min(100.0, severity),
            detected_at=now,
            metadata=metadata,
        )
