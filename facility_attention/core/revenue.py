"""RevenueLeakCalculator — estimated uncaptured daily revenue.

Two independent models co-exist:

Model A (gap threshold), ``calculate_revenue_leak``:
    gap% = (Σ scheduled − Σ actual) / Σ scheduled × 100 across every record
    overstaffed records offset understaffed ones; a negative gap% is not a leak
    census missing/0 or no scheduled hours → not detected, explanatory text
    gap% > 10 → detected, daily_opportunity = census × $180

Model B (acuity/billing mismatch), ``detect_revenue_leakage``:
    rank gap 1 → medium   $250/day
    rank gap 2 → high     $500/day
    rank gap 3 → critical $750/day

Standardized presentation value, ``standardized_revenue_delta``:
    Model A decides *whether* there is a leak; the figure shown is the flat
    Model B medium-tier rate × census.  Model A's own dollar estimate is
    discarded.  Which model should be the source of truth is an open product
    decision, so the observed behaviour is kept as-is.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field

from facility_attention.core.detector import acuity_rank_gap
from facility_attention.core.safe_harbor import SafeHarborFilter
from facility_attention.domain.enums import LeakageSeverity
from facility_attention.domain.facility import FacilitySnapshot, StaffingRecord
from facility_attention.domain.scoring import RevenueLeakageAlert, RevenueLeakResult

ROOM_NUMBER_BASE = 400


@dataclass(frozen=True)
class RevenueRates:
    """Dollar figures and thresholds used by both models."""

    gap_threshold_pct: float = 10.0
    per_resident_daily: float = 180.0
    standardized_daily: float = 250.0
    mismatch_tiers: dict[int, tuple[LeakageSeverity, float]] = field(default_factory=lambda: {
        1: (LeakageSeverity.MEDIUM, 250.0),
        2: (LeakageSeverity.HIGH, 500.0),
        3: (LeakageSeverity.CRITICAL, 750.0),
    })


class RevenueLeakCalculator:
    """Stateless revenue estimator."""

    def __init__(self, rates: RevenueRates | None = None) -> None:
        self._rates = rates or RevenueRates()

    @property
    def rates(self) -> RevenueRates:
        return self._rates

    # ── Model A ──────────────────────────────────────────────────────────

    def calculate_revenue_leak(
        self,
        records: Sequence[StaffingRecord],
        census: float | None,
    ) -> RevenueLeakResult:
        if not census or census <= 0:
            return self._not_detected(
                "Census data unavailable - cannot calculate revenue opportunity"
            )
        if not records:
            return self._not_detected(
                "No staffing data available - cannot calculate revenue opportunity"
            )

        total_scheduled = sum(r.scheduled for r in records)
        if total_scheduled == 0:
            return self._not_detected(
                "No scheduled hours found - cannot calculate revenue opportunity"
            )

        total_actual = sum(r.actual for r in records)
        gap_pct = (total_scheduled - total_actual) / total_scheduled * 100

        if gap_pct > self._rates.gap_threshold_pct:
            daily = census * self._rates.per_resident_daily
            return RevenueLeakResult(
                detected=True,
                daily_opportunity=daily,
                staffing_gap_percentage=gap_pct,
                description=SafeHarborFilter.apply(
                    f"Under-billing detected: {gap_pct:.1f}% staffing gap with "
                    f"{census:g} residents. Potential PDPM opportunity: ${daily:,.0f}/day"
                ),
            )

        return self._not_detected(
            f"Staffing gap ({gap_pct:.1f}%) is within acceptable range "
            f"(<{self._rates.gap_threshold_pct:g}%)",
            gap_pct=gap_pct,
        )

    # ── Model B ──────────────────────────────────────────────────────────

    def detect_revenue_leakage(
        self,
        facility: FacilitySnapshot,
        room_number: str | None = None,
    ) -> list[RevenueLeakageAlert]:
        """One alert when observed acuity ranks above the billing code."""
        gap = acuity_rank_gap(facility.observed_acuity, facility.billing_status)
        if gap <= 0:
            return []

        tiers = self._rates.mismatch_tiers
        severity, daily = tiers[min(gap, max(tiers))]
        room = room_number or synthesize_room_number(facility.id)

        return [RevenueLeakageAlert(
            room_number=room,
            daily_leakage=daily,
            alert_message=SafeHarborFilter.apply(
                f"Estimated ${daily:,.0f}/day leakage observed. MDS for {room} reflects "
                f"{facility.billing_status.value} while observed acuity is "
                f"{facility.observed_acuity.value}; NTA reimbursement not captured."
            ),
            observed_acuity=facility.observed_acuity,
            billing_status=facility.billing_status,
            severity=severity,
        )]

    # ── Standardized presentation value ──────────────────────────────────

    def standardized_revenue_delta(self, facility: FacilitySnapshot) -> float:
        census = facility.estimated_census
        result = self.calculate_revenue_leak(facility.all_records, census)
        if result.detected:
            return self._rates.standardized_daily * census
        return 0.0

    @staticmethod
    def _not_detected(description: str, gap_pct: float = 0.0) -> RevenueLeakResult:
        return RevenueLeakResult(
            detected=False,
            daily_opportunity=0.0,
            staffing_gap_percentage=gap_pct,
            description=SafeHarborFilter.apply(description),
        )


def synthesize_room_number(facility_id: str) -> str:
    """Room label from the last two digits of the facility id ("Room 402" if none)."""
    digits = re.sub(r"\D", "", facility_id or "")[-2:]
    return f"Room {ROOM_NUMBER_BASE + int(digits or '2')}"
