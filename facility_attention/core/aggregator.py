"""ScoreAggregator — folds detected signals into one 0–100 attention score.

Score formula:
    no signals  → 20 (baseline "low attention" floor, not zero)
    otherwise   → min(100, mean(severity × weight))
                  weight = 1.5  staffing signal with severity > 70
                           0.8  acuity signal
                           1.0  everything else
                  × 1.1 (re-clamped to 100) when 2+ distinct signal types fired
    rounded half-up to an integer.

Primary signal: the highest-severity signal, first occurrence wins ties.
Dominant category: the primary signal's type, or COMPLIANCE if nothing fired.

Both presentation taxonomies share the same breakpoints:
    score ≥ 80 → Critical / critical
    score ≥ 50 → Elevated / warning
    otherwise  → Low / stable
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from facility_attention.domain.enums import Confidence, Intensity, ScoreCategory, SignalCategory
from facility_attention.domain.scoring import AttentionScoreResult
from facility_attention.domain.signal import IncidentSignal

BASELINE_SCORE = 20
CRITICAL_BREAKPOINT = 80
ELEVATED_BREAKPOINT = 50

CRITICAL_STAFFING_SEVERITY = 70.0
CRITICAL_STAFFING_WEIGHT = 1.5
ACUITY_WEIGHT = 0.8
MULTI_DIMENSION_BOOST = 1.1

STABLE_OPERATIONS = "Stable Operations"


def signal_weight(signal: IncidentSignal) -> float:
    if signal.type == SignalCategory.STAFFING and signal.severity > CRITICAL_STAFFING_SEVERITY:
        return CRITICAL_STAFFING_WEIGHT
    if signal.type == SignalCategory.ACUITY:
        return ACUITY_WEIGHT
    return 1.0


def intensity_label(score: float) -> Intensity:
    if score >= CRITICAL_BREAKPOINT:
        return Intensity.CRITICAL
    if score >= ELEVATED_BREAKPOINT:
        return Intensity.ELEVATED
    return Intensity.LOW


def score_category(score: float) -> ScoreCategory:
    if score >= CRITICAL_BREAKPOINT:
        return ScoreCategory.CRITICAL
    if score >= ELEVATED_BREAKPOINT:
        return ScoreCategory.WARNING
    return ScoreCategory.STABLE


class ScoreAggregator:
    """Stateless aggregation over an ordered signal sequence."""

    def aggregate(
        self,
        signals: Sequence[IncidentSignal],
        confidence: Confidence,
    ) -> AttentionScoreResult:
        primary = self.primary_signal(signals)
        return AttentionScoreResult(
            score=self.score(signals),
            confidence=confidence,
            stress_signals=list(signals),
            primary_signal=primary.description if primary else STABLE_OPERATIONS,
            stress_category=primary.type if primary else SignalCategory.COMPLIANCE,
        )

    @staticmethod
    def score(signals: Sequence[IncidentSignal]) -> int:
        if not signals:
            return BASELINE_SCORE

        weighted = sum(s.severity * signal_weight(s) for s in signals)
        raw = min(100.0, weighted / len(signals))

        if len({s.type for s in signals}) >= 2:
            raw = min(100.0, raw * MULTI_DIMENSION_BOOST)

        return max(0, min(100, math.floor(raw + 0.5)))

    @staticmethod
    def primary_signal(signals: Sequence[IncidentSignal]) -> IncidentSignal | None:
        if not signals:
            return None
        # max() keeps the first of equal keys, so evaluation order breaks ties
        return max(signals, key=lambda s: s.severity)
