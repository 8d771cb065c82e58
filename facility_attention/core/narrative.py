"""Narrative strategies — headline and observation text per stress category.

Each category has one strategy producing two deliberately different voices:

    observation        quantitative ("RN actual hours are 18 below scheduled")
    state_observation  narrative description of the raw state
                       ("40 residents on census but only 2 CNAs visible ...")

plus a headline (``"<name>: <signal name>"``, or a neutral
``"<name>: <Category> Observation"`` when the category's own check finds
nothing) and the evidence figures that back it.

Text produced here is raw; the builder passes every string through the
safe-harbor filter.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from facility_attention.domain.canonical import Evidence
from facility_attention.domain.enums import SignalCategory, StaffingRole
from facility_attention.domain.facility import FacilitySnapshot
from facility_attention.domain.scoring import AttentionScoreResult

SHIFT_HOURS = 8.0
RESIDENTS_PER_CNA_GUIDE = 10.0
TREND_DELTA_BAND_PCT = 10.0
SAFETY_INCIDENT_TYPES = frozenset({"compliance", "safety"})

_NEUTRAL_OPERATIONS = "Observation: Operational signals within expected parameters."


@dataclass(frozen=True)
class Narrative:
    headline: str
    observation: str
    state_observation: str
    evidence: dict[str, object] = field(default_factory=dict)

    def to_evidence(self) -> Evidence:
        return Evidence(**self.evidence)


class NarrativeStrategy(ABC):
    """Narration for one dominant stress category."""

    @property
    @abstractmethod
    def signal_name(self) -> str:
        ...

    @abstractmethod
    def narrate(self, facility: FacilitySnapshot, result: AttentionScoreResult) -> Narrative:
        ...


# ── Staffing ─────────────────────────────────────────────────────────────────

class StaffingNarrative(NarrativeStrategy):
    @property
    def signal_name(self) -> str:
        return "Skeleton Crew Signal"

    def narrate(self, facility: FacilitySnapshot, result: AttentionScoreResult) -> Narrative:
        rn_gap = sum(r.gap for r in facility.records(StaffingRole.RN))
        evidence: dict[str, object] = {}

        if rn_gap > 0:
            headline = f"{facility.name}: {self.signal_name}"
            observation = (
                "Observation: Staffing hours deviate from census requirements. "
                f"RN actual hours are {rn_gap:g} below scheduled."
            )
            evidence["staffing_gap"] = rn_gap
        else:
            headline = f"{facility.name}: Staffing Observation"
            observation = "Observation: Staffing levels align with scheduled requirements."

        delta = trend_delta_label(facility.staffing_trend)
        if delta is not None:
            evidence["trend_delta"] = delta

        return Narrative(headline, observation, roster_observation(facility), evidence)


def visible_cna_count(facility: FacilitySnapshot) -> int:
    """CNAs on the most recent roster entry, assuming one CNA per shift block."""
    records = facility.records(StaffingRole.CNA)
    if not records:
        return 0
    return int(records[-1].actual // SHIFT_HOURS)


def roster_observation(facility: FacilitySnapshot) -> str:
    cnas = visible_cna_count(facility)
    noun = "CNA" if cnas == 1 else "CNAs"
    if facility.census <= 0:
        return f"Observation: Census not reported; {cnas} {noun} visible on the latest roster."
    census = f"{facility.census:g}"
    if cnas == 0:
        return f"Observation: {census} residents on census but no CNAs visible on the latest roster."
    if facility.census / cnas > RESIDENTS_PER_CNA_GUIDE:
        return f"Observation: {census} residents on census but only {cnas} {noun} visible on the latest roster."
    return f"Observation: {census} residents on census with {cnas} {noun} visible on the latest roster."


def trend_delta_label(trend: tuple[float, ...]) -> str | None:
    """Arrow label for the change between the first and last trend points."""
    if len(trend) < 2 or trend[0] <= 0:
        return None
    delta = (trend[-1] - trend[0]) / trend[0] * 100
    if delta < -TREND_DELTA_BAND_PCT:
        return f"↓ {abs(delta):.0f}%"
    if delta > TREND_DELTA_BAND_PCT:
        return f"↑ {delta:.0f}%"
    return "→ stable"


# ── Acuity ───────────────────────────────────────────────────────────────────

class AcuityNarrative(NarrativeStrategy):
    @property
    def signal_name(self) -> str:
        return "Acuity Mismatch"

    def narrate(self, facility: FacilitySnapshot, result: AttentionScoreResult) -> Narrative:
        observed = facility.observed_acuity.value
        billing = facility.billing_status.value
        headline = f"{facility.name}: {self.signal_name}"

        if observed != billing:
            return Narrative(
                headline,
                f"Observation: Observed clinical acuity ({observed}) differs from billing status ({billing}).",
                f"Observation: Residents present at {observed} clinical acuity while the "
                f"billing record reflects {billing}.",
                {"acuity_mismatch": True},
            )
        return Narrative(
            headline,
            "Observation: Acuity levels align with billing status.",
            f"Observation: Clinical presentation and billing record both reflect {observed} acuity.",
        )


# ── Compliance ───────────────────────────────────────────────────────────────

class ComplianceNarrative(NarrativeStrategy):
    @property
    def signal_name(self) -> str:
        return "Safety Incident"

    def narrate(self, facility: FacilitySnapshot, result: AttentionScoreResult) -> Narrative:
        count = sum(
            1 for incident in facility.reported_incidents
            if incident.type.lower() in SAFETY_INCIDENT_TYPES
        )
        documented = facility.defensibility.documented_count
        state = (
            f"Observation: {count} reported incident{'s' if count != 1 else ''} on file; "
            f"{documented} of 3 mitigation actions documented."
        )

        if count > 0:
            return Narrative(
                f"{facility.name}: {self.signal_name}",
                f"Observation: {count} safety incident{'s' if count != 1 else ''} "
                "detected requiring leadership attention.",
                state,
            )
        return Narrative(
            f"{facility.name}: Compliance Observation",
            "Observation: Compliance signals within expected parameters.",
            state,
        )


# ── Communication and anything else ──────────────────────────────────────────

class OperationalNarrative(NarrativeStrategy):
    @property
    def signal_name(self) -> str:
        return "Operational Signal"

    def narrate(self, facility: FacilitySnapshot, result: AttentionScoreResult) -> Narrative:
        if facility.defensibility.documented_count == 0:
            state = (
                "Observation: No mitigation actions are on file for the current "
                "staffing window."
            )
        else:
            state = _NEUTRAL_OPERATIONS
        return Narrative(
            f"{facility.name}: {self.signal_name}",
            result.primary_signal or _NEUTRAL_OPERATIONS,
            state,
        )


# ── Dispatch table ───────────────────────────────────────────────────────────

_DEFAULT_STRATEGY = OperationalNarrative()

NARRATIVE_STRATEGIES: dict[SignalCategory, NarrativeStrategy] = {
    SignalCategory.STAFFING: StaffingNarrative(),
    SignalCategory.ACUITY: AcuityNarrative(),
    SignalCategory.COMPLIANCE: ComplianceNarrative(),
    SignalCategory.COMMUNICATION: _DEFAULT_STRATEGY,
}


def narrate(facility: FacilitySnapshot, result: AttentionScoreResult) -> Narrative:
    """Narrate *facility* using the strategy for its dominant stress category."""
    strategy = NARRATIVE_STRATEGIES.get(result.stress_category, _DEFAULT_STRATEGY)
    return strategy.narrate(facility, result)
