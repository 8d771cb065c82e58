"""CanonicalFacility — the presentation-ready record consumed by the dashboard.

Field names serialize in camelCase (``syncTimestamp``, ``revenueDelta``,
``stateObservation`` ...) and form a binding contract with presentation
and reporting code.  A canonical facility is built fresh on every refresh
pass and is never partially constructed: either every field is derived
from the snapshot, or the whole record is the degraded fallback below.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from facility_attention.domain.enums import ConfidenceRating, Intensity, SignalCategory

_CANONICAL_CONFIG = {
    "frozen": True,
    "alias_generator": to_camel,
    "populate_by_name": True,
}

# ── Fallback record text ─────────────────────────────────────────────────────

# Exempt from the safe-harbor filter: the fallback headline keeps this literal text
FALLBACK_HEADLINE_SUFFIX = "Calculation Error"
FALLBACK_OBSERVATION = "Observation: Sync required. Data processing interrupted for this facility."
FALLBACK_STATE_OBSERVATION = (
    "Observation: Staffing roster appears inconsistent with census requirements. "
    "Verification suggested."
)
UNKNOWN_FACILITY_NAME = "Unknown Facility"


class Evidence(BaseModel):
    """Optional supporting figures behind a headline."""

    staffing_gap: Optional[float] = None
    trend_delta: Optional[str] = None
    acuity_mismatch: Optional[bool] = None
    revenue_leak: Optional[float] = None

    model_config = _CANONICAL_CONFIG

    @property
    def is_empty(self) -> bool:
        return all(
            v is None
            for v in (self.staffing_gap, self.trend_delta, self.acuity_mismatch, self.revenue_leak)
        )


class CanonicalFacility(BaseModel):
    """One derived view per facility per refresh pass."""

    id: str
    name: str
    sync_timestamp: datetime
    revenue_delta: float = Field(0.0, ge=0.0, description="Uncaptured revenue, USD/day")
    intensity: Intensity
    stress_category: SignalCategory
    headline: str
    observation: str = Field(..., description="Quantitative observation sentence")
    state_observation: str = Field(..., description="Narrative description of the raw state")
    confidence: ConfidenceRating
    evidence: Evidence = Field(default_factory=Evidence)
    raw_data: Optional[dict[str, Any]] = Field(
        default=None,
        description="The raw facility payload, kept for drill-down views",
    )

    model_config = _CANONICAL_CONFIG

    @property
    def is_fallback(self) -> bool:
        return self.headline.endswith(f": {FALLBACK_HEADLINE_SUFFIX}")

    def public_dict(self) -> dict[str, Any]:
        """camelCase JSON-ready dict without the raw payload."""
        return self.model_dump(mode="json", by_alias=True, exclude={"raw_data"})
