"""Controlled enumerations for the facility-attention domain.

Every categorical field in the domain MUST reference an enum defined here.
Free-form strings are not acceptable for classification fields.

Two parallel taxonomies exist on purpose and must stay distinct:

- ``Confidence`` (high/medium/low) is attached to the score result, while
  ``ConfidenceRating`` (High/Med/Low) is attached to the canonical facility.
- ``ScoreCategory`` (critical/warning/stable) and ``Intensity``
  (Low/Elevated/Critical) are both derived from the same 80/50 breakpoints
  in ``core.aggregator``.
"""

from __future__ import annotations

from enum import Enum


class AcuityLevel(str, Enum):
    """Clinical complexity of residents, ordered LOW < STANDARD < HIGH < CRITICAL."""

    LOW = "LOW"
    STANDARD = "STANDARD"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"

    @property
    def rank(self) -> int:
        return _ACUITY_RANK[self]


_ACUITY_RANK: dict[AcuityLevel, int] = {
    AcuityLevel.LOW: 1,
    AcuityLevel.STANDARD: 2,
    AcuityLevel.HIGH: 3,
    AcuityLevel.CRITICAL: 4,
}

# Widest possible rank span (CRITICAL - LOW)
MAX_ACUITY_SPAN = 3


class StaffingRole(str, Enum):
    RN = "RN"
    LPN = "LPN"
    CNA = "CNA"


class Shift(str, Enum):
    DAY = "day"
    EVENING = "evening"
    NIGHT = "night"


class SignalCategory(str, Enum):
    """Stress category of a detected signal (and of a facility)."""

    STAFFING = "staffing"
    ACUITY = "acuity"
    COMPLIANCE = "compliance"
    COMMUNICATION = "communication"


class Confidence(str, Enum):
    """Data-completeness confidence attached to an AttentionScoreResult."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ConfidenceRating(str, Enum):
    """Stricter confidence attached to a CanonicalFacility."""

    HIGH = "High"
    MED = "Med"
    LOW = "Low"


class Intensity(str, Enum):
    """Presentation label for the attention score."""

    LOW = "Low"
    ELEVATED = "Elevated"
    CRITICAL = "Critical"

    @property
    def order(self) -> int:
        return _INTENSITY_ORDER[self]


_INTENSITY_ORDER: dict[Intensity, int] = {
    Intensity.LOW: 1,
    Intensity.ELEVATED: 2,
    Intensity.CRITICAL: 3,
}


class ScoreCategory(str, Enum):
    """UI category for the attention score."""

    CRITICAL = "critical"
    WARNING = "warning"
    STABLE = "stable"


class LeakageSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FocusArea(str, Enum):
    """Dashboard focus filter and the stress category it selects."""

    ALL = "all"
    STAFFING = "staffing"
    BILLING = "billing"
    SAFETY = "safety"
    DOCUMENTATION = "documentation"

    @property
    def category(self) -> SignalCategory | None:
        return _FOCUS_CATEGORY.get(self)


_FOCUS_CATEGORY: dict[FocusArea, SignalCategory] = {
    FocusArea.STAFFING: SignalCategory.STAFFING,
    FocusArea.BILLING: SignalCategory.ACUITY,
    FocusArea.SAFETY: SignalCategory.COMPLIANCE,
    FocusArea.DOCUMENTATION: SignalCategory.COMMUNICATION,
}
