"""ConfidenceEstimator — data-completeness ratings, independent of the score.

Two ratings are produced for two different consumers and must not be
conflated:

``score_confidence`` (high/medium/low), attached to AttentionScoreResult:
    has_staffing = any role has at least one record
    has_acuity   = both observed acuity and billing status were reported
    high   ⇔ both
    medium ⇔ exactly one
    low    ⇔ neither

``facility_confidence`` (High/Med/Low), attached to CanonicalFacility:
    High ⇔ census > 0 AND staffing data AND both acuity fields
    Med  ⇔ census > 0 AND staffing data
    Low  otherwise
"""

from __future__ import annotations

from facility_attention.domain.enums import Confidence, ConfidenceRating
from facility_attention.domain.facility import FacilitySnapshot


class ConfidenceEstimator:
    """Stateless completeness scorer."""

    @staticmethod
    def score_confidence(facility: FacilitySnapshot) -> Confidence:
        present = sum((facility.has_staffing_data, facility.acuity_reported))
        if present == 2:
            return Confidence.HIGH
        if present == 1:
            return Confidence.MEDIUM
        return Confidence.LOW

    @staticmethod
    def facility_confidence(facility: FacilitySnapshot) -> ConfidenceRating:
        if facility.census <= 0 or not facility.has_staffing_data:
            return ConfidenceRating.LOW
        if facility.acuity_reported:
            return ConfidenceRating.HIGH
        return ConfidenceRating.MED
