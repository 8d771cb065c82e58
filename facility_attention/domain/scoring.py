"""Scoring outputs — attention score and revenue estimation results.

All three models are pure observations derived from one facility snapshot.
They are frozen once produced.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from facility_attention.domain.enums import (
    AcuityLevel,
    Confidence,
    LeakageSeverity,
    SignalCategory,
)
from facility_attention.domain.signal import IncidentSignal

_OUTPUT_CONFIG = {
    "frozen": True,
    "alias_generator": to_camel,
    "populate_by_name": True,
}


class AttentionScoreResult(BaseModel):
    score: int = Field(..., ge=0, le=100)
    confidence: Confidence
    stress_signals: list[IncidentSignal] = Field(default_factory=list)
    primary_signal: str = Field(..., description="Description of the highest-severity signal")
    stress_category: SignalCategory

    model_config = _OUTPUT_CONFIG


class RevenueLeakResult(BaseModel):
    """Gap-threshold estimate of uncaptured daily revenue (Model A)."""

    detected: bool
    daily_opportunity: float = Field(0.0, ge=0.0)
    staffing_gap_percentage: float = 0.0
    description: str

    model_config = _OUTPUT_CONFIG


class RevenueLeakageAlert(BaseModel):
    """Acuity/billing mismatch alert with tiered daily leakage (Model B)."""

    room_number: str
    daily_leakage: float = Field(..., ge=0.0)
    alert_message: str
    observed_acuity: AcuityLevel
    billing_status: AcuityLevel
    severity: LeakageSeverity

    model_config = _OUTPUT_CONFIG
