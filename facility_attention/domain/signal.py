"""IncidentSignal — one typed stress indicator detected for a facility.

A signal is created transiently on every evaluation; the engine never
persists it.  The description has already passed the safe-harbor filter
by the time a signal exists.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel

from facility_attention.domain.enums import SignalCategory


class IncidentSignal(BaseModel):
    """Immutable stress signal produced by the SignalDetector."""

    id: str = Field(..., min_length=1)
    type: SignalCategory
    description: str = Field(..., description="Safe-harbor-filtered text")
    severity: float = Field(..., ge=0.0, le=100.0)
    detected_at: datetime
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }
