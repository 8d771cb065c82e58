"""FacilityAdapter — accepts payloads already shaped like a raw facility.

Expected raw format (camelCase or snake_case keys):
{
    "id": "fac-12",
    "name": "Sunrise Gardens",
    "census": 42,
    "staffingDetails": {"rn": [{"role": "RN", "scheduled": 24, "actual": 18}]},
    "revenueDetails": {"observedAcuity": "HIGH", "billingStatus": "STANDARD"},
    "defensibility": {"agencyCallsDocumented": true},
    "staffingTrend": [0.92, 0.88, 0.81]
}
"""

from __future__ import annotations

from typing import Any

from facility_attention.adapters.base import SnapshotAdapter
from facility_attention.core.normalize import parse_raw_facility

_FACILITY_KEYS = frozenset({
    "staffingDetails", "staffing_details",
    "revenueDetails", "revenue_details",
    "defensibility",
    "staffingTrend", "staffing_trend",
})


class FacilityAdapter(SnapshotAdapter):
    """Validates facility-shaped payloads and passes them through."""

    @property
    def source_name(self) -> str:
        return "facility"

    def can_handle(self, raw: dict[str, Any]) -> bool:
        return "id" in raw and not _FACILITY_KEYS.isdisjoint(raw)

    def adapt(self, raw: dict[str, Any]) -> dict[str, Any]:
        parsed = parse_raw_facility(raw)
        if not parsed.id:
            raise ValueError("facility payload has an empty 'id'")
        return parsed.model_dump(mode="json", by_alias=True, exclude_none=True)
