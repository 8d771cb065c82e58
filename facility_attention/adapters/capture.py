"""CaptureAdapter — translates browser-capture staffing payloads.

Expected raw format:
{
    "facility_id": "fac-12",            # or "unknown" / absent
    "facilityName": "Sunrise Gardens",
    "census": 42,
    "rn":  {"scheduled": 24, "actual": 18},
    "lpn": {"scheduled": 16, "actual": 16},
    "cna": {"scheduled": 64, "actual": 56},
    "staffing": {"budgeted": 24, "scheduled": 24, "actual": 20},   # older format
    "timestamp": "2026-02-13T14:00:00Z",  # or "captureTimestamp"
    "url": "https://ehr.example.com/facility/fac-12/staffing"
}

The adapter only maps fields.  Resolving a facility name against the
store's collection is done by the ingestion endpoint, which passes the
resolved id back in as ``facility_id``.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import BaseModel

from facility_attention.adapters.base import SnapshotAdapter
from facility_attention.domain.enums import StaffingRole

UNKNOWN_FACILITY_ID = "unknown"
CRITICAL_GAP_HOURS = 2.0

_FACILITY_URL_PATTERN = re.compile(r"facility[/=]([a-zA-Z0-9-]+)", re.IGNORECASE)
_STAFFING_KEYS = ("rn", "lpn", "cna", "staffing")


class CaptureObservation(BaseModel):
    """The capture layer's own binary critical flag.

    Independent of the attention score; the engine never consumes it.
    """

    is_critical: bool
    rn_gap: float
    cna_gap: float
    critical_reason: Optional[str] = None

    model_config = {"frozen": True}


def resolve_facility_id(payload: dict[str, Any]) -> str | None:
    """Explicit facility_id first, then an id embedded in the capture URL."""
    explicit = payload.get("facility_id")
    if explicit and str(explicit) != UNKNOWN_FACILITY_ID:
        return str(explicit)
    url = payload.get("url") or ""
    match = _FACILITY_URL_PATTERN.search(str(url))
    if match:
        return match.group(1)
    return None


def has_required_fields(payload: dict[str, Any]) -> bool:
    """An identifier and at least some staffing data must be present."""
    has_identifier = bool(payload.get("facilityName") or payload.get("facility_id"))
    has_staffing = payload.get("census") is not None or any(
        payload.get(key) for key in ("staffing", "rn", "cna")
    )
    return has_identifier and has_staffing


def compute_capture_observation(
    payload: dict[str, Any],
    threshold_hours: float = CRITICAL_GAP_HOURS,
) -> CaptureObservation:
    """Flag the capture critical when the RN or CNA gap exceeds *threshold_hours*."""
    rn = _section(payload, "rn")
    cna = _section(payload, "cna")
    staffing = _section(payload, "staffing")

    rn_gap = _hours(rn, "scheduled") - _hours(rn, "actual") if rn else 0.0
    cna_gap = _hours(cna, "scheduled") - _hours(cna, "actual") if cna else 0.0

    if rn_gap == 0 and staffing:
        planned = _hours(staffing, "scheduled") or _hours(staffing, "budgeted")
        rn_gap = planned - _hours(staffing, "actual")

    reasons = []
    if rn_gap > threshold_hours:
        reasons.append(f"RN gap of {rn_gap:.1f} hours")
    if cna_gap > threshold_hours:
        reasons.append(f"CNA gap of {cna_gap:.1f} hours")

    return CaptureObservation(
        is_critical=bool(reasons),
        rn_gap=rn_gap,
        cna_gap=cna_gap,
        critical_reason=", ".join(reasons) or None,
    )


def capture_timestamp(payload: dict[str, Any]) -> str | None:
    return payload.get("timestamp") or payload.get("captureTimestamp")


def overlay(existing: dict[str, Any] | None, update: dict[str, Any]) -> dict[str, Any]:
    """Lay *update* over *existing*, treating snake_case and camelCase keys as one."""
    replaced = {_fold(key) for key in update}
    merged = {
        key: value for key, value in (existing or {}).items()
        if _fold(key) not in replaced
    }
    merged.update(update)
    return merged


class CaptureAdapter(SnapshotAdapter):
    """Maps capture payloads to raw facility mappings (one record per role)."""

    @property
    def source_name(self) -> str:
        return "capture"

    def can_handle(self, raw: dict[str, Any]) -> bool:
        has_identifier = "facility_id" in raw or "facilityName" in raw
        return has_identifier and any(key in raw for key in (*_STAFFING_KEYS, "census"))

    def adapt(self, raw: dict[str, Any]) -> dict[str, Any]:
        # ── Resolve the facility ─────────────────────────────────────────
        facility_id = resolve_facility_id(raw)
        if not facility_id:
            raise ValueError(
                "capture payload has no usable 'facility_id' and no facility id in 'url'"
            )

        rn = _section(raw, "rn")
        lpn = _section(raw, "lpn")
        cna = _section(raw, "cna")
        staffing = _section(raw, "staffing")

        # ── Hours per role; RN falls back to the older staffing object ───
        hours = {
            StaffingRole.RN: (
                _hours(rn, "scheduled") or _hours(staffing, "scheduled") or _hours(staffing, "budgeted"),
                _hours(rn, "actual") or _hours(staffing, "actual"),
            ),
            StaffingRole.LPN: (_hours(lpn, "scheduled"), _hours(lpn, "actual")),
            StaffingRole.CNA: (_hours(cna, "scheduled"), _hours(cna, "actual")),
        }

        facility: dict[str, Any] = {
            "id": facility_id,
            "staffingDetails": {
                role.value.lower(): [{"role": role.value, "scheduled": scheduled, "actual": actual}]
                for role, (scheduled, actual) in hours.items()
            },
        }
        if raw.get("facilityName"):
            facility["name"] = str(raw["facilityName"])
        if raw.get("census") is not None:
            facility["census"] = _number(raw["census"], "census")
        return facility


# ── Helpers ──────────────────────────────────────────────────────────────────

def _fold(key: str) -> str:
    return key.replace("_", "").lower()


def _section(raw: dict[str, Any], key: str) -> dict[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"capture payload field '{key}' must be an object")
    return value


def _hours(section: dict[str, Any], key: str) -> float:
    return _number(section.get(key) or 0, key)


def _number(value: Any, field: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"capture payload field '{field}' is not a number: {value!r}") from exc
