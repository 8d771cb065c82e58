"""Normalization — the single place where missing telemetry is defaulted.

``normalize_facility`` turns whatever the data source supplied into a
``FacilitySnapshot``:

    - absent numeric fields       → 0
    - negative hours               → 0
    - absent acuity fields         → STANDARD (``acuity_reported`` records presence)
    - absent defensibility flags   → False
    - null trend points            → 0 (positions in the series are kept)
    - absent census                → 0, with ``estimated_census`` derived from
                                     CNA scheduled hours for revenue pricing

Structurally malformed input (a list where a mapping belongs, an unknown
acuity code, a non-numeric hour count) is NOT defaulted: it raises, and the
CanonicalFacilityBuilder converts that into its fallback record.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from facility_attention.domain.canonical import UNKNOWN_FACILITY_NAME
from facility_attention.domain.enums import AcuityLevel, StaffingRole
from facility_attention.domain.facility import (
    Defensibility,
    FacilitySnapshot,
    RawFacility,
    RawStaffingRecord,
    StaffingRecord,
)

DEFAULT_CNA_HOURS_PER_RESIDENT = 1.8


class FacilityNormalizationError(ValueError):
    """Raised when a raw facility cannot be read at all."""

    def __init__(self, facility_id: str | None, reason: str) -> None:
        self.facility_id = facility_id
        self.reason = reason
        super().__init__(f"Facility '{facility_id or 'unknown'}' is malformed: {reason}")


def parse_raw_facility(raw: RawFacility | Mapping[str, Any]) -> RawFacility:
    """Validate *raw* into a RawFacility.

    Raises:
        FacilityNormalizationError: If *raw* is not a mapping or fails validation.
    """
    if isinstance(raw, RawFacility):
        return raw
    if not isinstance(raw, Mapping):
        raise FacilityNormalizationError(None, f"expected a mapping, got {type(raw).__name__}")
    try:
        return RawFacility.model_validate(dict(raw))
    except ValidationError as exc:
        raise FacilityNormalizationError(
            _peek_id(raw), f"{exc.error_count()} invalid field(s)"
        ) from exc


def normalize_facility(
    raw: RawFacility | Mapping[str, Any],
    cna_hours_per_resident: float = DEFAULT_CNA_HOURS_PER_RESIDENT,
) -> FacilitySnapshot:
    """Produce a fully-defaulted snapshot from raw facility telemetry."""
    parsed = parse_raw_facility(raw)

    details = parsed.staffing_details
    staffing: dict[StaffingRole, tuple[StaffingRecord, ...]] = {
        StaffingRole.RN: _records(StaffingRole.RN, details.rn if details else None),
        StaffingRole.LPN: _records(StaffingRole.LPN, details.lpn if details else None),
        StaffingRole.CNA: _records(StaffingRole.CNA, details.cna if details else None),
    }

    revenue = parsed.revenue_details
    observed = revenue.observed_acuity if revenue else None
    billing = revenue.billing_status if revenue else None

    flags = parsed.defensibility
    defensibility = Defensibility(
        agency_calls_documented=bool(flags and flags.agency_calls_documented),
        float_pool_offered=bool(flags and flags.float_pool_offered),
        don_notified=bool(flags and flags.don_notified),
        last_memo_date=flags.last_memo_date if flags else None,
    )

    census = max(0.0, parsed.census or 0.0)

    return FacilitySnapshot(
        id=parsed.id or "",
        name=parsed.name or UNKNOWN_FACILITY_NAME,
        census=census,
        estimated_census=census or _estimate_census(
            staffing[StaffingRole.CNA], cna_hours_per_resident,
        ),
        staffing=staffing,
        alerts=tuple(details.alerts or ()) if details else (),
        observed_acuity=observed or AcuityLevel.STANDARD,
        billing_status=billing or AcuityLevel.STANDARD,
        acuity_reported=observed is not None and billing is not None,
        defensibility=defensibility,
        staffing_trend=tuple(p if p is not None else 0.0 for p in (parsed.staffing_trend or ())),
        reported_incidents=tuple(parsed.incident_signals or ()),
    )


# ── Helpers ──────────────────────────────────────────────────────────────────

def _records(
    role: StaffingRole,
    raw_records: list[RawStaffingRecord] | None,
) -> tuple[StaffingRecord, ...]:
    if not raw_records:
        return ()
    return tuple(
        StaffingRecord(
            role=role,
            scheduled=max(0.0, r.scheduled or 0.0),
            actual=max(0.0, r.actual or 0.0),
            period=r.period,
            shift=r.shift,
        )
        for r in raw_records
    )


def _estimate_census(cna_records: tuple[StaffingRecord, ...], hours_per_resident: float) -> float:
    """Census implied by CNA scheduled hours (hours_per_resident per resident-day)."""
    if hours_per_resident <= 0:
        return 0.0
    scheduled = sum(r.scheduled for r in cna_records)
    return float(round(scheduled / hours_per_resident))


def _peek_id(raw: Mapping[str, Any]) -> str | None:
    value = raw.get("id")
    return str(value) if value is not None else None
