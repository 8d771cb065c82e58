"""Facility models — the raw telemetry contract and its normalized form.

``RawFacility`` mirrors what the data-fetch collaborator hands us.  Every
field is optional because the upstream DOM scraper routinely omits parts of
the payload.  Keys may arrive in camelCase (``staffingDetails``) or
snake_case (``staffing_details``).

``FacilitySnapshot`` is the fully-defaulted, immutable structure produced by
``core.normalize``.  Downstream rules only ever see a snapshot, so none of
them re-implement null handling.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from facility_attention.domain.enums import AcuityLevel, Shift, StaffingRole

_RAW_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
    "extra": "ignore",
}


# ── Raw input ────────────────────────────────────────────────────────────────

class RawStaffingRecord(BaseModel):
    role: Optional[StaffingRole] = None
    scheduled: Optional[float] = None
    actual: Optional[float] = None
    period: Optional[datetime] = None
    shift: Optional[Shift] = None

    model_config = _RAW_CONFIG


class RawStaffingDetails(BaseModel):
    rn: Optional[list[RawStaffingRecord]] = None
    lpn: Optional[list[RawStaffingRecord]] = None
    cna: Optional[list[RawStaffingRecord]] = None
    alerts: Optional[list[str]] = None

    model_config = _RAW_CONFIG


class RawRevenueDetails(BaseModel):
    observed_acuity: Optional[AcuityLevel] = None
    billing_status: Optional[AcuityLevel] = None
    daily_mismatch: Optional[float] = None

    model_config = _RAW_CONFIG

    @field_validator("observed_acuity", "billing_status", mode="before")
    @classmethod
    def acuity_case_insensitive(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper() or None
        return v


class RawDefensibility(BaseModel):
    agency_calls_documented: Optional[bool] = None
    float_pool_offered: Optional[bool] = None
    don_notified: Optional[bool] = None
    last_memo_date: Optional[str] = None

    model_config = _RAW_CONFIG


class ReportedIncident(BaseModel):
    """An incident the source system itself reported (not one we detected)."""

    type: str = ""
    description: str = ""

    model_config = {"frozen": True, **_RAW_CONFIG}


class RawFacility(BaseModel):
    """A facility snapshot exactly as supplied by the data source."""

    id: Optional[str] = None
    name: Optional[str] = None
    census: Optional[float] = None
    staffing_details: Optional[RawStaffingDetails] = None
    revenue_details: Optional[RawRevenueDetails] = None
    defensibility: Optional[RawDefensibility] = None
    staffing_trend: Optional[list[Optional[float]]] = None
    incident_signals: Optional[list[ReportedIncident]] = None

    model_config = _RAW_CONFIG

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, v: Any) -> Any:
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


# ── Normalized form ──────────────────────────────────────────────────────────

class StaffingRecord(BaseModel):
    """Scheduled vs actual hours for one role over one period."""

    role: StaffingRole
    scheduled: float = Field(0.0, ge=0.0)
    actual: float = Field(0.0, ge=0.0)
    period: Optional[datetime] = None
    shift: Optional[Shift] = None

    model_config = {"frozen": True}

    @property
    def gap(self) -> float:
        """Hours below schedule; never negative."""
        return max(0.0, self.scheduled - self.actual)


class Defensibility(BaseModel):
    """Documented mitigation actions for the current staffing window."""

    agency_calls_documented: bool = False
    float_pool_offered: bool = False
    don_notified: bool = False
    last_memo_date: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def documented_count(self) -> int:
        return sum((
            self.agency_calls_documented,
            self.float_pool_offered,
            self.don_notified,
        ))


class FacilitySnapshot(BaseModel):
    """Fully-defaulted, read-only view of one facility."""

    id: str
    name: str
    census: float = 0.0
    estimated_census: float = 0.0
    staffing: dict[StaffingRole, tuple[StaffingRecord, ...]] = Field(default_factory=dict)
    alerts: tuple[str, ...] = ()
    observed_acuity: AcuityLevel = AcuityLevel.STANDARD
    billing_status: AcuityLevel = AcuityLevel.STANDARD
    acuity_reported: bool = False
    defensibility: Defensibility = Field(default_factory=Defensibility)
    staffing_trend: tuple[float, ...] = ()
    reported_incidents: tuple[ReportedIncident, ...] = ()

    model_config = {"frozen": True}

    def records(self, role: StaffingRole) -> tuple[StaffingRecord, ...]:
        return self.staffing.get(role, ())

    @property
    def all_records(self) -> list[StaffingRecord]:
        """Every staffing record, in RN, LPN, CNA order."""
        return [r for role in StaffingRole for r in self.records(role)]

    @property
    def has_staffing_data(self) -> bool:
        return any(self.records(role) for role in StaffingRole)
