"""Tests for snapshot adapters, capture observations and the registry."""

from __future__ import annotations

import pytest

from facility_attention.adapters.capture import (
    CaptureAdapter,
    compute_capture_observation,
    has_required_fields,
    overlay,
    resolve_facility_id,
)
from facility_attention.adapters.facility import FacilityAdapter
from facility_attention.adapters.registry import (
    AdaptationError,
    AdapterRegistry,
    NoAdapterFoundError,
)
from facility_attention.core.normalize import normalize_facility
from facility_attention.domain.enums import StaffingRole

from tests.test_facility import _raw_facility


# ── Realistic Raw Payloads ───────────────────────────────────────────────────


def _capture_payload(**overrides) -> dict:
    base = {
        "facility_id": "fac-101",
        "facilityName": "Sunrise Gardens",
        "census": 40,
        "rn": {"scheduled": 24, "actual": 21},
        "lpn": {"scheduled": 16, "actual": 16},
        "cna": {"scheduled": 64, "actual": 63},
        "timestamp": "2026-03-02T08:00:00Z",
        "url": "https://ehr.example.com/facility/fac-101/staffing",
    }
    base.update(overrides)
    return base


def _build_registry() -> AdapterRegistry:
    reg = AdapterRegistry()
    reg.register(CaptureAdapter())
    reg.register(FacilityAdapter())
    return reg


# ── Capture observation ──────────────────────────────────────────────────────


class TestCaptureObservation:
    def test_rn_gap_over_two_hours_is_critical(self) -> None:
        obs = compute_capture_observation(_capture_payload())
        assert obs.is_critical is True
        assert obs.rn_gap == 3
        assert obs.cna_gap == 1
        assert obs.critical_reason == "RN gap of 3.0 hours"

    def test_exactly_two_hours_is_not_critical(self) -> None:
        obs = compute_capture_observation(_capture_payload(rn={"scheduled": 10, "actual": 8}))
        assert obs.is_critical is False
        assert obs.critical_reason is None

    def test_both_roles_listed(self) -> None:
        obs = compute_capture_observation(_capture_payload(cna={"scheduled": 64, "actual": 59.5}))
        assert obs.critical_reason == "RN gap of 3.0 hours, CNA gap of 4.5 hours"

    def test_staffing_object_fallback(self) -> None:
        payload = _capture_payload(staffing={"budgeted": 24, "actual": 20})
        del payload["rn"]
        obs = compute_capture_observation(payload)
        assert obs.rn_gap == 4
        assert obs.is_critical is True

    def test_threshold_configurable(self) -> None:
        assert compute_capture_observation(_capture_payload(), threshold_hours=5).is_critical is False

    def test_independent_of_ratio_thresholds(self) -> None:
        # 3h of 240h is a 1.25% gap: far below the engine's 15%, still critical here
        obs = compute_capture_observation(_capture_payload(rn={"scheduled": 240, "actual": 237}))
        assert obs.is_critical is True


# ── Facility id resolution ───────────────────────────────────────────────────


class TestResolveFacilityId:
    def test_explicit_id(self) -> None:
        assert resolve_facility_id(_capture_payload()) == "fac-101"

    def test_unknown_falls_back_to_url(self) -> None:
        payload = _capture_payload(facility_id="unknown", url="https://ehr.example.com/facility/fac-77/x")
        assert resolve_facility_id(payload) == "fac-77"

    def test_query_string_form(self) -> None:
        payload = _capture_payload(facility_id=None, url="https://ehr.example.com/view?FACILITY=abc-9")
        assert resolve_facility_id(payload) == "abc-9"

    def test_unresolvable(self) -> None:
        assert resolve_facility_id(_capture_payload(facility_id=None, url="https://ehr.example.com")) is None

    def test_required_fields(self) -> None:
        assert has_required_fields(_capture_payload()) is True
        assert has_required_fields({"facilityName": "X"}) is False
        assert has_required_fields({"census": 40}) is False
        assert has_required_fields({"facilityName": "X", "census": 0}) is True


# ── Capture adapter ──────────────────────────────────────────────────────────


class TestCaptureAdapter:
    def test_maps_one_record_per_role(self) -> None:
        facility = CaptureAdapter().adapt(_capture_payload())
        assert facility["id"] == "fac-101"
        assert facility["name"] == "Sunrise Gardens"
        assert facility["census"] == 40
        assert facility["staffingDetails"]["rn"] == [{"role": "RN", "scheduled": 24.0, "actual": 21.0}]

    def test_output_normalizes(self) -> None:
        snapshot = normalize_facility(CaptureAdapter().adapt(_capture_payload()))
        assert snapshot.records(StaffingRole.CNA)[0].gap == 1

    def test_rn_falls_back_to_staffing_object(self) -> None:
        payload = _capture_payload(staffing={"scheduled": 30, "budgeted": 28, "actual": 25})
        del payload["rn"]
        facility = CaptureAdapter().adapt(payload)
        assert facility["staffingDetails"]["rn"][0]["scheduled"] == 30
        assert facility["staffingDetails"]["rn"][0]["actual"] == 25

    def test_payload_not_mutated(self) -> None:
        payload = _capture_payload()
        snapshot = dict(payload)
        CaptureAdapter().adapt(payload)
        assert payload == snapshot

    def test_census_omitted_when_absent(self) -> None:
        payload = _capture_payload()
        del payload["census"]
        assert "census" not in CaptureAdapter().adapt(payload)


class TestOverlay:
    def test_snake_and_camel_keys_merge(self) -> None:
        existing = {
            "id": "fac-101",
            "name": "Sunrise Gardens",
            "staffing_details": {"rn": []},
            "revenueDetails": {"observedAcuity": "HIGH"},
        }
        merged = overlay(existing, {"id": "fac-101", "staffingDetails": {"rn": [{"scheduled": 8}]}})
        assert "staffing_details" not in merged
        assert merged["staffingDetails"] == {"rn": [{"scheduled": 8}]}
        assert merged["name"] == "Sunrise Gardens"
        assert merged["revenueDetails"] == {"observedAcuity": "HIGH"}

    def test_no_existing_record(self) -> None:
        assert overlay(None, {"id": "x"}) == {"id": "x"}


# ── Registry ─────────────────────────────────────────────────────────────────


class TestAdapterSelection:
    def test_capture_adapter_selected(self) -> None:
        reg = _build_registry()
        assert reg.select(_capture_payload()).source_name == "capture"

    def test_facility_adapter_selected(self) -> None:
        reg = _build_registry()
        facility = reg.adapt(_raw_facility())
        assert facility["id"] == "fac-101"
        assert facility["staffingDetails"]["rn"][0]["scheduled"] == 24

    def test_no_adapter_raises(self) -> None:
        with pytest.raises(NoAdapterFoundError):
            _build_registry().adapt({"source_type": "unknown_thing"})

    def test_empty_registry_raises(self) -> None:
        with pytest.raises(NoAdapterFoundError):
            AdapterRegistry().adapt(_capture_payload())


class TestPayloadRejection:
    def test_capture_without_resolvable_id(self) -> None:
        reg = _build_registry()
        with pytest.raises(AdaptationError) as exc_info:
            reg.adapt(_capture_payload(facility_id="unknown", url=""))
        assert exc_info.value.adapter_name == "capture"

    def test_capture_non_numeric_hours(self) -> None:
        reg = _build_registry()
        with pytest.raises(AdaptationError):
            reg.adapt(_capture_payload(rn={"scheduled": "lots", "actual": 3}))

    def test_capture_section_not_an_object(self) -> None:
        with pytest.raises(AdaptationError):
            _build_registry().adapt(_capture_payload(cna=[64, 60]))

    def test_facility_invalid_acuity(self) -> None:
        reg = _build_registry()
        with pytest.raises(AdaptationError) as exc_info:
            reg.adapt(_raw_facility(revenueDetails={"observedAcuity": "EXTREME"}))
        assert exc_info.value.adapter_name == "facility"

    def test_facility_empty_id(self) -> None:
        with pytest.raises(AdaptationError):
            _build_registry().adapt(_raw_facility(id=""))


class TestRegistryStats:
    def test_stats_track_accept_and_reject(self) -> None:
        reg = _build_registry()
        reg.adapt(_capture_payload())
        reg.adapt(_raw_facility())
        with pytest.raises(AdaptationError):
            reg.adapt(_capture_payload(facility_id=None, url=None))
        assert reg.total_accepted == 2
        assert reg.total_rejected == 1
        by_name = {s["adapter_name"]: s for s in reg.stats}
        assert by_name["capture"] == {"adapter_name": "capture", "accepted_count": 1, "rejected_count": 1}

    def test_adapter_names_in_registration_order(self) -> None:
        assert _build_registry().adapter_names == ["capture", "facility"]
