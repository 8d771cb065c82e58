"""Tests for the SignalDetector rules and their pure helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from facility_attention.core.detector import (
    DetectorThresholds,
    SignalDetector,
    acuity_mismatch,
    staffing_gap_ratio,
    trend_slope,
)
from facility_attention.core.normalize import normalize_facility
from facility_attention.core.safe_harbor import SafeHarborFilter
from facility_attention.domain.enums import AcuityLevel, SignalCategory, StaffingRole
from facility_attention.domain.facility import FacilitySnapshot, StaffingRecord

from tests.test_facility import _raw_facility, _staffing

_FIXED_NOW = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


def _snapshot(**overrides) -> FacilitySnapshot:
    return normalize_facility(_raw_facility(**overrides))


def _detect(**overrides):
    return SignalDetector().detect(_snapshot(**overrides))


class TestPureHelpers:
    def test_gap_ratio_of_no_records_is_zero(self) -> None:
        assert staffing_gap_ratio([]) == 0.0

    def test_gap_ratio_of_zero_scheduled_is_zero(self) -> None:
        assert staffing_gap_ratio([StaffingRecord(role=StaffingRole.RN, scheduled=0, actual=0)]) == 0.0

    def test_gap_ratio_ignores_overstaffed_records(self) -> None:
        records = [
            StaffingRecord(role=StaffingRole.RN, scheduled=10, actual=5),
            StaffingRecord(role=StaffingRole.RN, scheduled=10, actual=15),
        ]
        assert staffing_gap_ratio(records) == pytest.approx(0.25)

    def test_acuity_mismatch_normalized(self) -> None:
        assert acuity_mismatch(AcuityLevel.CRITICAL, AcuityLevel.LOW) == pytest.approx(1.0)
        assert acuity_mismatch(AcuityLevel.LOW, AcuityLevel.CRITICAL) == 0.0

    def test_trend_slope_needs_three_points(self) -> None:
        assert trend_slope([0.9, 0.8]) is None

    def test_trend_slope_uses_last_three_points(self) -> None:
        assert trend_slope([0.1, 0.9, 0.8, 0.6]) == pytest.approx((0.6 - 0.9) / 3)


class TestStaffingRule:
    def test_rn_half_staffed_fires_at_full_severity(self) -> None:
        signals = _detect(staffingDetails=_staffing(rn=[(24, 12)] * 3))
        assert len(signals) == 1
        assert signals[0].type == SignalCategory.STAFFING
        assert signals[0].severity == 100
        assert signals[0].metadata["role"] == "RN"

    def test_gap_at_threshold_does_not_fire(self) -> None:
        assert _detect(staffingDetails=_staffing(rn=[(100, 85)])) == []

    def test_role_multipliers_differ(self) -> None:
        signals = _detect(staffingDetails=_staffing(rn=[(20, 16)], lpn=[(20, 16)], cna=[(20, 16)]))
        severities = [s.severity for s in signals]
        assert severities == [pytest.approx(40), pytest.approx(36), pytest.approx(30)]

    def test_each_role_evaluated_independently(self) -> None:
        signals = _detect(staffingDetails=_staffing(rn=[(24, 24)], cna=[(64, 40)]))
        assert [s.metadata["role"] for s in signals] == ["CNA"]

    def test_custom_threshold(self) -> None:
        detector = SignalDetector(DetectorThresholds(staffing_gap=0.6))
        snapshot = _snapshot(staffingDetails=_staffing(rn=[(24, 12)]))
        assert detector.detect(snapshot) == []


class TestAcuityRule:
    def test_two_rank_gap(self) -> None:
        signals = _detect(revenueDetails={"observedAcuity": "CRITICAL", "billingStatus": "STANDARD"})
        assert len(signals) == 1
        assert signals[0].type == SignalCategory.ACUITY
        assert signals[0].severity == pytest.approx(200 / 3)

    def test_one_rank_gap_fires(self) -> None:
        signals = _detect(revenueDetails={"observedAcuity": "HIGH", "billingStatus": "STANDARD"})
        assert signals[0].severity == pytest.approx(100 / 3)

    def test_billing_above_observed_does_not_fire(self) -> None:
        assert _detect(revenueDetails={"observedAcuity": "LOW", "billingStatus": "HIGH"}) == []

    def test_severity_monotonic_in_rank_gap(self) -> None:
        severities = []
        for observed in ("STANDARD", "HIGH", "CRITICAL"):
            signals = _detect(revenueDetails={"observedAcuity": observed, "billingStatus": "LOW"})
            severities.append(signals[0].severity)
        assert severities == sorted(severities)


class TestCommunicationRule:
    def test_no_documented_actions_fires(self) -> None:
        signals = _detect(defensibility={})
        assert len(signals) == 1
        assert signals[0].type == SignalCategory.COMMUNICATION
        assert signals[0].severity == 40

    def test_any_documented_action_suppresses(self) -> None:
        assert _detect(defensibility={"donNotified": True}) == []


class TestTrendRule:
    def test_declining_trend_fires_as_staffing(self) -> None:
        signals = _detect(staffingTrend=[0.9, 0.8, 0.7, 0.6])
        assert len(signals) == 1
        assert signals[0].type == SignalCategory.STAFFING
        assert signals[0].severity == pytest.approx(0.2 / 3 * 200)
        assert signals[0].id.startswith("trend-fac-101-")

    def test_mild_decline_ignored(self) -> None:
        assert _detect(staffingTrend=[0.9, 0.89, 0.88]) == []

    def test_short_trend_ignored(self) -> None:
        assert _detect(staffingTrend=[0.9, 0.1]) == []

    def test_null_point_keeps_its_place_in_the_window(self) -> None:
        signals = _detect(staffingTrend=[0.7, 0.7, 0.7, None])
        assert len(signals) == 1
        assert signals[0].severity == pytest.approx(0.7 / 3 * 200)


class TestDetectorOutput:
    def test_evaluation_order(self) -> None:
        signals = _detect(
            staffingDetails=_staffing(rn=[(24, 12)]),
            revenueDetails={"observedAcuity": "HIGH", "billingStatus": "LOW"},
            defensibility={},
            staffingTrend=[0.9, 0.8, 0.7],
        )
        assert [s.type for s in signals] == [
            SignalCategory.STAFFING,
            SignalCategory.ACUITY,
            SignalCategory.COMMUNICATION,
            SignalCategory.STAFFING,
        ]

    def test_descriptions_are_safe_harbor_compliant(self) -> None:
        signals = _detect(
            staffingDetails=_staffing(rn=[(24, 12)], lpn=[(16, 8)], cna=[(64, 32)]),
            revenueDetails={"observedAcuity": "CRITICAL", "billingStatus": "LOW"},
            defensibility={},
            staffingTrend=[0.9, 0.5, 0.1],
        )
        assert all(SafeHarborFilter.is_compliant(s.description) for s in signals)

    def test_severity_capped_at_100(self) -> None:
        signals = _detect(staffingTrend=[1.0, 0.0, -5.0])
        assert signals[0].severity == 100

    def test_signal_ids_are_deterministic(self) -> None:
        with patch("facility_attention.core.detector.utc_now", return_value=_FIXED_NOW):
            signals = _detect(staffingDetails=_staffing(rn=[(24, 12)]))
        millis = int(_FIXED_NOW.timestamp() * 1000)
        assert signals[0].id == f"staffing-rn-fac-101-{millis}"
        assert signals[0].detected_at == _FIXED_NOW

    def test_calm_facility_has_no_signals(self) -> None:
        assert _detect() == []
