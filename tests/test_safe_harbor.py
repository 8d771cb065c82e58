"""Tests for the safe-harbor vocabulary filter."""

from __future__ import annotations

from facility_attention.core.safe_harbor import (
    FORBIDDEN_TERMS,
    SAFE_HARBOR_REPLACEMENTS,
    SafeHarborFilter,
    apply_safe_harbor_filter,
)


class TestSafeHarborReplacement:
    def test_single_term_replaced(self) -> None:
        assert SafeHarborFilter.apply("A charting error was found") == (
            "A charting Operational Drift was found"
        )

    def test_replacement_is_case_insensitive(self) -> None:
        assert SafeHarborFilter.apply("NEGLIGENCE and Blame") == (
            "Attention Priority and Attention Priority"
        )

    def test_every_occurrence_replaced(self) -> None:
        assert SafeHarborFilter.apply("fault, fault, mistake") == (
            "Documentation Gap, Documentation Gap, Documentation Gap"
        )

    def test_substrings_inside_words_replaced(self) -> None:
        assert SafeHarborFilter.apply("terrors") == "tOperational Drifts"

    def test_failure_uses_its_own_replacement(self) -> None:
        assert SafeHarborFilter.apply("system failure") == "system Operational Drift"

    def test_clean_text_untouched(self) -> None:
        text = "Observation: Staffing levels align with scheduled requirements."
        assert SafeHarborFilter.apply(text) == text

    def test_empty_text(self) -> None:
        assert SafeHarborFilter.apply("") == ""

    def test_module_shortcut(self) -> None:
        assert apply_safe_harbor_filter("wrong") == "Operational Drift"


class TestSafeHarborProperties:
    def test_all_terms_removed(self) -> None:
        text = " ".join(term.upper() for term in SAFE_HARBOR_REPLACEMENTS)
        filtered = SafeHarborFilter.apply(text)
        assert SafeHarborFilter.is_compliant(filtered)

    def test_idempotent(self) -> None:
        text = "Negligence, error, FAULT, failure, mistake, blame and wrongdoing"
        once = SafeHarborFilter.apply(text)
        assert SafeHarborFilter.apply(once) == once

    def test_replacements_contain_no_forbidden_term(self) -> None:
        for replacement in SAFE_HARBOR_REPLACEMENTS.values():
            assert SafeHarborFilter.is_compliant(replacement)

    def test_seven_forbidden_terms(self) -> None:
        assert len(FORBIDDEN_TERMS) == 7

    def test_violations_listed(self) -> None:
        assert SafeHarborFilter.violations("No blame and no Fault") == ["blame", "fault"]

    def test_violations_empty_for_compliant_text(self) -> None:
        assert SafeHarborFilter.violations("All clear") == []
