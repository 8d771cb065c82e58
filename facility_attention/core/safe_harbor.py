"""SafeHarborFilter — removes legally risky vocabulary from generated text.

Every narrative string the engine emits passes through ``apply``.  The
substitution is global and case-insensitive, and it matches inside words
as well ("terrors" becomes "tOperational Drifts"): no output may contain a
forbidden term even as a substring.  Replacements always use the table's
canonical casing.

None of the replacement phrases contains a forbidden term, so the filter
is idempotent.
"""

from __future__ import annotations

import re

SAFE_HARBOR_REPLACEMENTS: dict[str, str] = {
    "negligence": "Attention Priority",
    "error": "Operational Drift",
    "fault": "Documentation Gap",
    "failure": "Operational Drift",
    "mistake": "Documentation Gap",
    "blame": "Attention Priority",
    "wrong": "Operational Drift",
}

FORBIDDEN_TERMS: frozenset[str] = frozenset(SAFE_HARBOR_REPLACEMENTS)

# Longest first so no term is shadowed by a shorter alternative
_PATTERN = re.compile(
    "|".join(re.escape(t) for t in sorted(SAFE_HARBOR_REPLACEMENTS, key=len, reverse=True)),
    re.IGNORECASE,
)


class SafeHarborFilter:
    """Stateless text sanitizer."""

    @staticmethod
    def apply(text: str) -> str:
        if not text:
            return text
        return _PATTERN.sub(lambda m: SAFE_HARBOR_REPLACEMENTS[m.group(0).lower()], text)

    @staticmethod
    def violations(text: str) -> list[str]:
        """Forbidden terms present in *text* (case-insensitive, substring match)."""
        lowered = (text or "").lower()
        return sorted(t for t in FORBIDDEN_TERMS if t in lowered)

    @classmethod
    def is_compliant(cls, text: str) -> bool:
        return not cls.violations(text)


def apply_safe_harbor_filter(text: str) -> str:
    """Module-level shortcut for ``SafeHarborFilter.apply``."""
    return SafeHarborFilter.apply(text)
