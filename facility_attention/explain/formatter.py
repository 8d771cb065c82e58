"""BriefingFormatter — deterministic plain-text rendering of the briefing.

The formatter only lays out fields already present on each
CanonicalFacility.  It adds no claims of its own, so the narrative it
prints is exactly the safe-harbor filtered text the builder produced.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from facility_attention.domain.canonical import CanonicalFacility
from facility_attention.foundation.clock import hours_since, is_stale, utc_now


class BriefingFormatter:
    """Plain-text briefing for logs, e-mail digests and the text endpoint."""

    @staticmethod
    def format_plain(
        facilities: Sequence[CanonicalFacility],
        now: datetime | None = None,
        stale_threshold_hours: float = 4.0,
    ) -> str:
        now = now or utc_now()
        lines = [f"Attention briefing: {len(facilities)} facilit{'y' if len(facilities) == 1 else 'ies'}"]
        lines.append("=" * 50)

        if not facilities:
            lines.append("No facilities reported.")
            return "\n".join(lines)

        for index, facility in enumerate(facilities, start=1):
            lines.append("")
            lines.append(f"{index}. {facility.headline}")
            lines.append(f"   Intensity: {facility.intensity.value}")
            lines.append(f"   Confidence: {facility.confidence.value}")
            lines.append(f"   Last sync: {BriefingFormatter.sync_age(facility, now, stale_threshold_hours)}")
            lines.append(f"   {facility.observation}")
            lines.append(f"   {facility.state_observation}")
            if facility.revenue_delta > 0:
                lines.append(f"   Revenue at stake: ${facility.revenue_delta:,.0f}/day")

        return "\n".join(lines)

    @staticmethod
    def sync_age(
        facility: CanonicalFacility,
        now: datetime,
        stale_threshold_hours: float = 4.0,
    ) -> str:
        hours = hours_since(facility.sync_timestamp, now)
        label = "just now" if hours < 1 else f"{hours:.0f}h ago"
        if is_stale(facility.sync_timestamp, now, stale_threshold_hours):
            label += " (stale)"
        return label
