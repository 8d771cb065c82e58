"""JSON views shared by the REST and WebSocket surfaces."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from facility_attention.domain.canonical import CanonicalFacility
from facility_attention.foundation.clock import is_stale


def facility_view(
    facility: CanonicalFacility,
    now: datetime,
    stale_threshold_hours: float,
    include_raw: bool = False,
) -> dict[str, Any]:
    """camelCase JSON view of one facility plus its ``stale`` flag."""
    if include_raw:
        view = facility.model_dump(mode="json", by_alias=True)
    else:
        view = facility.public_dict()
    view["stale"] = is_stale(facility.sync_timestamp, now, stale_threshold_hours)
    return view


def briefing_view(
    facilities: Iterable[CanonicalFacility],
    now: datetime,
    stale_threshold_hours: float,
) -> list[dict[str, Any]]:
    return [facility_view(f, now, stale_threshold_hours) for f in facilities]
