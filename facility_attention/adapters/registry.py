"""Adapter Registry — selects the snapshot adapter for an incoming payload.

Adapters are tried in registration order; the first whose can_handle()
returns True translates the payload.  Nothing matches → fail fast.
"""

from __future__ import annotations

import logging
from typing import Any

from facility_attention.adapters.base import SnapshotAdapter

logger = logging.getLogger(__name__)


class AdapterStats:
    """Per-adapter ingestion statistics for observability."""

    __slots__ = ("adapter_name", "accepted_count", "rejected_count")

    def __init__(self, adapter_name: str) -> None:
        self.adapter_name = adapter_name
        self.accepted_count: int = 0
        self.rejected_count: int = 0

    def to_dict(self) -> dict:
        return {
            "adapter_name": self.adapter_name,
            "accepted_count": self.accepted_count,
            "rejected_count": self.rejected_count,
        }


class NoAdapterFoundError(Exception):
    """Raised when no registered adapter can handle a payload."""


class AdaptationError(Exception):
    """Raised when a matched adapter fails to translate the payload."""

    def __init__(self, adapter_name: str, reason: str) -> None:
        self.adapter_name = adapter_name
        self.reason = reason
        super().__init__(f"Adapter '{adapter_name}' failed: {reason}")


class AdapterRegistry:
    """Ordered adapter list with selection and stats tracking.

    Usage:
        registry = AdapterRegistry()
        registry.register(CaptureAdapter())
        registry.register(FacilityAdapter())

        facility = registry.adapt(payload)
    """

    def __init__(self) -> None:
        self._adapters: list[SnapshotAdapter] = []
        self._stats: dict[str, AdapterStats] = {}

    def register(self, adapter: SnapshotAdapter) -> None:
        self._adapters.append(adapter)
        self._stats[adapter.source_name] = AdapterStats(adapter.source_name)
        logger.info("Registered adapter: %s", adapter.source_name)

    def select(self, raw: dict[str, Any]) -> SnapshotAdapter:
        """The first adapter that can handle *raw*.

        Raises:
            NoAdapterFoundError: If no adapter's can_handle() returns True.
        """
        for adapter in self._adapters:
            if adapter.can_handle(raw):
                return adapter
        raise NoAdapterFoundError(
            f"No adapter can handle payload with keys: {sorted(raw.keys())}"
        )

    def adapt(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Route a payload through the first matching adapter.

        Returns:
            A raw facility mapping carrying an ``id``.

        Raises:
            NoAdapterFoundError: If no adapter's can_handle() returns True.
            AdaptationError: If the matched adapter fails to translate.
        """
        adapter = self.select(raw)
        stats = self._stats[adapter.source_name]
        try:
            facility = adapter.adapt(raw)
        except ValueError as exc:
            stats.rejected_count += 1
            logger.warning("Adapter '%s' rejected payload: %s", adapter.source_name, exc)
            raise AdaptationError(adapter.source_name, str(exc)) from exc

        stats.accepted_count += 1
        logger.debug(
            "Adapter '%s' accepted payload → facility %s",
            adapter.source_name,
            facility.get("id"),
        )
        return facility

    @property
    def adapter_names(self) -> list[str]:
        return [a.source_name for a in self._adapters]

    @property
    def stats(self) -> list[dict]:
        return [s.to_dict() for s in self._stats.values()]

    @property
    def total_accepted(self) -> int:
        return sum(s.accepted_count for s in self._stats.values())

    @property
    def total_rejected(self) -> int:
        return sum(s.rejected_count for s in self._stats.values())
