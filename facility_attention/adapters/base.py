"""Abstract base for snapshot adapters.

Snapshot adapters normalise payloads from heterogeneous upstream sources
(browser capture, bulk facility exports) into the raw facility mapping the
BriefingStore holds.

Architectural rules:
    1. Adapters must NOT mutate the incoming payload dict.
    2. adapt() must return a raw facility mapping with an ``id`` or raise ValueError.
    3. No adapter may call the BriefingStore directly.
    4. No scoring logic lives inside an adapter, only field mapping.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class SnapshotAdapter(ABC):
    """Base class for converting upstream payloads into raw facility mappings."""

    @abstractmethod
    def can_handle(self, raw: dict[str, Any]) -> bool:
        """Return True if this adapter knows how to translate *raw*.

        Must be a fast, non-destructive check (e.g. key presence).
        """
        ...

    @abstractmethod
    def adapt(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Translate a payload dict into a raw facility mapping.

        The input dict must NOT be mutated.

        Raises:
            ValueError: If the payload cannot be normalised.
        """
        ...

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Human-readable name of the upstream source this adapter handles."""
        ...
