"""Shared dataclasses and lightweight types used across modules."""

from dataclasses import dataclass
from typing import Optional

from locator.domain import Coordinate


@dataclass(frozen=True)
class PositionFix:
    """Raw reading from a positioning sensor, before it is tagged with a tier."""
    latitude: float
    longitude: float
    accuracy_radius_meters: Optional[float] = None


@dataclass(frozen=True)
class CachedLocation:
    """Coordinate with the epoch-millisecond timestamp it was acquired."""
    coordinate: Coordinate
    acquired_at_epoch_millis: int

    def age_millis(self, now_epoch_millis: int) -> int:
        return now_epoch_millis - self.acquired_at_epoch_millis

    def is_fresh(self, now_epoch_millis: int, window_seconds: float) -> bool:
        """Return True while the entry is younger than the freshness window."""
        return self.age_millis(now_epoch_millis) < window_seconds * 1000
