"""Interfaces for on-device positioning sensors."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Hashable, Protocol

from locator.app_types import PositionFix
from locator.errors import PositioningError, PositioningUnsupportedError


class DesiredAccuracy(str, Enum):
    PRECISE = "precise"
    APPROXIMATE = "approximate"


FixCallback = Callable[[PositionFix], None]
ErrorCallback = Callable[[PositioningError], None]


class PositionSource(Protocol):
    """Interface for a sensor driver that can report the device position.

    One-shot reads raise a PositioningError subclass on failure. Watches report
    through callbacks, possibly from another thread.
    """

    async def get_position(
        self,
        accuracy: DesiredAccuracy,
        *,
        timeout_ms: int,
        maximum_age_ms: int = 0,
    ) -> PositionFix:
        """Return one fix at the requested accuracy."""
        ...

    def watch_position(
        self,
        on_fix: FixCallback,
        on_error: ErrorCallback,
        *,
        accuracy: DesiredAccuracy = DesiredAccuracy.APPROXIMATE,
        timeout_ms: int = 10_000,
        maximum_age_ms: int = 60_000,
    ) -> Hashable:
        """Start a continuous subscription and return its watch id."""
        ...

    def clear_watch(self, watch_id: Hashable) -> None:
        """Stop a subscription; unknown ids are ignored."""
        ...


class UnsupportedPositionSource:
    """Position source for hosts without a positioning sensor (e.g. servers)."""

    async def get_position(self, accuracy, *, timeout_ms, maximum_age_ms=0) -> PositionFix:
        raise PositioningUnsupportedError("Geolocation not supported", source="device")

    def watch_position(self, on_fix, on_error, **_options) -> Hashable:
        raise PositioningUnsupportedError("Geolocation not supported", source="device")

    def clear_watch(self, watch_id: Hashable) -> None:
        return None
