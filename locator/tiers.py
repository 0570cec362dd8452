"""Location acquisition strategies, one per tier of the resolver chain.

Each tier exposes the same contract: a `name`, a `timeout_seconds` (None means
the attempt is not raced against a timer), a `cacheable` flag, and an async
`attempt()` that returns a Coordinate or raises.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Optional, Protocol

from .app_types import PositionFix
from .domain import AccuracySource, Coordinate
from .geo import fallback_coordinate
from .positioning.base import DesiredAccuracy, PositionSource
from .positioning.ip_geolocation import IpLocation, fetch_ip_location


class LocationTier(Protocol):
    name: str
    timeout_seconds: Optional[float]
    cacheable: bool
    always_succeeds: bool

    async def attempt(self) -> Coordinate:
        ...


class DevicePositionTier:
    """One-shot read from the on-device sensor at a given accuracy."""
    cacheable = True
    always_succeeds = False

    _TAGS = {
        DesiredAccuracy.PRECISE: AccuracySource.PRECISE,
        DesiredAccuracy.APPROXIMATE: AccuracySource.APPROXIMATE,
    }

    def __init__(
        self,
        source: PositionSource,
        accuracy: DesiredAccuracy,
        *,
        timeout_seconds: float,
        maximum_age_seconds: float,
    ) -> None:
        self.source = source
        self.accuracy = accuracy
        self.timeout_seconds = timeout_seconds
        self.maximum_age_seconds = maximum_age_seconds
        self.name = f"{accuracy.value}_device"

    async def attempt(self) -> Coordinate:
        fix: PositionFix = await self.source.get_position(
            self.accuracy,
            timeout_ms=int(self.timeout_seconds * 1000),
            maximum_age_ms=int(self.maximum_age_seconds * 1000),
        )
        return Coordinate(
            latitude=fix.latitude,
            longitude=fix.longitude,
            accuracy_radius_meters=fix.accuracy_radius_meters,
            accuracy_source=self._TAGS[self.accuracy],
        )


class NetworkAddressTier:
    """Geolocate the caller's public IP address over HTTP."""
    name = "network_address"
    cacheable = True
    always_succeeds = False

    def __init__(
        self,
        *,
        url: str,
        timeout_seconds: float,
        lookup: Callable[..., IpLocation] = fetch_ip_location,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.lookup = lookup

    async def attempt(self) -> Coordinate:
        # Runs in a worker thread; a reply arriving after the tier timeout is discarded.
        location = await asyncio.to_thread(self.lookup, self.url, timeout=self.timeout_seconds)
        return Coordinate(
            latitude=location.latitude,
            longitude=location.longitude,
            accuracy_source=AccuracySource.NETWORK_DERIVED,
        )


class StaticFallbackTier:
    """Fixed city centroid; never fails and is never cached."""
    name = "static_fallback"
    timeout_seconds = None
    cacheable = False
    always_succeeds = True

    def __init__(self, city: str | None = None) -> None:
        self.coordinate = fallback_coordinate(city)

    async def attempt(self) -> Coordinate:
        return self.coordinate
