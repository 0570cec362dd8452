"""Resolve the requester's position through an ordered chain of tiers.

Tiers run one at a time, most accurate first; each is raced against its own
timeout and abandoned on any error. The last tier is a static fallback that
cannot fail, so `resolve_location` always returns a coordinate.

A successful live acquisition is cached in memory (short freshness window)
and written to the durable store. The durable copy is read back once, on the
first resolve of a fresh process, with its own longer window.
"""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Callable, Hashable, Optional, Sequence

from pydantic import ValidationError

from .app_types import CachedLocation, PositionFix
from .domain import AccuracySource, Coordinate
from .errors import (
    AllSourcesExhaustedError,
    PositioningError,
    PositioningTimeoutError,
    PositioningUnavailableError,
)
from .geo import distance_km
from .location_store.base import LocationStore
from .positioning.base import DesiredAccuracy, PositionSource, UnsupportedPositionSource
from .tiers import LocationTier
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="location_resolver")

CACHE_TTL_SECONDS = 5 * 60
DURABLE_CACHE_TTL_SECONDS = 30 * 60
WATCH_TIMEOUT_MS = 10_000
WATCH_MAXIMUM_AGE_MS = 60_000


class WatchHandle:
    """Opaque handle for a continuous position subscription."""

    def __init__(self) -> None:
        self.watch_id: Optional[Hashable] = None
        self.active = True
        self._lock = threading.Lock()

    def deactivate(self) -> bool:
        """Mark inactive; return True only for the call that flipped the state."""
        with self._lock:
            if not self.active:
                return False
            self.active = False
            return True


def as_positioning_error(exc: BaseException) -> PositioningError:
    """Map arbitrary sensor failures onto the positioning error taxonomy."""
    if isinstance(exc, PositioningError):
        return exc
    if isinstance(exc, TimeoutError):
        return PositioningTimeoutError("Location request timed out")
    return PositioningUnavailableError(str(exc) or "Location information unavailable")


class LocationResolver:
    """Cache-fronted tier chain; construct one per application and pass it around."""

    def __init__(
        self,
        tiers: Sequence[LocationTier],
        *,
        position_source: Optional[PositionSource] = None,
        store: Optional[LocationStore] = None,
        cache_ttl_seconds: float = CACHE_TTL_SECONDS,
        durable_cache_ttl_seconds: float = DURABLE_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.tiers = tuple(tiers)
        if not self.tiers or not self.tiers[-1].always_succeeds:
            raise ValueError("The last tier must be one that always succeeds (e.g. StaticFallbackTier)")
        self.position_source = position_source or UnsupportedPositionSource()
        self.store = store
        self.cache_ttl_seconds = cache_ttl_seconds
        self.durable_cache_ttl_seconds = durable_cache_ttl_seconds
        self._clock = clock
        self._cached: Optional[CachedLocation] = None
        self._restore_attempted = False
        self._lock = threading.Lock()

    distance_km = staticmethod(distance_km)

    def _now_millis(self) -> int:
        return int(self._clock() * 1000)

    @property
    def cached_location(self) -> Optional[CachedLocation]:
        """Snapshot of the in-memory cache entry (coordinate and timestamp together)."""
        with self._lock:
            return self._cached

    async def resolve_location(self) -> Coordinate:
        """Return the best available coordinate. Never raises except on cancellation."""
        record = self.cached_location
        if record is not None:
            if record.is_fresh(self._now_millis(), self.cache_ttl_seconds):
                logger.debug("Using cached location", extra={"source": record.coordinate.accuracy_source.value})
                return record.coordinate
        elif not self._restore_attempted:
            restored = self.restore_from_store()
            if restored is not None:
                return restored

        for tier in self.tiers:
            try:
                coordinate = await self._attempt(tier)
            except PositioningError as exc:
                logger.warning("%s failed (%s): %s", tier.name, exc.kind.value, exc)
                continue
            except Exception as exc:
                logger.warning("%s failed: %s", tier.name, exc)
                continue

            if tier.cacheable:
                self._update_cache(coordinate)
                logger.info("Location obtained from %s", tier.name)
            else:
                logger.info("Using fallback location: %.4f, %.4f", coordinate.latitude, coordinate.longitude)
            return coordinate

        raise AllSourcesExhaustedError("every location tier failed")

    async def _attempt(self, tier: LocationTier) -> Coordinate:
        if tier.timeout_seconds is None:
            return await tier.attempt()
        try:
            return await asyncio.wait_for(tier.attempt(), tier.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise PositioningTimeoutError(f"{tier.name} timed out after {tier.timeout_seconds:g} seconds") from exc

    def _update_cache(self, coordinate: Coordinate) -> None:
        record = CachedLocation(coordinate=coordinate, acquired_at_epoch_millis=self._now_millis())
        with self._lock:
            self._cached = record
        if self.store is None:
            return
        try:
            self.store.save(record)
        except Exception as exc:
            logger.warning("Failed to persist location: %s", exc)

    def restore_from_store(self) -> Optional[Coordinate]:
        """Adopt the durable record if it is younger than the durable window."""
        self._restore_attempted = True
        if self.store is None:
            return None
        try:
            record = self.store.load()
        except Exception as exc:
            logger.warning("Failed to restore location from store: %s", exc)
            return None
        if record is None:
            return None
        if not record.is_fresh(self._now_millis(), self.durable_cache_ttl_seconds):
            logger.debug("Stored location too old; ignoring")
            return None
        with self._lock:
            # never replace a newer in-memory entry
            if self._cached is not None and self._cached.acquired_at_epoch_millis >= record.acquired_at_epoch_millis:
                return self._cached.coordinate
            self._cached = record
        logger.info("Restored location from durable store")
        return record.coordinate

    def clear_cache(self) -> None:
        """Forget the in-memory and durable entries."""
        with self._lock:
            self._cached = None
        if self.store is None:
            return
        try:
            self.store.clear()
        except Exception as exc:
            logger.warning("Failed to clear stored location: %s", exc)

    def watch_position(
        self,
        on_update: Callable[[Coordinate], None],
        on_error: Callable[[PositioningError], None],
    ) -> WatchHandle:
        """Subscribe to continuous low-power updates.

        Each update refreshes the cache before `on_update` runs; errors go to
        `on_error` and leave the cache alone. Callbacks stop as soon as the
        handle is cancelled.
        """
        handle = WatchHandle()

        def _on_fix(fix: PositionFix) -> None:
            if not handle.active:
                return
            try:
                coordinate = Coordinate(
                    latitude=fix.latitude,
                    longitude=fix.longitude,
                    accuracy_radius_meters=fix.accuracy_radius_meters,
                    accuracy_source=AccuracySource.APPROXIMATE,
                )
            except ValidationError as exc:
                on_error(PositioningUnavailableError(f"Invalid position reported: {exc.errors()[0]['msg']}"))
                return
            self._update_cache(coordinate)
            on_update(coordinate)

        def _on_error(exc: BaseException) -> None:
            if not handle.active:
                return
            on_error(as_positioning_error(exc))

        try:
            handle.watch_id = self.position_source.watch_position(
                _on_fix,
                _on_error,
                accuracy=DesiredAccuracy.APPROXIMATE,
                timeout_ms=WATCH_TIMEOUT_MS,
                maximum_age_ms=WATCH_MAXIMUM_AGE_MS,
            )
        except Exception as exc:
            error = as_positioning_error(exc)
            logger.warning("Position watch not started: %s", error)
            handle.deactivate()
            on_error(error)
        return handle

    def cancel_watch(self, handle: WatchHandle) -> None:
        """Stop a subscription. Cancelling an inactive handle is a no-op."""
        if not handle.deactivate():
            return
        if handle.watch_id is not None:
            self.position_source.clear_watch(handle.watch_id)
