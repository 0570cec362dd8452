"""Great-circle distance and the static fallback positions."""
from __future__ import annotations

import math

from locator.domain import AccuracySource, Coordinate

EARTH_RADIUS_KM = 6371.0

# Major city centroids used when every live source fails.
FALLBACK_CITIES: dict[str, tuple[float, float]] = {
    "jakarta": (-6.2088, 106.8456),
    "surabaya": (-7.2575, 112.7521),
    "bandung": (-6.9175, 107.6191),
    "medan": (3.5952, 98.6722),
    "semarang": (-6.9667, 110.4167),
}
DEFAULT_FALLBACK_CITY = "jakarta"  # the capital


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance in kilometres between two coordinates."""
    d_lat = math.radians(b.latitude - a.latitude)
    d_lng = math.radians(b.longitude - a.longitude)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.latitude)) * math.cos(math.radians(b.latitude)) * math.sin(d_lng / 2) ** 2
    )
    h = min(1.0, h)  # rounding near antipodes
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def fallback_coordinate(city: str | None = None) -> Coordinate:
    """Return the static fallback coordinate for `city`, defaulting to the capital."""
    lat, lng = FALLBACK_CITIES.get((city or DEFAULT_FALLBACK_CITY).lower(), FALLBACK_CITIES[DEFAULT_FALLBACK_CITY])
    return Coordinate(latitude=lat, longitude=lng, accuracy_source=AccuracySource.STATIC_FALLBACK)
