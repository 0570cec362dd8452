"""Shared protocol and record codec for durable location storage."""

import json
from typing import Optional, Protocol

from locator.app_types import CachedLocation
from locator.domain import Coordinate

DEFAULT_KEY = "lastKnownLocation"


class LocationStore(Protocol):
    """Key-value persistence for the single last-known location record."""

    def load(self) -> Optional[CachedLocation]:
        """Return the stored record, or None if missing, expired or unreadable."""

    def save(self, record: CachedLocation) -> None:
        """Overwrite the stored record."""

    def clear(self) -> None:
        """Delete the stored record without raising if it is absent."""


def dump_record(record: CachedLocation) -> bytes:
    """Serialize a record as {"location": {...}, "timestamp": epoch_millis}."""
    return json.dumps(
        {
            "location": record.coordinate.model_dump(mode="json"),
            "timestamp": record.acquired_at_epoch_millis,
        }
    ).encode("utf-8")


def load_record(raw: bytes | str) -> CachedLocation:
    """Deserialize a stored record; raises ValueError/ValidationError on bad input."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    data = json.loads(raw)
    return CachedLocation(
        coordinate=Coordinate.model_validate(data["location"]),
        acquired_at_epoch_millis=int(data["timestamp"]),
    )
