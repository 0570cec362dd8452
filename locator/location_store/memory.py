"""In-memory location store with TTL, intended for development and tests."""

import threading
import time
from typing import Optional

from locator.app_types import CachedLocation
from locator.location_store.base import LocationStore

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="location_store/in_memory")


class InMemoryLocationStore(LocationStore):
    """Thread-safe, TTL-aware single-record store (dev/test)."""

    def __init__(self, ttl_seconds: int = 1800) -> None:
        logger.debug("Initializing InMemoryLocationStore")
        self.ttl = ttl_seconds
        self._record: Optional[CachedLocation] = None
        self._exp: float = 0.0
        self._lock = threading.Lock()

    def load(self) -> Optional[CachedLocation]:
        """Return the record, or None if missing/expired."""
        with self._lock:
            if self._record is None:
                return None
            if self._exp < time.monotonic():
                self._record = None
                return None
            return self._record

    def save(self, record: CachedLocation) -> None:
        with self._lock:
            self._record = record
            self._exp = time.monotonic() + self.ttl

    def clear(self) -> None:
        with self._lock:
            self._record = None
            self._exp = 0.0
