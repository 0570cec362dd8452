"""Redis-backed location store with TTL."""

from typing import Optional

from locator.app_types import CachedLocation
from locator.location_store.base import DEFAULT_KEY, LocationStore, dump_record, load_record
from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="location_store/redis")


class RedisLocationStore(LocationStore):
    """Keeps the last-known location as JSON under one key, expiring after the TTL.

    Redis errors are logged and swallowed: a broken durable copy must never
    stop location resolution.
    """

    def __init__(self, client, ttl_seconds: int = 1800, key: str = DEFAULT_KEY) -> None:
        logger.debug("Initializing RedisLocationStore")
        self.client = client
        self.ttl = ttl_seconds
        self.key = key

    def load(self) -> Optional[CachedLocation]:
        """Fetch and decode the record, or None if missing/invalid."""
        try:
            raw = self.client.get(self.key)
        except Exception as exc:
            logger.error("Failed to read location from Redis: %s", exc)
            return None
        if not raw:
            return None
        try:
            return load_record(raw)
        except Exception as exc:
            logger.error("Failed to deserialize stored location: %s", exc)
            return None

    def save(self, record: CachedLocation) -> None:
        try:
            self.client.setex(self.key, self.ttl, dump_record(record))
        except Exception as exc:
            logger.error("Failed to write location to Redis: %s", exc)

    def clear(self) -> None:
        try:
            self.client.delete(self.key)
        except Exception as exc:
            logger.error("Failed to delete location from Redis: %s", exc)
