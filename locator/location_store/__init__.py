"""Durable storage backends for the last-known location."""

from .base import LocationStore, dump_record, load_record
from .memory import InMemoryLocationStore
from .redis import RedisLocationStore

__all__ = [
    "LocationStore",
    "InMemoryLocationStore",
    "RedisLocationStore",
    "dump_record",
    "load_record",
]
