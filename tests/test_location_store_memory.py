import time
import unittest

from locator.app_types import CachedLocation
from locator.domain import AccuracySource, Coordinate
from locator.location_store.memory import InMemoryLocationStore


def _record(ts=1_700_000_000_000):
    coord = Coordinate(latitude=-6.9, longitude=107.6, accuracy_source=AccuracySource.NETWORK_DERIVED)
    return CachedLocation(coordinate=coord, acquired_at_epoch_millis=ts)


class TestInMemoryLocationStore(unittest.TestCase):
    def test_save_then_load(self):
        store = InMemoryLocationStore(ttl_seconds=5)
        record = _record()
        store.save(record)
        self.assertIs(store.load(), record)

    def test_save_overwrites(self):
        store = InMemoryLocationStore(ttl_seconds=5)
        store.save(_record(1))
        newer = _record(2)
        store.save(newer)
        self.assertIs(store.load(), newer)

    def test_expires_after_ttl(self):
        store = InMemoryLocationStore(ttl_seconds=1)
        store.save(_record())
        time.sleep(1.1)
        self.assertIsNone(store.load())

    def test_clear(self):
        store = InMemoryLocationStore()
        store.save(_record())
        store.clear()
        self.assertIsNone(store.load())
        store.clear()


if __name__ == "__main__":
    unittest.main()
