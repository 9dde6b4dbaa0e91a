"""
Tests for the shared key/value store.
"""
import unittest

from poster.store import PENDING_POST_KEY, KeyValueStore, PendingPostStore


class TestKeyValueStore(unittest.TestCase):

    def setUp(self):
        self.kv = KeyValueStore(":memory:")

    def tearDown(self):
        self.kv.close()

    def test_get_missing_returns_default(self):
        self.assertIsNone(self.kv.get("nothing"))
        self.assertEqual(self.kv.get("nothing", {}), {})

    def test_set_get_remove(self):
        self.kv.set("userSession", {"apiKey": "k-1"})
        self.assertEqual(self.kv.get("userSession"), {"apiKey": "k-1"})
        self.kv.set("userSession", {"apiKey": "k-2"})
        self.assertEqual(self.kv.get("userSession"), {"apiKey": "k-2"})
        self.kv.remove("userSession")
        self.assertIsNone(self.kv.get("userSession"))

    def test_pending_post_tolerates_absence(self):
        pending = PendingPostStore(self.kv)
        self.assertIsNone(pending.load())
        pending.save({"_id": "v1", "make": "Kia"})
        self.assertEqual(self.kv.get(PENDING_POST_KEY)["make"], "Kia")
        pending.clear()
        self.assertIsNone(pending.load())
        pending.clear()

    def test_unreadable_value_is_ignored(self):
        self.kv.conn.execute("INSERT INTO kv (key, value) VALUES ('broken', '{not json')")
        self.assertEqual(self.kv.get("broken", "fallback"), "fallback")


def test_store_persists_across_connections(tmp_path):
    path = str(tmp_path / "db" / "store.db")
    first = KeyValueStore(path)
    first.set("pendingPost", {"vin": "1HGCM82633A004352"})
    first.close()

    second = KeyValueStore(path)
    assert second.get("pendingPost") == {"vin": "1HGCM82633A004352"}
    second.close()
