"""
Client state snapshot persistence
"""
import json

import pytest

from utils.state_store import SNAPSHOT_KEY_PREFIX, FileStateStore, RedisStateStore, build_state_store

SNAPSHOT = {
    "identity": {"id": "1", "email": "user@example.com", "preferred_language": "en"},
    "authenticated": True,
    "subscription_tier": "active",
    "selected_jurisdiction": "NY",
}


class FakeRedis:
    """In-memory stand-in for a decode_responses=True redis client"""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


def test_file_store_round_trip(tmp_path):
    store = FileStateStore(tmp_path / "state")

    assert store.load("client-1") is None
    store.save("client-1", SNAPSHOT)

    assert store.load("client-1") == SNAPSHOT
    assert not (tmp_path / "state" / "client-1.json.tmp").exists()

    store.delete("client-1")
    assert store.load("client-1") is None


def test_file_store_ignores_corrupt_snapshot(tmp_path):
    store = FileStateStore(tmp_path)
    (tmp_path / "client-1.json").write_text("{not json", encoding="utf-8")

    assert store.load("client-1") is None


def test_file_store_rejects_path_like_ids(tmp_path):
    store = FileStateStore(tmp_path)

    with pytest.raises(ValueError):
        store.save("../escape", SNAPSHOT)


def test_redis_store_round_trip():
    client = FakeRedis()
    store = RedisStateStore(client)

    store.save("client-1", SNAPSHOT)

    assert json.loads(client.data[SNAPSHOT_KEY_PREFIX + "client-1"]) == SNAPSHOT
    assert store.load("client-1") == SNAPSHOT
    store.delete("client-1")
    assert store.load("client-1") is None


def test_build_state_store_without_redis_uses_files(tmp_path):
    store = build_state_store(None, tmp_path)

    assert isinstance(store, FileStateStore)


def test_build_state_store_falls_back_when_redis_is_unreachable(tmp_path):
    store = build_state_store("redis://127.0.0.1:1/0", tmp_path)

    assert isinstance(store, FileStateStore)
