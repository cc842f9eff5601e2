import json

import pytest

from actionflow.flash import MemoryFlashStore, RedisFlashStore, flash_store_from_settings
from actionflow.settings import Settings


class FakePipeline:
    def __init__(self, client):
        self.client = client
        self.ops = []

    def get(self, key):
        self.ops.append(("get", key))

    def delete(self, key):
        self.ops.append(("delete", key))

    def execute(self):
        out = []
        for op, key in self.ops:
            if op == "get":
                out.append(self.client.data.get(key))
            else:
                out.append(int(self.client.data.pop(key, None) is not None))
        return out


class FakeRedis:
    def __init__(self):
        self.data = {}
        self.expiry = {}

    def set(self, key, value, ex=None):
        self.data[key] = value.encode("utf-8")
        self.expiry[key] = ex

    def pipeline(self):
        return FakePipeline(self)


def test_memory_store_pops_once() -> None:
    store = MemoryFlashStore()
    key = store.save({"notice": "Saved"})
    assert store.pop(key) == {"notice": "Saved"}
    assert store.pop(key) == {}
    assert store.pop("unknown") == {}


def test_memory_store_expires() -> None:
    store = MemoryFlashStore(ttl_seconds=-1)
    key = store.save({"notice": "Saved"})
    assert store.pop(key) == {}


def test_redis_store_uses_prefix_and_ttl() -> None:
    client = FakeRedis()
    store = RedisFlashStore(client=client, ttl_seconds=60)
    key = store.save({"alert": "Oops"})

    stored_key = f"actionflow:flash:{key}"
    assert json.loads(client.data[stored_key]) == {"alert": "Oops"}
    assert client.expiry[stored_key] == 60

    assert store.pop(key) == {"alert": "Oops"}
    assert stored_key not in client.data
    assert store.pop(key) == {}


def test_redis_store_needs_a_connection() -> None:
    with pytest.raises(ValueError):
        RedisFlashStore().save({"notice": "x"})


def test_store_from_settings() -> None:
    assert isinstance(flash_store_from_settings(Settings(_env_file=None)), MemoryFlashStore)
    redis_store = flash_store_from_settings(Settings(_env_file=None, redis_url="redis://localhost:6379/0"))
    assert isinstance(redis_store, RedisFlashStore)


def test_memory_store_purges_expired_entries_on_save() -> None:
    store = MemoryFlashStore(ttl_seconds=-1)
    for _ in range(50):
        store.save({"notice": "never read"})
    assert store.size() == 1


def test_memory_store_drops_oldest_past_capacity() -> None:
    store = MemoryFlashStore(max_items=3)
    keys = [store.save({"notice": str(i)}) for i in range(5)]
    assert store.size() == 3
    assert store.pop(keys[0]) == {}
    assert store.pop(keys[4]) == {"notice": "4"}
