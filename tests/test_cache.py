import pytest

from ftw_ai.cache import TTLCache


def test_value_available_until_ttl_elapses(clock):
    cache = TTLCache(max_size=10, ttl=60, clock=clock)
    cache.set("pipe", "leak")

    clock.advance(59.9)
    assert cache.get("pipe") == "leak"

    clock.advance(0.1)
    assert cache.get("pipe") == "leak"

    clock.advance(0.001)
    assert cache.get("pipe") is None


def test_expired_entry_is_evicted_on_read(clock):
    cache = TTLCache(max_size=10, ttl=5, clock=clock)
    cache.set("a", 1)
    clock.advance(6)

    assert len(cache) == 1
    assert cache.get("a") is None
    assert len(cache) == 0


def test_insert_beyond_capacity_evicts_earliest(clock):
    cache = TTLCache(max_size=3, ttl=60, clock=clock)
    for key in ("a", "b", "c"):
        cache.set(key, key.upper())

    cache.set("d", "D")
    assert len(cache) == 3
    assert cache.get("a") is None
    assert [cache.get(k) for k in ("b", "c", "d")] == ["B", "C", "D"]

    cache.set("e", "E")
    assert len(cache) == 3
    assert cache.get("b") is None
    assert cache.get("c") == "C"


def test_eviction_is_insertion_order_not_lru(clock):
    cache = TTLCache(max_size=2, ttl=60, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.get("a")

    cache.set("c", 3)
    assert cache.get("a") is None
    assert cache.get("b") == 2


def test_resetting_existing_key_does_not_evict(clock):
    cache = TTLCache(max_size=2, ttl=60, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)
    cache.set("a", 10)

    assert len(cache) == 2
    assert cache.get("a") == 10
    assert cache.get("b") == 2


def test_delete_and_clear(clock):
    cache = TTLCache(max_size=5, ttl=60, clock=clock)
    cache.set("a", 1)
    cache.set("b", 2)

    assert cache.delete("a") is True
    assert cache.delete("a") is False
    assert "a" not in cache
    assert "b" in cache

    cache.clear()
    assert len(cache) == 0


def test_rejects_zero_capacity():
    with pytest.raises(ValueError):
        TTLCache(max_size=0)
