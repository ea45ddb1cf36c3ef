"""
Test the read-through model cache and the memory cache store.
"""

import time

from starrecord import Cacheable, MemoryCacheStore, StarRecordConfig, set_config

from sample_models import CachedPerson


def test_cache_store_basics():
    store = MemoryCacheStore()

    assert store.get("missing") == (None, False)

    store.set("none", None)
    assert store.get("none") == (None, True)

    value = {"tags": ["a"]}
    store.set("key", value)
    value["tags"].append("b")
    assert store.get("key") == ({"tags": ["a"]}, True)

    assert store.clear("key")
    assert not store.clear("key")


def test_cache_store_expiry(monkeypatch):
    store = MemoryCacheStore()
    now = time.time()
    monkeypatch.setattr(time, "time", lambda: now)

    store.set("short", 1, ttl=10)
    store.set("forever", 2)
    assert store.get("short") == (1, True)

    monkeypatch.setattr(time, "time", lambda: now + 11)
    assert store.get("short") == (None, False)
    assert store.get("forever") == (2, True)

    store.set("other", 3, ttl=5)
    monkeypatch.setattr(time, "time", lambda: now + 20)
    assert store.cleanup_expired() == 1
    assert len(store) == 1


def test_find_is_served_from_cache(driver):
    store = MemoryCacheStore()
    Cacheable.set_cache_store(store)

    person = CachedPerson({"name": "Bob"})
    assert person.save()

    loaded = CachedPerson.find(person.id())
    assert loaded.name == "Bob"
    assert store.get("models/cachedperson/1")[1]

    driver.truncate()

    cached = CachedPerson.find(1)
    assert cached is not None
    assert cached.persisted()
    assert cached.name == "Bob"


def test_writes_evict_the_entry(driver):
    store = MemoryCacheStore()
    Cacheable.set_cache_store(store)

    person = CachedPerson({"name": "Bob"})
    assert person.save()
    CachedPerson.find(person.id())

    person.name = "Robert"
    assert person.save()

    assert store.get("models/cachedperson/1") == (None, False)
    assert CachedPerson.find(1).name == "Robert"


def test_cache_key_and_ttl():
    set_config(StarRecordConfig.from_dict({"cache": {"key_prefix": "app", "default_ttl": 99}}))

    person = CachedPerson.build_from_id(7)
    assert person.get_cache_key() == "app/cachedperson/7"
    assert person.get_cache_ttl() == 60

    CachedPerson.cache_ttl = None
    try:
        assert person.get_cache_ttl() == 99
    finally:
        CachedPerson.cache_ttl = 60


def test_without_store_find_queries_storage(driver):
    person = CachedPerson({"name": "Bob"})
    assert person.save()

    assert Cacheable.get_cache_store() is None
    assert CachedPerson.find(person.id()).name == "Bob"
