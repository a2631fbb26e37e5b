"""
Tests for mbeanspine.cache.

Covers:
- Parse-on-miss and identical instances on hit
- Eviction via remove_mbeans / remove_entries / only_keep_mbeans
- Partial maps for malformed names
- Custom identity types
- Single-flight loading
"""

import threading
import time
from dataclasses import dataclass

import pytest
from structlog.testing import capture_logs

import mbeanspine.cache as cache_module
from mbeanspine.cache import CacheStats, MBeanPropertyCache
from mbeanspine.core.settings import PropertyCacheSettings
from mbeanspine.object_name import ObjectInstance, ObjectName


@dataclass(frozen=True)
class PlainIdentity:
    key_property_list_string: str


@dataclass(frozen=True)
class Handle:
    object_name: PlainIdentity


class TestLookup:
    """get_key_property_list behaviour."""

    def test_returns_properties_in_source_order(self, gc_name):
        cache = MBeanPropertyCache()
        result = cache.get_key_property_list(gc_name)
        assert list(result.items()) == [
            ("type", "GarbageCollector"),
            ("name", '"G1 Young Generation"'),
        ]

    def test_second_lookup_is_a_hit(self, gc_name):
        """The stored mapping is returned unchanged, without a second parse."""
        cache = MBeanPropertyCache()
        first = cache.get_key_property_list(gc_name)
        second = cache.get_key_property_list(gc_name)
        assert first is second
        assert cache.stats() == CacheStats(hits=1, misses=1, parses=1, evictions=0, size=1)

    def test_equal_names_share_an_entry(self):
        """Names equal by canonical form hit the entry of whichever was seen first."""
        cache = MBeanPropertyCache()
        first = cache.get_key_property_list(ObjectName("d:b=2,a=1"))
        second = cache.get_key_property_list(ObjectName("d:a=1,b=2"))
        assert second is first
        assert list(second) == ["b", "a"]

    def test_result_is_read_only(self, gc_name):
        cache = MBeanPropertyCache()
        result = cache.get_key_property_list(gc_name)
        with pytest.raises(TypeError):
            result["type"] = "Other"  # type: ignore[index]

    def test_malformed_name_degrades_to_partial_map(self):
        cache = MBeanPropertyCache()
        result = cache.get_key_property_list(ObjectName('d:a=1,b="open'))
        assert dict(result) == {"a": "1", "b": ""}

    def test_empty_property_list(self):
        cache = MBeanPropertyCache()
        result = cache.get_key_property_list(ObjectName("d:"))
        assert dict(result) == {}
        assert cache.get_key_property_list(ObjectName("d:")) is result
        assert cache.stats().parses == 1

    def test_custom_identity(self):
        """Any hashable object with key_property_list_string can be a key."""
        cache = MBeanPropertyCache()
        identity = PlainIdentity("x=1,y=2")
        assert dict(cache.get_key_property_list(identity)) == {"x": "1", "y": "2"}
        assert identity in cache

    def test_miss_is_logged(self, gc_name):
        cache = MBeanPropertyCache()
        with capture_logs() as logs:
            cache.get_key_property_list(gc_name)
            cache.get_key_property_list(gc_name)
        assert [entry["event"] for entry in logs] == ["key_property_list_cache_miss"]
        assert logs[0]["object_name"] is gc_name


class TestEviction:
    """remove_mbeans, remove_entries, only_keep_mbeans, clear."""

    def test_remove_mbeans_forces_reparse(self, gc_name, gc_instance):
        cache = MBeanPropertyCache()
        first = cache.get_key_property_list(gc_name)
        cache.remove_mbeans({gc_instance})
        assert gc_name not in cache

        second = cache.get_key_property_list(gc_name)
        assert second is not first
        assert dict(second) == dict(first)
        assert cache.stats().parses == 2
        assert cache.stats().evictions == 1

    def test_remove_unknown_is_noop(self, gc_instance):
        cache = MBeanPropertyCache()
        cache.remove_mbeans({gc_instance})
        cache.remove_mbeans([])
        assert cache.size() == 0
        assert cache.stats().evictions == 0

    def test_remove_only_named_entries(self, memory_pool_names):
        cache = MBeanPropertyCache()
        for name in memory_pool_names:
            cache.get_key_property_list(name)

        cache.remove_mbeans([ObjectInstance(memory_pool_names[0]), ObjectInstance(memory_pool_names[3])])

        assert len(cache) == 3
        assert memory_pool_names[0] not in cache
        assert memory_pool_names[1] in cache
        assert memory_pool_names[3] not in cache

    def test_remove_mbeans_with_custom_handles(self):
        cache = MBeanPropertyCache()
        identity = PlainIdentity("x=1")
        cache.get_key_property_list(identity)
        cache.remove_mbeans([Handle(identity)])
        assert identity not in cache

    def test_remove_entries(self, memory_pool_names):
        cache = MBeanPropertyCache()
        for name in memory_pool_names:
            cache.get_key_property_list(name)
        cache.remove_entries(memory_pool_names[:2])
        assert cache.size() == 3

    def test_eviction_is_logged(self, gc_name, gc_instance):
        cache = MBeanPropertyCache()
        cache.get_key_property_list(gc_name)
        with capture_logs() as logs:
            cache.remove_mbeans({gc_instance})
        assert logs == [
            {"event": "key_property_list_cache_evicted", "log_level": "debug", "removed": 1}
        ]

    def test_only_keep_mbeans(self, memory_pool_names):
        cache = MBeanPropertyCache()
        for name in memory_pool_names:
            cache.get_key_property_list(name)

        cache.only_keep_mbeans([memory_pool_names[1], ObjectName("other:a=1")])

        assert cache.size() == 1
        assert memory_pool_names[1] in cache
        assert cache.stats().evictions == 4

    def test_remove_entries_with_generator_reading_the_cache(self, memory_pool_names):
        """A lazy iterable that checks membership while evicting must not block."""
        cache = MBeanPropertyCache()
        for name in memory_pool_names[:3]:
            cache.get_key_property_list(name)

        done = threading.Event()

        def evict():
            cache.remove_entries(n for n in memory_pool_names if n in cache)
            done.set()

        worker = threading.Thread(target=evict, daemon=True)
        worker.start()
        worker.join(timeout=3)

        assert done.is_set()
        assert cache.size() == 0
        assert cache.stats().evictions == 3

    def test_remove_mbeans_with_generator_reading_the_cache(self, memory_pool_names):
        cache = MBeanPropertyCache()
        for name in memory_pool_names:
            cache.get_key_property_list(name)

        done = threading.Event()

        def evict():
            cache.remove_mbeans(
                ObjectInstance(n) for n in memory_pool_names if cache.size() and n in cache
            )
            done.set()

        worker = threading.Thread(target=evict, daemon=True)
        worker.start()
        worker.join(timeout=3)

        assert done.is_set()
        assert cache.size() == 0

    def test_clear(self, memory_pool_names):
        cache = MBeanPropertyCache()
        for name in memory_pool_names:
            cache.get_key_property_list(name)
        cache.clear()
        assert cache.size() == 0
        assert cache.stats().misses == 5


class TestConstruction:
    def test_defaults(self):
        assert MBeanPropertyCache().single_flight is False

    def test_from_settings(self):
        settings = PropertyCacheSettings(single_flight=True)
        assert MBeanPropertyCache.from_settings(settings).single_flight is True

    def test_instances_are_independent(self, gc_name):
        a = MBeanPropertyCache()
        b = MBeanPropertyCache()
        a.get_key_property_list(gc_name)
        assert gc_name in a
        assert gc_name not in b


class TestConcurrentMissesOnOneName:
    """Concurrent first-time lookups of the same name."""

    @pytest.fixture
    def slow_parse(self, monkeypatch):
        calls = []
        real_parse = cache_module.parse_key_property_list

        def parse(text):
            calls.append(text)
            time.sleep(0.05)
            return real_parse(text)

        monkeypatch.setattr(cache_module, "parse_key_property_list", parse)
        return calls

    def _race(self, cache, name, threads=8):
        barrier = threading.Barrier(threads)
        results = []
        lock = threading.Lock()

        def lookup():
            barrier.wait()
            result = cache.get_key_property_list(name)
            with lock:
                results.append(result)

        workers = [threading.Thread(target=lookup) for _ in range(threads)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=10)
        return results

    def test_racing_callers_get_the_installed_mapping(self, slow_parse, gc_name):
        """Redundant parses are tolerated; everyone gets the first installed map."""
        cache = MBeanPropertyCache()
        results = self._race(cache, gc_name)

        assert len(results) == 8
        stored = cache.get_key_property_list(gc_name)
        assert all(result is stored for result in results)
        assert 1 <= len(slow_parse) <= 8

    def test_single_flight_parses_once(self, slow_parse, gc_name):
        cache = MBeanPropertyCache(single_flight=True)
        results = self._race(cache, gc_name)

        assert len(results) == 8
        assert len(slow_parse) == 1
        assert all(result is results[0] for result in results)
        assert cache.stats().parses == 1

    def test_single_flight_does_not_leak_locks(self, gc_name):
        cache = MBeanPropertyCache(single_flight=True)
        cache.get_key_property_list(gc_name)
        assert cache._inflight == {}
