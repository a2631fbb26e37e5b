"""
Thread-safe cache of parsed key property lists, keyed by object name.

A collector scraping many resources looks up the key properties of the same
object names on every cycle. ``MBeanPropertyCache`` parses each name once and
hands back the stored, read-only mapping on every later lookup until the
resource is reported gone.

Manifesto:
    - **Explicit instance:** The collection driver owns its cache; there is
      no module-level global
    - **Parse on miss:** Entries appear lazily and never change afterwards
    - **Evict on removal:** Entries disappear only when told the resource is gone
    - **Never fails the scrape:** Bad key property lists degrade to partial maps

Architecture:
    ::

        get_key_property_list(name)
            │
            ├── hit  ──────────────────────────► stored mapping (same instance)
            │
            └── miss ─► parse_key_property_list(name.key_property_list_string)
                            │
                            └─► install (first writer wins) ─► mapping

        remove_mbeans(instances)     drop entries for instance.object_name
        remove_entries(names)        drop entries for bare names
        only_keep_mbeans(names)      drop every entry not in ``names``

Concurrency:
    One ``threading.Lock`` guards the table and the counters. Parsing happens
    outside it, so scans of different names run in parallel. Two threads
    missing on the same name may both parse; the first mapping installed is
    the one every caller gets back. With ``single_flight=True`` those threads
    wait on a per-name lock instead, so each miss parses once.

    Iterables passed to the eviction methods are materialised before the
    lock is taken, so they may consult the cache while being consumed.

Logging:
    Misses and evictions are ``debug`` events; the identity is passed as is
    and only stringified by the renderer. Call
    :func:`~mbeanspine.core.logging.configure_logging` at startup, otherwise
    structlog defaults print every event to stdout.

Examples:
    >>> from mbeanspine.cache import MBeanPropertyCache
    >>> from mbeanspine.object_name import ObjectInstance, ObjectName
    >>> cache = MBeanPropertyCache()
    >>> name = ObjectName("java.lang:type=MemoryPool,name=Metaspace")
    >>> list(cache.get_key_property_list(name).items())
    [('type', 'MemoryPool'), ('name', 'Metaspace')]
    >>> cache.get_key_property_list(name) is cache.get_key_property_list(name)
    True
    >>> cache.remove_mbeans({ObjectInstance(name)})
    >>> name in cache
    False

Tags:
    cache, key-properties, object-name, thread-safe, mbean-spine

Doc-Types:
    - API Reference
    - Technical Design
"""

from __future__ import annotations

import threading
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from mbeanspine.core.logging import get_logger
from mbeanspine.object_name import Identity, IdentityHolder
from mbeanspine.parser import parse_key_property_list

if TYPE_CHECKING:
    from mbeanspine.core.settings import PropertyCacheSettings

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Point-in-time counters for a :class:`MBeanPropertyCache`.

    Attributes:
        hits: Lookups answered from the table
        misses: Lookups that found no entry
        parses: Key property lists actually parsed
        evictions: Entries removed by the ``remove_*`` / ``only_keep_*`` calls
        size: Entries currently held
    """

    hits: int = 0
    misses: int = 0
    parses: int = 0
    evictions: int = 0
    size: int = 0


class MBeanPropertyCache:
    """Cache of object name → ordered, read-only key property mapping.

    Args:
        single_flight: Serialise concurrent misses for the same name so each
            is parsed at most once. Off by default; redundant parses are
            harmless.
    """

    def __init__(self, *, single_flight: bool = False):
        self._entries: dict[Identity, Mapping[str, str]] = {}
        self._lock = threading.Lock()
        self._single_flight = single_flight
        self._inflight: dict[Identity, threading.Lock] = {}

        self._hits = 0
        self._misses = 0
        self._parses = 0
        self._evictions = 0

    @classmethod
    def from_settings(cls, settings: PropertyCacheSettings) -> MBeanPropertyCache:
        """Build a cache from :class:`~mbeanspine.core.settings.PropertyCacheSettings`."""
        return cls(single_flight=settings.single_flight)

    @property
    def single_flight(self) -> bool:
        return self._single_flight

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def get_key_property_list(self, name: Identity) -> Mapping[str, str]:
        """Return the key properties of ``name`` in the order they were written.

        The returned mapping is shared by every caller and cannot be mutated.

        Args:
            name: Any hashable identity exposing ``key_property_list_string``,
                usually an :class:`~mbeanspine.object_name.ObjectName`.
        """
        with self._lock:
            cached = self._entries.get(name)
            if cached is not None:
                self._hits += 1
                return cached
            self._misses += 1

        logger.debug("key_property_list_cache_miss", object_name=name)

        if self._single_flight:
            return self._load_single_flight(name)
        return self._install(name, self._parse(name))

    def _parse(self, name: Identity) -> Mapping[str, str]:
        properties = parse_key_property_list(name.key_property_list_string)
        with self._lock:
            self._parses += 1
        return properties

    def _install(self, name: Identity, properties: Mapping[str, str]) -> Mapping[str, str]:
        with self._lock:
            return self._entries.setdefault(name, properties)

    def _load_single_flight(self, name: Identity) -> Mapping[str, str]:
        with self._lock:
            key_lock = self._inflight.setdefault(name, threading.Lock())

        with key_lock:
            with self._lock:
                cached = self._entries.get(name)
            if cached is not None:
                return cached
            try:
                return self._install(name, self._parse(name))
            finally:
                with self._lock:
                    if self._inflight.get(name) is key_lock:
                        del self._inflight[name]

    # ------------------------------------------------------------------ #
    # Eviction
    # ------------------------------------------------------------------ #

    def remove_mbeans(self, instances: Iterable[IdentityHolder]) -> None:
        """Drop the entries of resources that no longer exist.

        Each instance exposes its identity as ``object_name``. Instances with
        no entry are ignored.
        """
        self.remove_entries([instance.object_name for instance in instances])

    def remove_entries(self, names: Iterable[Identity]) -> None:
        """Drop the entries for ``names``; unknown names are ignored."""
        names = list(names)
        removed = 0
        with self._lock:
            for name in names:
                if self._entries.pop(name, None) is not None:
                    removed += 1
            self._evictions += removed
        if removed:
            logger.debug("key_property_list_cache_evicted", removed=removed)

    def only_keep_mbeans(self, latest_names: Collection[Identity]) -> None:
        """Drop every entry whose name is not in ``latest_names``.

        Meant to be called after a discovery pass with the full set of names
        that pass found.
        """
        keep = latest_names if isinstance(latest_names, (set, frozenset)) else set(latest_names)
        with self._lock:
            stale = [name for name in self._entries if name not in keep]
            for name in stale:
                del self._entries[name]
            self._evictions += len(stale)
        if stale:
            logger.debug("key_property_list_cache_evicted", removed=len(stale))

    def clear(self) -> None:
        """Remove all entries. Counters are kept."""
        with self._lock:
            dropped = len(self._entries)
            self._entries.clear()
        logger.info("key_property_list_cache_cleared", dropped=dropped)

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def size(self) -> int:
        """Return current number of cached names."""
        with self._lock:
            return len(self._entries)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                parses=self._parses,
                evictions=self._evictions,
                size=len(self._entries),
            )

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._entries

    def __len__(self) -> int:
        return self.size()


__all__ = ["CacheStats", "MBeanPropertyCache"]
