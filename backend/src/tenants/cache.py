"""In-process TTL cache for tenant lookups.

Keys have the form "{lookup_type}:{identifier}" where lookup_type is
"subdomain" or "domain" and the identifier is lower-cased. Each entry
carries its own insertion time and TTL; expired entries are evicted
lazily when read (or in bulk via prune_expired()).

The backing map is a cachetools LRUCache, so the cache never grows past
max_entries: the least recently used entry is dropped to make room.
Only get() and set() count as a use; membership checks, invalidation
and pruning leave the LRU order alone.

Every invalidation bumps a generation counter. A reader that loaded a
tenant from the database stores it with set_if_generation(), passing
the generation it saw before the query, so a row read before a
concurrent invalidation is never written back.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from cachetools import Cache, LRUCache

from observability.metrics import tenant_cache_entries, tenant_cache_lookups_total

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300
DEFAULT_MAX_ENTRIES = 10_000

LOOKUP_SUBDOMAIN = "subdomain"
LOOKUP_DOMAIN = "domain"
LOOKUP_TYPES = (LOOKUP_SUBDOMAIN, LOOKUP_DOMAIN)


def cache_key(lookup_type: str, identifier: str) -> str:
    """Build the cache key for a lookup.

    Raises:
        ValueError: If lookup_type is not "subdomain" or "domain"
    """
    if lookup_type not in LOOKUP_TYPES:
        raise ValueError(f"Unknown lookup type: {lookup_type}")
    return f"{lookup_type}:{identifier.strip().lower()}"


@dataclass
class CacheEntry:
    value: Any
    stored_at: float
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now - self.stored_at > self.ttl_seconds


class TenantCache:
    """
    Bounded TTL cache of resolved tenants.

    Sync FastAPI endpoints run in a thread pool, so every operation takes
    a re-entrant lock.

    Attributes:
        ttl_seconds: Default lifetime of an entry
        max_entries: Upper bound on stored entries
        hits: Lookups answered from the cache
        misses: Lookups not found (including expired entries)
        expirations: Entries evicted because their TTL elapsed
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")

        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: LRUCache = LRUCache(maxsize=max_entries)
        self._lock = threading.RLock()
        self._generation = 0

        self.hits = 0
        self.misses = 0
        self.expirations = 0

        logger.info(
            f"Initialized TenantCache with ttl_seconds={ttl_seconds}, max_entries={max_entries}"
        )

    @property
    def generation(self) -> int:
        """Counter bumped by invalidate(), invalidate_business() and clear()."""
        with self._lock:
            return self._generation

    def get(self, lookup_type: str, identifier: str) -> Optional[Any]:
        """
        Return the cached value or None.

        An entry older than its TTL is removed and reported as a miss.
        """
        key = cache_key(lookup_type, identifier)
        with self._lock:
            entry = self._entries.get(key)

            if entry is None:
                self.misses += 1
                tenant_cache_lookups_total.labels(lookup_type=lookup_type, result="miss").inc()
                return None

            if entry.is_expired(self._clock()):
                del self._entries[key]
                self.misses += 1
                self.expirations += 1
                tenant_cache_lookups_total.labels(lookup_type=lookup_type, result="expired").inc()
                logger.debug(f"Tenant cache entry expired: {key}")
                return None

            self.hits += 1
            tenant_cache_lookups_total.labels(lookup_type=lookup_type, result="hit").inc()
            return entry.value

    def set(
        self,
        lookup_type: str,
        identifier: str,
        value: Any,
        ttl_seconds: Optional[float] = None,
    ) -> None:
        """
        Store a value, replacing any existing entry and restarting its TTL.

        Args:
            lookup_type: "subdomain" or "domain"
            identifier: Subdomain or domain name
            value: Resolved tenant
            ttl_seconds: Per-entry TTL override (defaults to the cache TTL)
        """
        key = cache_key(lookup_type, identifier)
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock(), ttl_seconds=ttl)
            tenant_cache_entries.set(len(self._entries))

    def set_if_generation(
        self,
        lookup_type: str,
        identifier: str,
        value: Any,
        generation: int,
        ttl_seconds: Optional[float] = None,
    ) -> bool:
        """
        Store a value only if nothing was invalidated since `generation`.

        Returns:
            bool: True if stored, False if the write was dropped
        """
        with self._lock:
            if generation != self._generation:
                logger.debug(
                    f"Dropped stale tenant cache write for {lookup_type}:{identifier} "
                    f"(generation {generation} != {self._generation})"
                )
                return False
            self.set(lookup_type, identifier, value, ttl_seconds=ttl_seconds)
            return True

    def invalidate(self, lookup_type: str, identifier: str) -> bool:
        """Remove one entry. Returns True if something was removed."""
        key = cache_key(lookup_type, identifier)
        with self._lock:
            self._generation += 1
            removed = self._entries.pop(key, None) is not None
            tenant_cache_entries.set(len(self._entries))
        if removed:
            logger.debug(f"Invalidated tenant cache entry: {key}")
        return removed

    def invalidate_business(self, business_id) -> int:
        """Remove every entry that resolves to the given business.

        Returns:
            int: Number of entries removed
        """
        target = str(business_id)
        with self._lock:
            self._generation += 1
            keys = [
                key for key, entry in self._snapshot()
                if str(getattr(entry.value, "business_id", None)) == target
            ]
            for key in keys:
                del self._entries[key]
            tenant_cache_entries.set(len(self._entries))

        if keys:
            logger.info(f"Invalidated {len(keys)} tenant cache entries for business {target}")
        return len(keys)

    def prune_expired(self) -> int:
        """Evict all expired entries eagerly. Returns the number removed."""
        with self._lock:
            now = self._clock()
            keys = [key for key, entry in self._snapshot() if entry.is_expired(now)]
            for key in keys:
                del self._entries[key]
            self.expirations += len(keys)
            tenant_cache_entries.set(len(self._entries))
        return len(keys)

    def clear(self) -> int:
        """Drop every entry. Returns the number removed."""
        with self._lock:
            self._generation += 1
            count = len(self._entries)
            self._entries.clear()
            tenant_cache_entries.set(0)
        logger.info(f"Cleared {count} tenant cache entries")
        return count

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self.hits + self.misses
            return {
                "entries": len(self._entries),
                "hits": self.hits,
                "misses": self.misses,
                "expirations": self.expirations,
                "hit_rate": round(self.hits / total, 4) if total else 0.0,
                "ttl_seconds": self.ttl_seconds,
                "max_entries": self.max_entries,
            }

    def _peek(self, key: str) -> CacheEntry:
        # Cache.__getitem__ skips LRUCache's recency update
        return Cache.__getitem__(self._entries, key)

    def _snapshot(self) -> List[Tuple[str, CacheEntry]]:
        return [(key, self._peek(key)) for key in list(self._entries)]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """Whether a raw "{type}:{identifier}" key is held and unexpired.

        Does not touch the hit/miss counters or the LRU order.
        """
        with self._lock:
            if key not in self._entries:
                return False
            return not self._peek(key).is_expired(self._clock())
