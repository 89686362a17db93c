"""
Per-process in-memory result cache.

Holds expensive derived sets (seen-id unions, saved/liked id lists) for a
short TTL. Entries belong to a (user, family) pair; invalidating a family
drops every entry of that pair and bumps its generation so a load that
started before the invalidation cannot write its stale result back.
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Set, Tuple

from repoverse.config import get_settings
from repoverse.logging import get_logger

from .cache_keys import CacheKeys

logger = get_logger("cache")


class CacheInvalidationError(Exception):
    """Invalidation could not be guaranteed; the triggering write must not succeed."""


@dataclass
class CacheEntry:
    key: str
    payload: Any
    inserted_at: float
    ttl: float
    user_id: str
    family: str

    def is_expired(self, now: float) -> bool:
        return now - self.inserted_at >= self.ttl


class ResultCache:
    """
    TTL cache with per-user invalidation families.

    Usage:
        cache = ResultCache()
        seen = cache.get_or_load(user_id, CacheKeys.FAMILY_SEEN, CacheKeys.seen_ids(user_id), loader)
        cache.invalidate(user_id, CacheKeys.FAMILY_SEEN)
    """

    def __init__(
        self,
        ttls: Optional[Dict[str, float]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttls is None:
            settings = get_settings()
            ttls = {
                CacheKeys.FAMILY_SEEN: settings.seen_cache_ttl_seconds,
                CacheKeys.FAMILY_SAVED_LIKED: settings.saved_liked_cache_ttl_seconds,
            }
        self.ttls = dict(ttls)
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: Dict[str, CacheEntry] = {}
        self._index: Dict[Tuple[str, str], Set[str]] = {}
        self._generations: Dict[Tuple[str, str], int] = {}
        self.hits = 0
        self.misses = 0

    def _check_family(self, family: str) -> None:
        if family not in self.ttls:
            raise CacheInvalidationError(f"Unknown cache family: {family}")

    def get(self, key: str) -> Optional[Any]:
        """Return the cached payload, or None on miss or expiry."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            if entry.is_expired(self._clock()):
                self._drop(key)
                self.misses += 1
                return None
            self.hits += 1
            return entry.payload

    def set(self, user_id: str, family: str, key: str, payload: Any) -> None:
        self._check_family(family)
        with self._lock:
            self._store(user_id, family, key, payload)

    def _store(self, user_id: str, family: str, key: str, payload: Any) -> None:
        self._entries[key] = CacheEntry(
            key=key,
            payload=payload,
            inserted_at=self._clock(),
            ttl=self.ttls[family],
            user_id=user_id,
            family=family,
        )
        self._index.setdefault((user_id, family), set()).add(key)

    def _drop(self, key: str) -> None:
        entry = self._entries.pop(key, None)
        if entry is not None:
            keys = self._index.get((entry.user_id, entry.family))
            if keys is not None:
                keys.discard(key)

    def get_or_load(self, user_id: str, family: str, key: str, loader: Callable[[], Any]) -> Any:
        """
        Return the cached payload or load, cache and return it.

        The loaded value is only cached if no invalidation of the family
        happened while the loader was running.
        """
        self._check_family(family)
        payload = self.get(key)
        if payload is not None:
            return payload

        with self._lock:
            generation = self._generations.get((user_id, family), 0)

        payload = loader()

        with self._lock:
            if self._generations.get((user_id, family), 0) == generation:
                self._store(user_id, family, key, payload)
        return payload

    def invalidate(self, user_id: str, family: str) -> int:
        """
        Drop every entry of the user's family.

        Returns:
            Number of entries removed

        Raises:
            CacheInvalidationError: Unknown family
        """
        self._check_family(family)
        with self._lock:
            pair = (user_id, family)
            self._generations[pair] = self._generations.get(pair, 0) + 1
            keys = self._index.pop(pair, set())
            for key in keys:
                self._entries.pop(key, None)

        logger.debug("cache_invalidated", user_id=user_id, family=family, removed=len(keys))
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            for pair in list(self._index):
                self._generations[pair] = self._generations.get(pair, 0) + 1
            self._entries.clear()
            self._index.clear()

    def stats(self) -> dict:
        with self._lock:
            return {"entries": len(self._entries), "hits": self.hits, "misses": self.misses}
