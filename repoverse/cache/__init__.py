"""
In-memory result cache.

Short-TTL, per-process cache for per-user derived sets with synchronous,
family-scoped invalidation.

Usage:
    from repoverse.cache import ResultCache, CacheKeys

    cache = ResultCache()
    cache.invalidate(user_id, CacheKeys.FAMILY_SEEN)
"""

from repoverse.cache.cache_keys import CacheKeys
from repoverse.cache.result_cache import CacheEntry, CacheInvalidationError, ResultCache

__all__ = [
    "ResultCache",
    "CacheEntry",
    "CacheKeys",
    "CacheInvalidationError",
]
