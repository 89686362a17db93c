"""Tests for the in-memory result cache."""

import pytest

from repoverse.cache import CacheInvalidationError, CacheKeys, ResultCache

SEEN = CacheKeys.FAMILY_SEEN
SAVED_LIKED = CacheKeys.FAMILY_SAVED_LIKED


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ResultCache(ttls={SEEN: 300, SAVED_LIKED: 120}, clock=clock)


class TestCacheKeys:
    def test_keys_are_scoped_by_user_and_family(self):
        assert CacheKeys.seen_ids("42") == "user:42:seen_ids"
        assert CacheKeys.saved_ids("42") == "user:42:saved_liked:saved"
        assert CacheKeys.liked_ids("42") == "user:42:saved_liked:liked"
        assert CacheKeys.seen_ids("42").startswith(CacheKeys.user_pattern("42"))


class TestResultCache:
    def test_set_and_get(self, cache):
        key = CacheKeys.seen_ids("u1")
        cache.set("u1", SEEN, key, frozenset({1, 2}))
        assert cache.get(key) == frozenset({1, 2})
        assert cache.stats()["hits"] == 1

    def test_miss(self, cache):
        assert cache.get("user:u1:seen_ids") is None
        assert cache.stats()["misses"] == 1

    def test_ttl_per_family(self, cache, clock):
        cache.set("u1", SEEN, CacheKeys.seen_ids("u1"), "seen")
        cache.set("u1", SAVED_LIKED, CacheKeys.saved_ids("u1"), "saved")

        clock.now = 150
        assert cache.get(CacheKeys.seen_ids("u1")) == "seen"
        assert cache.get(CacheKeys.saved_ids("u1")) is None

        clock.now = 300
        assert cache.get(CacheKeys.seen_ids("u1")) is None

    def test_get_or_load_caches(self, cache):
        calls = []

        def loader():
            calls.append(1)
            return frozenset({7})

        key = CacheKeys.seen_ids("u1")
        assert cache.get_or_load("u1", SEEN, key, loader) == frozenset({7})
        assert cache.get_or_load("u1", SEEN, key, loader) == frozenset({7})
        assert len(calls) == 1

    def test_invalidate_family_only(self, cache):
        cache.set("u1", SEEN, CacheKeys.seen_ids("u1"), "seen")
        cache.set("u1", SAVED_LIKED, CacheKeys.saved_ids("u1"), "saved")
        cache.set("u1", SAVED_LIKED, CacheKeys.liked_ids("u1"), "liked")
        cache.set("u2", SAVED_LIKED, CacheKeys.saved_ids("u2"), "other user")

        removed = cache.invalidate("u1", SAVED_LIKED)

        assert removed == 2
        assert cache.get(CacheKeys.saved_ids("u1")) is None
        assert cache.get(CacheKeys.liked_ids("u1")) is None
        assert cache.get(CacheKeys.seen_ids("u1")) == "seen"
        assert cache.get(CacheKeys.saved_ids("u2")) == "other user"

    def test_load_racing_invalidation_is_not_cached(self, cache):
        key = CacheKeys.seen_ids("u1")

        def loader():
            # A write lands while the read is in flight
            cache.invalidate("u1", SEEN)
            return frozenset({1})

        assert cache.get_or_load("u1", SEEN, key, loader) == frozenset({1})
        assert cache.get(key) is None

    def test_unknown_family(self, cache):
        with pytest.raises(CacheInvalidationError):
            cache.invalidate("u1", "recommendations")
        with pytest.raises(CacheInvalidationError):
            cache.set("u1", "recommendations", "user:u1:recommendations", [])

    def test_clear(self, cache):
        cache.set("u1", SEEN, CacheKeys.seen_ids("u1"), "seen")
        cache.clear()
        assert cache.get(CacheKeys.seen_ids("u1")) is None
        assert cache.stats()["entries"] == 0

    def test_default_ttls_from_settings(self):
        cache = ResultCache()
        assert set(cache.ttls) == set(CacheKeys.FAMILIES)
