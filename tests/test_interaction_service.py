"""
Tests for the interaction service: seen history, saved/liked sets and
read-after-write cache invalidation.
"""

from datetime import timedelta

import pytest

from factories import NOW
from repoverse.cache import CacheInvalidationError, ResultCache
from repoverse.curation import sweep_stale
from repoverse.services import InteractionService, UnknownRepositoryError


class BrokenCache(ResultCache):
    """Cache whose invalidation always fails."""

    def invalidate(self, user_id, family):
        raise RuntimeError("cache unavailable")


@pytest.fixture
def interactions(test_db, cache):
    return InteractionService(cache)


@pytest.fixture
def repos(add_repo):
    for repo_id in (1, 2, 3):
        add_repo(repo_id)
    return [1, 2, 3]


class TestWrites:
    def test_like_is_visible_immediately(self, interactions, repos):
        # Prime the cache with the empty set
        assert interactions.seen_ids("user-1") == frozenset()
        assert interactions.liked_ids("user-1") == ()

        assert interactions.like("user-1", 1) is True

        assert 1 in interactions.seen_ids("user-1")
        assert interactions.liked_ids("user-1") == (1,)

    def test_like_twice(self, interactions, repos):
        assert interactions.like("user-1", 1) is True
        assert interactions.like("user-1", 1) is False
        assert interactions.stats("user-1")["liked"] == 2
        assert interactions.stats("user-1")["liked_now"] == 1

    def test_skip_marks_seen_only(self, interactions, repos):
        interactions.skip("user-1", 2)

        assert interactions.seen_ids("user-1") == frozenset({2})
        assert interactions.saved_ids("user-1") == ()
        assert interactions.liked_ids("user-1") == ()

    def test_view(self, interactions, repos):
        interactions.view("user-1", 3)
        assert interactions.seen_ids("user-1") == frozenset({3})

    def test_unsave_keeps_seen(self, interactions, repos):
        interactions.save("user-1", 1)
        assert interactions.saved_ids("user-1") == (1,)

        assert interactions.unsave("user-1", 1) is True

        assert interactions.saved_ids("user-1") == ()
        assert 1 in interactions.seen_ids("user-1")

    def test_unlike_without_like(self, interactions, repos):
        assert interactions.unlike("user-1", 2) is False

    def test_users_are_isolated(self, interactions, repos):
        interactions.like("user-1", 1)
        assert interactions.seen_ids("user-2") == frozenset()

    def test_unknown_repository(self, interactions, repos):
        with pytest.raises(UnknownRepositoryError):
            interactions.like("user-1", 999)
        assert interactions.seen_ids("user-1") == frozenset()
        assert interactions.stats("user-1")["liked"] == 0

    def test_apply_dispatch(self, interactions, repos):
        assert interactions.apply("user-1", 2, "saved") is True
        assert interactions.saved_ids("user-1") == (2,)
        assert interactions.apply("user-1", 2, "unsaved") is True
        assert interactions.saved_ids("user-1") == ()

    def test_apply_unknown_action(self, interactions, repos):
        with pytest.raises(ValueError, match="Unknown action"):
            interactions.apply("user-1", 1, "starred")

    def test_failed_invalidation_rolls_back(self, test_db, repos):
        broken = InteractionService(BrokenCache())

        with pytest.raises(CacheInvalidationError):
            broken.like("user-1", 1)

        fresh = InteractionService(ResultCache())
        assert fresh.seen_ids("user-1") == frozenset()
        assert fresh.liked_ids("user-1") == ()


class TestReads:
    def test_saved_most_recent_first(self, interactions, repos):
        for repo_id in (1, 2, 3):
            interactions.save("user-1", repo_id)

        assert interactions.saved_ids("user-1") == (3, 2, 1)
        assert [repo["id"] for repo in interactions.saved_repos("user-1")] == [3, 2, 1]

    def test_liked_repos_payload(self, interactions, repos):
        interactions.like("user-1", 2)

        (repo,) = interactions.liked_repos("user-1")
        assert repo["id"] == 2
        assert repo["full_name"] == "octo/repo-2"
        assert "recommendation" in repo["scores"]

    def test_swept_repos_are_omitted(self, interactions, add_repo):
        add_repo(1)
        add_repo(2, pushed_at=NOW - timedelta(days=400))
        interactions.save("user-1", 1)
        interactions.save("user-1", 2)

        sweep_stale(365, now=NOW)

        assert [repo["id"] for repo in interactions.saved_repos("user-1")] == [1]

    def test_stats(self, interactions, repos):
        interactions.view("user-1", 1)
        interactions.view("user-1", 2)
        interactions.save("user-1", 2)
        interactions.skip("user-1", 3)

        assert interactions.stats("user-1") == {
            "viewed": 2,
            "liked": 0,
            "saved": 1,
            "skipped": 1,
            "saved_now": 1,
            "liked_now": 0,
        }
