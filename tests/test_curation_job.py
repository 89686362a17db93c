"""
Tests for the curation job: ranking, idempotent upserts, pruning,
cancellation, facet passes and the staleness sweep.
"""

import itertools
from datetime import timedelta

import pytest

from factories import NOW, FakeFetcher, api_item
from repoverse.api import CurationCancelled, SourceFetchError
from repoverse.cache import ResultCache
from repoverse.constants import CLUSTER_CATALOGUE, CLUSTER_NAMES, MAX_MEMBERSHIP_TAGS
from repoverse.curation import (
    CurationJob,
    cluster_queries,
    rank_candidates,
    rotation_priority,
    sweep_stale,
)
from repoverse.curation.curation_job import membership_tags
from repoverse.db import db
from repoverse.models import Cluster, ClusterMembership, Repo
from repoverse.parsing import normalize_repo
from repoverse.services import InteractionService


def _job(fetcher, **kwargs):
    return CurationJob(fetcher, now=NOW, **kwargs)


def _member_ids(cluster_name):
    with db.session() as session:
        rows = (
            session.query(ClusterMembership.repo_id)
            .filter(ClusterMembership.cluster_name == cluster_name)
            .all()
        )
        return sorted(row.repo_id for row in rows)


def _scores():
    with db.session() as session:
        return {repo.id: repo.scores_dict() for repo in session.query(Repo).all()}


class TestRotationPriority:
    def test_deterministic_within_epoch(self):
        a = rotation_priority("frontend", 42, NOW, 7)
        b = rotation_priority("frontend", 42, NOW + timedelta(hours=1), 7)
        assert a == b
        assert 0 <= a < 2**31

    def test_depends_on_cluster(self):
        values = {rotation_priority(name, 42, NOW, 7) for name in CLUSTER_NAMES}
        assert len(values) > 1

    def test_reshuffles_next_epoch(self):
        this_week = [rotation_priority("frontend", i, NOW, 7) for i in range(1, 6)]
        next_week = [rotation_priority("frontend", i, NOW + timedelta(days=7), 7) for i in range(1, 6)]
        assert this_week != next_week


class TestRankCandidates:
    def test_tag_overlap_beats_id(self):
        plain = normalize_repo(
            api_item(3, topics=[], description="A small utility written for the web")
        )
        rich = normalize_repo(
            api_item(5, topics=["react", "typescript", "tutorial"], description="A small utility written for the web")
        )

        ranked = rank_candidates([plain, rich], "frontend")

        assert [c.record["id"] for c in ranked] == [5, 3]
        assert ranked[0].tag_overlap > ranked[1].tag_overlap

    def test_combined_score_formula(self):
        record = normalize_repo(api_item(1))
        candidate = rank_candidates([record], "frontend")[0]
        cluster_tags = CLUSTER_CATALOGUE["frontend"]["tags"]

        expected = round(
            candidate.quality_score * 0.7 + candidate.tag_overlap / len(cluster_tags) * 100 * 0.3, 4
        )
        assert candidate.combined_score == expected
        assert candidate.quality_score == 100.0

    def test_quality_then_id_tie_break(self):
        records = [
            normalize_repo(api_item(9)),
            normalize_repo(api_item(7, stars=20000)),
            normalize_repo(api_item(8)),
        ]
        ranked = rank_candidates(records, "frontend")
        assert [c.record["id"] for c in ranked] == [8, 9, 7]

    def test_membership_tags_lead_with_matches(self):
        candidate = rank_candidates([normalize_repo(api_item(1))], "frontend")[0]
        tags = membership_tags(candidate)

        assert tags[: len(candidate.matched_cluster_tags)] == candidate.matched_cluster_tags
        assert len(tags) == len(set(tags))
        assert len(tags) <= MAX_MEMBERSHIP_TAGS


class TestRunCluster:
    def test_persists_repos_and_memberships(self, test_db):
        fetcher = FakeFetcher(default=[api_item(i) for i in range(1, 4)])

        report = _job(fetcher).run_cluster("frontend")

        assert report.upserted == 3
        assert report.unique == 3
        assert not report.cancelled
        assert _member_ids("frontend") == [1, 2, 3]
        with db.session() as session:
            cluster = session.get(Cluster, "frontend")
            assert cluster.repo_count == 3
            assert cluster.last_curated_at is not None
            repo = session.get(Repo, 1)
            assert repo.primary_cluster == "frontend"
            assert repo.recommendation_score > 0

    def test_rerun_is_idempotent(self, test_db):
        fetcher = FakeFetcher(default=[api_item(i) for i in range(1, 6)])
        job = _job(fetcher)

        job.run_cluster("frontend")
        first = _scores()
        job.run_cluster("frontend")

        assert _member_ids("frontend") == [1, 2, 3, 4, 5]
        assert _scores() == first
        with db.session() as session:
            assert session.query(ClusterMembership).count() == 5
            assert session.query(Repo).count() == 5

    def test_top_k(self, test_db):
        items = [api_item(1, stars=20000)] + [api_item(i) for i in range(2, 6)]

        _job(FakeFetcher(default=items), top_k=3).run_cluster("frontend")

        assert _member_ids("frontend") == [2, 3, 4]

    def test_prunes_unselected_memberships(self, test_db):
        _job(FakeFetcher(default=[api_item(i) for i in range(1, 5)])).run_cluster("frontend")

        report = _job(FakeFetcher(default=[api_item(1), api_item(2)])).run_cluster("frontend")

        assert report.pruned == 2
        assert _member_ids("frontend") == [1, 2]
        with db.session() as session:
            # Pruning drops memberships, not repositories
            assert session.query(Repo).count() == 4

    def test_failed_query_skips_pruning(self, test_db):
        _job(FakeFetcher(default=[api_item(i) for i in range(1, 4)])).run_cluster("frontend")

        first_query = cluster_queries("frontend", 12)[0]
        fetcher = FakeFetcher(
            responses={first_query: SourceFetchError("HTTP 502")},
            default=[api_item(1)],
        )
        report = _job(fetcher, max_queries=12).run_cluster("frontend")

        assert report.queries_failed == 1
        assert report.pruned == 0
        assert _member_ids("frontend") == [1, 2, 3]

    def test_rejected_candidates_are_counted(self, test_db):
        items = [
            api_item(1),
            api_item(2, stars=10),
            api_item(3, pushed_days_ago=500),
        ]
        report = _job(FakeFetcher(default=items)).run_cluster("frontend")

        assert report.rejected["min_stars"] == 1
        assert report.rejected["stale"] == 1
        assert _member_ids("frontend") == [1]

    def test_cancellation_persists_nothing(self, test_db):
        queries = cluster_queries("frontend", 12)
        fetcher = FakeFetcher(
            responses={queries[1]: CurationCancelled("job cancelled")},
            default=[api_item(1)],
        )

        report = _job(fetcher, max_queries=12).run_cluster("frontend")

        assert report.cancelled
        assert report.upserted == 0
        assert _member_ids("frontend") == []

    def test_deadline_cancels(self, test_db):
        ticks = itertools.count(0, 100)
        job = _job(FakeFetcher(default=[api_item(1)]), timeout_seconds=10, clock=lambda: next(ticks))

        report = job.run_cluster("frontend")

        assert report.cancelled
        assert report.queries_run == 0
        assert _member_ids("frontend") == []

    def test_unknown_cluster(self, test_db):
        with pytest.raises(ValueError, match="Unknown cluster"):
            _job(FakeFetcher()).run_cluster("gamedev")


class TestRunFacet:
    def test_facet_joins_assigned_cluster(self, test_db):
        _job(FakeFetcher(default=[api_item(1), api_item(2)])).run_cluster("frontend")

        report = _job(FakeFetcher(default=[api_item(3)])).run_facet("language", "JavaScript")

        assert report.target == "language:JavaScript"
        assert report.pruned == 0
        assert _member_ids("frontend") == [1, 2, 3]

    def test_facet_star_floor(self, test_db):
        report = _job(FakeFetcher(default=[api_item(1, stars=60)])).run_facet("language", "JavaScript")

        assert report.rejected["min_stars"] == 1
        assert _member_ids("frontend") == []


class TestRunAll:
    def test_curates_every_cluster(self, test_db):
        fetcher = FakeFetcher(default=[api_item(1)])

        report = _job(fetcher, max_queries=12).run_all(include_facets=False)

        assert report.target == "all"
        assert not report.cancelled
        assert report.queries_run == sum(len(cluster_queries(name, 12)) for name in CLUSTER_NAMES)
        with db.session() as session:
            curated = session.query(Cluster).filter(Cluster.last_curated_at.isnot(None)).count()
        assert curated == len(CLUSTER_NAMES)

    def test_stops_after_cancellation(self, test_db):
        ticks = itertools.count(0, 100)
        job = _job(FakeFetcher(default=[api_item(1)]), timeout_seconds=10, clock=lambda: next(ticks))

        report = job.run_all()

        assert report.cancelled
        assert report.queries_run == 0
        assert report.upserted == 0


class TestSweepStale:
    def test_removes_stale_repos_and_keeps_history(self, test_db, add_repo):
        add_repo(1, pushed_at=NOW - timedelta(days=3))
        add_repo(2, pushed_at=NOW - timedelta(days=400))
        interactions = InteractionService(ResultCache())
        interactions.like("user-1", 2)

        result = sweep_stale(365, now=NOW)

        assert result["removed"] == 1
        assert result["repo_ids"] == [2]
        assert _member_ids("frontend") == [1]
        with db.session() as session:
            assert session.get(Cluster, "frontend").repo_count == 1
        assert 2 in InteractionService(ResultCache()).seen_ids("user-1")
