"""
Tests for the Celery tasks and beat schedule.

Tasks are called directly, which runs them in-process; a retry raised
outside a worker re-raises the original exception.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from factories import NOW, FakeFetcher, api_item
from repoverse.curation import CurationJob
from workers import celery_app
from workers import schedules
from workers.tasks import curation_tasks
from workers.tasks import curate_cluster_task, curate_facet_task, sweep_stale_task


@pytest.fixture
def fake_job(monkeypatch):
    """Point the curation tasks at an in-memory fetcher."""

    def install(fetcher):
        monkeypatch.setattr(
            curation_tasks,
            "_make_job",
            lambda top_k=None: CurationJob(fetcher, top_k=top_k, now=NOW),
        )

    return install


class TestCurationTasks:
    def test_curate_cluster(self, test_db, fake_job):
        fake_job(FakeFetcher(default=[api_item(1), api_item(2)]))

        result = curate_cluster_task("frontend")

        assert result["target"] == "cluster:frontend"
        assert result["upserted"] == 2
        assert result["cancelled"] is False

    def test_curate_cluster_top_k(self, test_db, fake_job):
        fake_job(FakeFetcher(default=[api_item(i) for i in range(1, 5)]))

        result = curate_cluster_task("frontend", top_k=1)

        assert result["upserted"] == 1

    def test_unknown_cluster_is_not_retried(self, test_db, fake_job):
        fake_job(FakeFetcher())
        with pytest.raises(ValueError):
            curate_cluster_task("nonexistent")

    def test_unexpected_failure_retries(self, test_db, fake_job):
        fake_job(FakeFetcher(default=RuntimeError("connection pool exhausted")))
        with pytest.raises(RuntimeError):
            curate_cluster_task("frontend")

    def test_curate_facet(self, test_db, fake_job):
        fake_job(FakeFetcher(default=[api_item(7)]))

        result = curate_facet_task("language", "JavaScript")

        assert result["target"] == "language:JavaScript"
        assert result["upserted"] == 1

    def test_unknown_facet(self, test_db, fake_job):
        fake_job(FakeFetcher())
        with pytest.raises(ValueError):
            curate_facet_task("language", "COBOL")


class TestStalenessTask:
    def test_sweep(self, test_db, add_repo):
        now = datetime.now(timezone.utc)
        add_repo(1, pushed_at=now - timedelta(days=1))
        add_repo(2, pushed_at=now - timedelta(days=800))

        result = sweep_stale_task(365)

        assert result["removed"] == 1
        assert result["repo_ids"] == [2]


class TestCeleryConfig:
    def test_routes(self):
        routes = celery_app.conf.task_routes
        assert routes["workers.tasks.curation_tasks.*"]["queue"] == "curation"
        assert routes["workers.tasks.staleness_tasks.*"]["queue"] == "staleness"
        assert celery_app.conf.task_serializer == "json"

    def test_beat_schedule(self):
        schedule = schedules.get_beat_schedule()
        assert schedule["sweep-stale-repos-daily"]["task"] == "workers.tasks.staleness_tasks.sweep_stale"
        assert schedule["curate-all-daily"]["task"] == "workers.tasks.curation_tasks.curate_all"

    def test_scheduler_disabled(self, monkeypatch):
        monkeypatch.setattr(schedules.settings, "enable_scheduler", False)
        app = SimpleNamespace(conf=SimpleNamespace())

        schedules.apply_beat_schedule(app)

        assert not hasattr(app.conf, "beat_schedule")

    def test_scheduler_enabled(self, monkeypatch):
        monkeypatch.setattr(schedules.settings, "enable_scheduler", True)
        app = SimpleNamespace(conf=SimpleNamespace())

        schedules.apply_beat_schedule(app)

        assert set(app.conf.beat_schedule) == {"sweep-stale-repos-daily", "curate-all-daily"}
