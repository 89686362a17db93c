"""
Curation tasks.

Each task builds its own fetcher and job. A pass that fails to fetch
never prunes, so retrying a task is always safe.
"""

from celery import shared_task

from repoverse.logging import get_logger

logger = get_logger("worker.curation")


def _make_job(top_k: int | None = None):
    from repoverse.api import GitHubFetcher
    from repoverse.curation import CurationJob

    return CurationJob(GitHubFetcher(), top_k=top_k)


@shared_task(
    bind=True,
    name="workers.tasks.curation_tasks.curate_all",
    max_retries=1,
    default_retry_delay=900,
)
def curate_all_task(self, include_facets: bool = True, top_k: int | None = None) -> dict:
    """
    Curate every cluster and, optionally, every facet.

    Returns:
        The merged curation report as a dictionary
    """
    logger.info("curate_all_task_started", include_facets=include_facets)

    try:
        report = _make_job(top_k).run_all(include_facets=include_facets)
    except Exception as e:
        logger.error("curate_all_task_failed", error=str(e))
        raise self.retry(exc=e)

    return report.to_dict()


@shared_task(
    bind=True,
    name="workers.tasks.curation_tasks.curate_cluster",
    max_retries=2,
    default_retry_delay=300,
)
def curate_cluster_task(self, cluster_name: str, top_k: int | None = None) -> dict:
    """
    Curate a single cluster.

    Args:
        cluster_name: Catalogue cluster name
        top_k: Optional override of the per-cluster membership cap
    """
    logger.info("curate_cluster_task_started", cluster=cluster_name)

    try:
        report = _make_job(top_k).run_cluster(cluster_name)
    except ValueError:
        logger.error("curate_cluster_task_unknown_cluster", cluster=cluster_name)
        raise
    except Exception as e:
        logger.error("curate_cluster_task_failed", cluster=cluster_name, error=str(e))
        raise self.retry(exc=e)

    return report.to_dict()


@shared_task(
    bind=True,
    name="workers.tasks.curation_tasks.curate_facet",
    max_retries=2,
    default_retry_delay=300,
)
def curate_facet_task(self, kind: str, value: str) -> dict:
    """Curate a single facet, e.g. ("language", "Python")."""
    logger.info("curate_facet_task_started", kind=kind, value=value)

    try:
        report = _make_job().run_facet(kind, value)
    except ValueError:
        logger.error("curate_facet_task_unknown_facet", kind=kind, value=value)
        raise
    except Exception as e:
        logger.error("curate_facet_task_failed", kind=kind, value=value, error=str(e))
        raise self.retry(exc=e)

    return report.to_dict()
