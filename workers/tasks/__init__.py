"""Celery task definitions."""

from workers.tasks.curation_tasks import (
    curate_all_task,
    curate_cluster_task,
    curate_facet_task,
)
from workers.tasks.staleness_tasks import sweep_stale_task

__all__ = [
    # Curation
    "curate_all_task",
    "curate_cluster_task",
    "curate_facet_task",
    # Staleness
    "sweep_stale_task",
]
