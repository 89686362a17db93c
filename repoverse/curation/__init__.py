"""
Offline curation pipeline.

Usage:
    from repoverse.api import GitHubFetcher
    from repoverse.curation import CurationJob

    report = CurationJob(GitHubFetcher()).run_cluster("frontend")
"""

from .curation_job import (
    CurationJob,
    CurationReport,
    rank_candidates,
    rotation_priority,
    sweep_stale,
)
from .queries import cluster_queries, facet_queries, facet_values, parse_facet

__all__ = [
    "CurationJob",
    "CurationReport",
    "rank_candidates",
    "rotation_priority",
    "sweep_stale",
    "cluster_queries",
    "facet_queries",
    "facet_values",
    "parse_facet",
]
