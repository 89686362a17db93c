"""
Ingestion and curation job.

Drives fetch -> normalize -> quality filter -> rank -> score -> assign ->
upsert for each catalogue cluster and each language/goal/project-type
facet. Every write is an upsert keyed by upstream id or (cluster, repo),
so the job is safe to re-run and to run for a single cluster or facet.
"""

import time
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from repoverse.api.github_api import CurationCancelled, SourceFetcher, SourceFetchError, fetch_all
from repoverse.clustering import assign_cluster
from repoverse.config import get_settings
from repoverse.constants import (
    CLUSTER_CATALOGUE,
    CLUSTER_NAMES,
    CURATION_QUALITY_WEIGHT,
    CURATION_TAG_WEIGHT,
    FACET_KINDS,
    FACET_MIN_STARS,
    GENERAL_CLUSTER,
    MAX_MEMBERSHIP_TAGS,
)
from repoverse.db import db
from repoverse.logging import LogContext, get_logger, log_timing
from repoverse.parsing import (
    check_repo_quality,
    curation_quality_score,
    derive_tags,
    normalize_repo,
    rule_reason,
)
from repoverse.repositories import ClusterRepository, MembershipRepository, RepoRepository
from repoverse.scoring import compute_scores, rotation_epoch, rotation_hash

from .queries import cluster_queries, facet_queries, facet_values

logger = get_logger("curation")


@dataclass
class CurationReport:
    """Outcome of one curation run (a single pass or a merged full run)."""

    target: str
    queries_run: int = 0
    queries_failed: int = 0
    fetched: int = 0
    unique: int = 0
    rejected: Dict[str, int] = field(default_factory=dict)
    upserted: int = 0
    pruned: int = 0
    failed_ids: List[int] = field(default_factory=list)
    cancelled: bool = False

    def merge(self, other: "CurationReport") -> None:
        self.queries_run += other.queries_run
        self.queries_failed += other.queries_failed
        self.fetched += other.fetched
        self.unique += other.unique
        for rule, count in other.rejected.items():
            self.rejected[rule] = self.rejected.get(rule, 0) + count
        self.upserted += other.upserted
        self.pruned += other.pruned
        self.failed_ids.extend(other.failed_ids)
        self.cancelled = self.cancelled or other.cancelled

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RankedCandidate:
    record: dict
    tags: List[str]
    matched_cluster_tags: List[str]
    quality_score: float
    tag_overlap: int
    combined_score: float


def rotation_priority(cluster_name: str, repo_id: int, now: datetime, period_days: int) -> int:
    """
    Pseudo-random ordering key, stable within one rotation epoch.

    The epoch advances every period_days, reshuffling tie order for every
    cluster at once.
    """
    return rotation_hash(cluster_name, repo_id, rotation_epoch(now, period_days))


def rank_candidates(records: List[dict], cluster_name: str) -> List[RankedCandidate]:
    """
    Score candidates against a cluster's configured tags.

    combined = quality x 0.7 + overlap / len(cluster tags) x 100 x 0.3;
    ordered by combined, then overlap, then quality, then repo id.
    """
    cluster_tags = CLUSTER_CATALOGUE.get(cluster_name, {}).get("tags", [])
    ranked = []

    for record in records:
        tags = derive_tags(record, cluster_name)
        have = set(tags) | {t.lower() for t in record.get("topics") or []}
        matched = [tag for tag in cluster_tags if tag in have]
        quality = curation_quality_score(int(record.get("stars") or 0))
        tag_ratio = len(matched) / len(cluster_tags) if cluster_tags else 0.0
        ranked.append(
            RankedCandidate(
                record=record,
                tags=tags,
                matched_cluster_tags=matched,
                quality_score=quality,
                tag_overlap=len(matched),
                combined_score=round(
                    quality * CURATION_QUALITY_WEIGHT + tag_ratio * 100 * CURATION_TAG_WEIGHT, 4
                ),
            )
        )

    ranked.sort(key=lambda c: (-c.combined_score, -c.tag_overlap, -c.quality_score, c.record["id"]))
    return ranked


def membership_tags(candidate: RankedCandidate) -> List[str]:
    """Matched cluster tags followed by repository tags, unique, capped."""
    return list(dict.fromkeys(candidate.matched_cluster_tags + candidate.tags))[:MAX_MEMBERSHIP_TAGS]


class CurationJob:
    """
    Batch curation over the cluster catalogue and facets.

    Usage:
        job = CurationJob(GitHubFetcher())
        report = job.run_all()
    """

    def __init__(
        self,
        fetcher: SourceFetcher,
        top_k: Optional[int] = None,
        horizon_days: Optional[int] = None,
        min_stars: Optional[int] = None,
        max_queries: Optional[int] = None,
        timeout_seconds: Optional[int] = None,
        now: Optional[datetime] = None,
        clock: Callable[[], float] = time.time,
    ):
        settings = get_settings()
        self.fetcher = fetcher
        self.top_k = top_k or settings.curation_top_k
        self.horizon_days = horizon_days or settings.staleness_horizon_days
        self.min_stars = min_stars if min_stars is not None else settings.curation_min_stars
        self.max_queries = max_queries or settings.curation_max_queries
        self.timeout_seconds = timeout_seconds or settings.curation_job_timeout_seconds
        self.rotation_period_days = settings.rotation_period_days
        self._fixed_now = now
        self._clock = clock
        self.deadline: Optional[float] = None

    def _now(self) -> datetime:
        return self._fixed_now or datetime.now(timezone.utc)

    def _start(self) -> None:
        if self.deadline is None:
            self.deadline = self._clock() + self.timeout_seconds
            if hasattr(self.fetcher, "deadline"):
                self.fetcher.deadline = self.deadline

    def _check_deadline(self) -> None:
        if self.deadline is not None and self._clock() > self.deadline:
            raise CurationCancelled("job deadline passed")

    # =========================================================================
    # Entry points
    # =========================================================================

    @log_timing("curation_run_all")
    def run_all(self, include_facets: bool = True) -> CurationReport:
        """Curate every catalogue cluster, then every facet, until done or the deadline passes."""
        self._start()
        report = CurationReport(target="all")
        logger.info("curation_started", target="all", clusters=len(CLUSTER_NAMES))

        targets = [("cluster", name) for name in CLUSTER_NAMES]
        if include_facets:
            targets += [(kind, value) for kind in FACET_KINDS for value in facet_values(kind)]

        for kind, value in targets:
            if kind == "cluster":
                part = self.run_cluster(value)
            else:
                part = self.run_facet(kind, value)
            report.merge(part)
            if part.cancelled:
                break

        logger.info("curation_finished", **_summary(report))
        return report

    def run_cluster(self, cluster_name: str) -> CurationReport:
        """
        Curate one catalogue cluster and prune its non-selected memberships.

        Raises:
            ValueError: cluster_name is not in the catalogue
        """
        if cluster_name not in CLUSTER_CATALOGUE:
            raise ValueError(f"Unknown cluster: {cluster_name}")
        self._start()
        report = CurationReport(target=f"cluster:{cluster_name}")

        with LogContext(cluster=cluster_name):
            logger.info("cluster_pass_started")
            queries = cluster_queries(cluster_name, self.max_queries)
            try:
                records = self._collect(queries, self.min_stars, report)
            except CurationCancelled as e:
                report.cancelled = True
                logger.warning("cluster_pass_cancelled", reason=str(e))
                return report

            selected = rank_candidates(records, cluster_name)[: self.top_k]
            with db.session() as session:
                ClusterRepository(session).ensure_catalogue()
                kept = self._persist(session, selected, lambda c: cluster_name, report)

                if report.queries_failed:
                    logger.warning("prune_skipped", failed_queries=report.queries_failed)
                else:
                    report.pruned = MembershipRepository(session).prune(cluster_name, kept)
                ClusterRepository(session).update_stats(cluster_name)

            logger.info("cluster_pass_finished", **_summary(report))
        return report

    def run_facet(self, kind: str, value: str) -> CurationReport:
        """
        Curate one facet. Survivors join the cluster chosen by the assigner.

        Facet passes never prune: they add to clusters they do not own.
        """
        self._start()
        report = CurationReport(target=f"{kind}:{value}")

        with LogContext(facet=f"{kind}:{value}"):
            logger.info("facet_pass_started")
            queries = facet_queries(kind, value, self.max_queries)
            min_stars = FACET_MIN_STARS.get(kind, self.min_stars)
            try:
                records = self._collect(queries, min_stars, report)
            except CurationCancelled as e:
                report.cancelled = True
                logger.warning("facet_pass_cancelled", reason=str(e))
                return report

            by_cluster: Dict[str, List[dict]] = {}
            for record in records:
                by_cluster.setdefault(assign_cluster(record), []).append(record)

            with db.session() as session:
                clusters = ClusterRepository(session)
                clusters.ensure_catalogue()
                for cluster_name in sorted(by_cluster):
                    ranked = rank_candidates(by_cluster[cluster_name], cluster_name)
                    self._persist(session, ranked, lambda c, name=cluster_name: name, report)
                    clusters.update_stats(cluster_name, curated=False)

            logger.info("facet_pass_finished", **_summary(report))
        return report

    # =========================================================================
    # Pipeline steps
    # =========================================================================

    def _collect(self, queries: List[str], min_stars: int, report: CurationReport) -> List[dict]:
        """Fetch, deduplicate by id, normalize and quality-filter candidates."""
        raw: Dict[int, dict] = {}

        for query in queries:
            self._check_deadline()
            report.queries_run += 1
            try:
                items = fetch_all(self.fetcher, query)
            except SourceFetchError as e:
                report.queries_failed += 1
                logger.warning("query_failed", query=query, error=str(e))
                continue
            report.fetched += len(items)
            for item in items:
                if item.get("id") is not None:
                    raw.setdefault(int(item["id"]), item)

        report.unique = len(raw)
        now = self._now()
        survivors = []

        for repo_id in sorted(raw):
            record = normalize_repo(raw[repo_id])
            if record is None:
                continue
            passed, reasons = check_repo_quality(record, min_stars, self.horizon_days, now)
            if not passed:
                for reason in reasons:
                    report.rejected[reason] = report.rejected.get(reason, 0) + 1
                logger.debug(
                    "candidate_rejected",
                    repo=record["full_name"],
                    rules=reasons,
                    reasons=[rule_reason(name) for name in reasons],
                )
                continue
            survivors.append(record)

        return survivors

    def _persist(
        self,
        session: Session,
        candidates: List[RankedCandidate],
        cluster_for: Callable[[RankedCandidate], str],
        report: CurationReport,
    ) -> set:
        """
        Upsert repositories and memberships, one SAVEPOINT per candidate.

        Returns:
            Ids whose membership was written
        """
        repos = RepoRepository(session)
        memberships = MembershipRepository(session)
        now = self._now()
        written = set()

        for candidate in candidates:
            record = candidate.record
            cluster_name = cluster_for(candidate) or GENERAL_CLUSTER
            try:
                with session.begin_nested():
                    repos.upsert(record, compute_scores(record, now), assign_cluster(record))
                    memberships.upsert(
                        cluster_name=cluster_name,
                        repo_id=record["id"],
                        tags=membership_tags(candidate),
                        quality_score=candidate.quality_score,
                        tag_overlap=candidate.tag_overlap,
                        combined_score=candidate.combined_score,
                        rotation_priority=rotation_priority(
                            cluster_name, record["id"], now, self.rotation_period_days
                        ),
                    )
            except SQLAlchemyError as e:
                report.failed_ids.append(record["id"])
                logger.error("upsert_failed", repo_id=record["id"], error=str(e))
                continue
            written.add(record["id"])
            report.upserted += 1

        return written


def _summary(report: CurationReport) -> dict:
    return {
        "target": report.target,
        "queries_run": report.queries_run,
        "queries_failed": report.queries_failed,
        "unique": report.unique,
        "rejected": sum(report.rejected.values()),
        "upserted": report.upserted,
        "pruned": report.pruned,
        "failed": len(report.failed_ids),
        "cancelled": report.cancelled,
    }


def sweep_stale(horizon_days: Optional[int] = None, now: Optional[datetime] = None) -> dict:
    """
    Delete repositories past the staleness horizon and refresh cluster counts.

    Returns:
        Dictionary with the removed ids and count
    """
    horizon_days = horizon_days or get_settings().staleness_horizon_days
    with db.session() as session:
        removed = RepoRepository(session).sweep_stale(horizon_days, now)
        ClusterRepository(session).refresh_counts()

    logger.info("staleness_sweep_finished", removed=len(removed), horizon_days=horizon_days)
    return {"removed": len(removed), "repo_ids": removed, "horizon_days": horizon_days}
