"""Repository table access: upserts keyed by upstream id and staleness sweeps."""

from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import or_, select

from repoverse.models import ClusterMembership, MembershipTag, Repo, RepoTopic
from repoverse.scoring import ScoreSet

from .base import BaseRepository

# Normalized record keys copied verbatim onto Repo columns
_REPO_FIELDS = (
    "name",
    "full_name",
    "description",
    "owner_login",
    "owner_avatar",
    "stars",
    "forks",
    "watchers",
    "open_issues",
    "language",
    "license",
    "html_url",
    "homepage_url",
    "created_at",
    "updated_at",
    "pushed_at",
)


class RepoRepository(BaseRepository[Repo]):
    """Repository for Repo rows and their topic index."""

    model = Repo

    def upsert(self, record: dict[str, Any], scores: ScoreSet, primary_cluster: str) -> Repo:
        """
        Insert or update a repository by its upstream id.

        Counts, timestamps, scores and the topic index are overwritten on
        every call; first_ingested_at is kept from the first insert.

        Args:
            record: Normalized repository dict (must carry "id")
            scores: ScoreSet computed for the same record
            primary_cluster: Cluster chosen by the rule table

        Returns:
            The persisted Repo
        """
        repo = self.get_by_id(record["id"])
        values = {field: record.get(field) for field in _REPO_FIELDS}
        values["stars"] = values["stars"] or 0
        values["forks"] = values["forks"] or 0
        values["watchers"] = values["watchers"] or 0
        values["open_issues"] = values["open_issues"] or 0
        topics = _unique_topics(record.get("topics") or [])

        if repo is None:
            repo = Repo(id=record["id"], **values)
            self.session.add(repo)
        else:
            for key, value in values.items():
                setattr(repo, key, value)
            repo.last_ingested_at = datetime.now(timezone.utc)

        repo.topics = topics
        repo.primary_cluster = primary_cluster
        for column, value in scores.as_columns().items():
            setattr(repo, column, value)

        self._sync_topics(repo, topics)
        self.session.flush()
        return repo

    def _sync_topics(self, repo: Repo, topics: list[str]) -> None:
        wanted = set(topics)
        current = {row.topic: row for row in repo.topic_rows}
        for topic, row in current.items():
            if topic not in wanted:
                repo.topic_rows.remove(row)
        for topic in topics:
            if topic not in current:
                repo.topic_rows.append(RepoTopic(topic=topic))

    def batch_get(self, repo_ids: list[int]) -> dict[int, Repo]:
        """
        Batch get repositories in a single query.

        Returns:
            Dictionary mapping repo id to Repo (missing ids are absent)
        """
        if not repo_ids:
            return {}
        rows = self.session.query(Repo).filter(Repo.id.in_(set(repo_ids))).all()
        return {repo.id: repo for repo in rows}

    def top_by_score(self, limit: int = 20, language: str | None = None) -> list[Repo]:
        query = self.session.query(Repo)
        if language:
            query = query.filter(Repo.language == language)
        return query.order_by(Repo.recommendation_score.desc(), Repo.id).limit(limit).all()

    def stale_ids(self, horizon_days: int, now: datetime | None = None) -> list[int]:
        """Ids of repositories whose last push is older than the horizon (or unknown)."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=horizon_days)
        rows = (
            self.session.query(Repo.id)
            .filter(or_(Repo.pushed_at.is_(None), Repo.pushed_at < cutoff))
            .order_by(Repo.id)
            .all()
        )
        return [row.id for row in rows]

    def sweep_stale(self, horizon_days: int, now: datetime | None = None) -> list[int]:
        """
        Hard-delete repositories past the staleness horizon.

        Memberships, their tag rows and topic rows go with them; seen history is kept.

        Returns:
            Ids of the deleted repositories
        """
        stale = self.stale_ids(horizon_days, now)
        if not stale:
            return []
        doomed = select(ClusterMembership.id).where(ClusterMembership.repo_id.in_(stale))
        self.session.query(MembershipTag).filter(MembershipTag.membership_id.in_(doomed)).delete(
            synchronize_session=False
        )
        self.session.query(ClusterMembership).filter(
            ClusterMembership.repo_id.in_(stale)
        ).delete(synchronize_session=False)
        self.session.query(RepoTopic).filter(RepoTopic.repo_id.in_(stale)).delete(
            synchronize_session=False
        )
        self.session.query(Repo).filter(Repo.id.in_(stale)).delete(synchronize_session=False)
        self.session.flush()
        self.session.expire_all()
        return stale


def _unique_topics(topics: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for topic in topics:
        if topic:
            seen.setdefault(str(topic).strip().lower(), None)
    return [t for t in seen if t]
