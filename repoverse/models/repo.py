"""
Repository SQLAlchemy models.

A Repo row is the canonical record for one upstream GitHub repository,
keyed by the upstream numeric id, with its derived score columns.
"""

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Dict, List, Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .cluster import ClusterMembership


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Repo(Base):
    """
    Upstream repository with its ScoreSet.

    Attributes:
        id: Upstream GitHub repository id (immutable, never autogenerated)
        primary_cluster: Cluster chosen by the rule table at last ingestion
        recommendation_score: Weighted composite of the five component scores
        first_ingested_at / last_ingested_at: Local bookkeeping timestamps
    """

    __tablename__ = "repositories"
    __table_args__ = (
        Index("ix_repositories_recommendation_score", "recommendation_score"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    name: Mapped[str] = mapped_column(String(255))
    full_name: Mapped[str] = mapped_column(String(512), index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    owner_login: Mapped[str] = mapped_column(String(255), index=True)
    owner_avatar: Mapped[Optional[str]] = mapped_column(String(512))
    stars: Mapped[int] = mapped_column(Integer, default=0)
    forks: Mapped[int] = mapped_column(Integer, default=0)
    watchers: Mapped[int] = mapped_column(Integer, default=0)
    open_issues: Mapped[int] = mapped_column(Integer, default=0)
    language: Mapped[Optional[str]] = mapped_column(String(64), index=True)
    topics: Mapped[List[str]] = mapped_column(JSON, default=list)
    license: Mapped[Optional[str]] = mapped_column(String(255))
    html_url: Mapped[Optional[str]] = mapped_column(String(512))
    homepage_url: Mapped[Optional[str]] = mapped_column(String(512))
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    pushed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), index=True)

    primary_cluster: Mapped[str] = mapped_column(String(64), index=True)

    # ScoreSet
    popularity_score: Mapped[float] = mapped_column(Float, default=0.0)
    activity_score: Mapped[float] = mapped_column(Float, default=0.0)
    freshness_score: Mapped[float] = mapped_column(Float, default=0.0)
    quality_score: Mapped[float] = mapped_column(Float, default=0.0)
    trending_score: Mapped[float] = mapped_column(Float, default=0.0)
    recommendation_score: Mapped[float] = mapped_column(Float, default=0.0)

    first_ingested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    last_ingested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    # Relationships
    memberships: Mapped[List["ClusterMembership"]] = relationship(
        "ClusterMembership",
        back_populates="repo",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    topic_rows: Mapped[List["RepoTopic"]] = relationship(
        "RepoTopic",
        back_populates="repo",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def is_stale(self, horizon_days: int, now: datetime | None = None) -> bool:
        """
        Check whether the last push is older than the staleness horizon.

        Repositories with no push timestamp are treated as stale.
        """
        if not self.pushed_at:
            return True
        now = now or _utcnow()
        pushed_at = self.pushed_at
        if pushed_at.tzinfo is None:
            pushed_at = pushed_at.replace(tzinfo=timezone.utc)
        return now - pushed_at > timedelta(days=horizon_days)

    def scores_dict(self) -> Dict[str, float]:
        return {
            "popularity": self.popularity_score,
            "activity": self.activity_score,
            "freshness": self.freshness_score,
            "quality": self.quality_score,
            "trending": self.trending_score,
            "recommendation": self.recommendation_score,
        }

    def to_dict(self) -> Dict:
        """
        Serialize the repository for feed responses.

        Returns:
            Dictionary of repository attributes and scores.
        """
        return {
            "id": self.id,
            "name": self.name,
            "full_name": self.full_name,
            "description": self.description,
            "owner": {"login": self.owner_login, "avatar_url": self.owner_avatar},
            "stars": self.stars,
            "forks": self.forks,
            "watchers": self.watchers,
            "open_issues": self.open_issues,
            "language": self.language,
            "topics": list(self.topics or []),
            "license": self.license,
            "html_url": self.html_url,
            "homepage_url": self.homepage_url,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "pushed_at": self.pushed_at.isoformat() if self.pushed_at else None,
            "primary_cluster": self.primary_cluster,
            "scores": self.scores_dict(),
        }


class RepoTopic(Base):
    """One (repository, topic) pair, indexed by topic for membership lookups."""

    __tablename__ = "repository_topics"

    repo_id: Mapped[int] = mapped_column(
        ForeignKey("repositories.id", ondelete="CASCADE"), primary_key=True
    )
    topic: Mapped[str] = mapped_column(String(128), primary_key=True, index=True)

    repo: Mapped["Repo"] = relationship("Repo", back_populates="topic_rows")
