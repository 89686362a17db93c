"""
Cluster and ClusterMembership SQLAlchemy models.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, List, Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base

if TYPE_CHECKING:
    from .repo import Repo


class Cluster(Base):
    """
    Named topical bucket of repositories.

    The set of clusters is fixed by configuration; repo_count and
    last_curated_at are refreshed after every curation pass.
    """

    __tablename__ = "clusters"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(128))
    description: Mapped[Optional[str]] = mapped_column(Text)
    icon: Mapped[Optional[str]] = mapped_column(String(16))
    repo_count: Mapped[int] = mapped_column(Integer, default=0)
    last_curated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    memberships: Mapped[List["ClusterMembership"]] = relationship(
        "ClusterMembership", back_populates="cluster", cascade="all, delete-orphan"
    )

    def to_dict(self) -> Dict:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "description": self.description,
            "icon": self.icon,
            "repo_count": self.repo_count,
            "last_curated_at": self.last_curated_at.isoformat() if self.last_curated_at else None,
            "is_active": self.is_active,
        }


class ClusterMembership(Base):
    """
    Thin join between a cluster and a repository.

    Unique per (cluster_name, repo_id): a repository may sit in several
    clusters but at most once in each.
    """

    __tablename__ = "cluster_memberships"
    __table_args__ = (
        UniqueConstraint("cluster_name", "repo_id", name="uq_cluster_memberships_cluster_repo"),
        Index("ix_cluster_memberships_cluster_quality", "cluster_name", "quality_score"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    cluster_name: Mapped[str] = mapped_column(ForeignKey("clusters.name"), index=True)
    repo_id: Mapped[int] = mapped_column(
        ForeignKey("repositories.id", ondelete="CASCADE"), index=True
    )
    tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    quality_score: Mapped[float] = mapped_column(Float, default=0.0)
    tag_overlap: Mapped[int] = mapped_column(Integer, default=0)
    combined_score: Mapped[float] = mapped_column(Float, default=0.0)
    rotation_priority: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    cluster: Mapped["Cluster"] = relationship("Cluster", back_populates="memberships")
    repo: Mapped["Repo"] = relationship("Repo", back_populates="memberships")
    tag_rows: Mapped[List["MembershipTag"]] = relationship(
        "MembershipTag",
        back_populates="membership",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def to_dict(self) -> Dict:
        return {
            "cluster_name": self.cluster_name,
            "repo_id": self.repo_id,
            "tags": list(self.tags or []),
            "quality_score": self.quality_score,
            "tag_overlap": self.tag_overlap,
            "combined_score": self.combined_score,
            "rotation_priority": self.rotation_priority,
        }


class MembershipTag(Base):
    """
    One (membership, tag) pair mirroring ClusterMembership.tags.

    Indexed by tag so the feed's tag fallback is a single indexed lookup.
    """

    __tablename__ = "cluster_membership_tags"

    membership_id: Mapped[int] = mapped_column(
        ForeignKey("cluster_memberships.id", ondelete="CASCADE"), primary_key=True
    )
    tag: Mapped[str] = mapped_column(String(128), primary_key=True, index=True)

    membership: Mapped["ClusterMembership"] = relationship(
        "ClusterMembership", back_populates="tag_rows"
    )
