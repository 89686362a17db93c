"""
Seen-history SQLAlchemy models.

SeenRecord is append-only history of every feed action. SavedRepo and
LikedRepo hold the user's current saved/liked sets and can be undone;
undoing never removes the corresponding SeenRecord.
"""

from datetime import datetime, timezone
from typing import Dict

from sqlalchemy import DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SeenRecord(Base):
    """One recorded action (viewed, liked, saved, skipped) of a user on a repository."""

    __tablename__ = "seen_records"
    __table_args__ = (Index("ix_seen_records_user_repo", "user_id", "repo_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    # No FK: history outlives repositories removed by the staleness sweep
    repo_id: Mapped[int] = mapped_column(Integer)
    action: Mapped[str] = mapped_column(String(16))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    def to_dict(self) -> Dict:
        return {
            "user_id": self.user_id,
            "repo_id": self.repo_id,
            "action": self.action,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class SavedRepo(Base):
    """Repository currently in a user's saved set."""

    __tablename__ = "saved_repos"
    __table_args__ = (UniqueConstraint("user_id", "repo_id", name="uq_saved_repos_user_repo"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    repo_id: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class LikedRepo(Base):
    """Repository currently in a user's liked set."""

    __tablename__ = "liked_repos"
    __table_args__ = (UniqueConstraint("user_id", "repo_id", name="uq_liked_repos_user_repo"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    repo_id: Mapped[int] = mapped_column(Integer)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
