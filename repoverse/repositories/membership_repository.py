"""Curation store access: (cluster, repository) membership rows and their tag index."""

from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import contains_eager, joinedload

from repoverse.models import ClusterMembership, MembershipTag, Repo

from .base import BaseRepository


def _normalize_tags(tags: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(str(tag).strip().lower() for tag in tags if tag and str(tag).strip()))


class MembershipRepository(BaseRepository[ClusterMembership]):
    """Repository for ClusterMembership rows."""

    model = ClusterMembership

    def get(self, cluster_name: str, repo_id: int) -> ClusterMembership | None:
        return (
            self.session.query(ClusterMembership)
            .filter(
                ClusterMembership.cluster_name == cluster_name,
                ClusterMembership.repo_id == repo_id,
            )
            .first()
        )

    def upsert(
        self,
        cluster_name: str,
        repo_id: int,
        tags: list[str],
        quality_score: float,
        tag_overlap: int,
        combined_score: float,
        rotation_priority: int,
    ) -> ClusterMembership:
        """Insert or update the single membership row for (cluster, repo)."""
        membership = self.get(cluster_name, repo_id)

        if membership:
            membership.tags = list(tags)
            membership.quality_score = quality_score
            membership.tag_overlap = tag_overlap
            membership.combined_score = combined_score
            membership.rotation_priority = rotation_priority
            membership.updated_at = datetime.now(timezone.utc)
        else:
            membership = ClusterMembership(
                cluster_name=cluster_name,
                repo_id=repo_id,
                tags=list(tags),
                quality_score=quality_score,
                tag_overlap=tag_overlap,
                combined_score=combined_score,
                rotation_priority=rotation_priority,
            )
            self.session.add(membership)

        self._sync_tags(membership, tags)
        self.session.flush()
        return membership

    def _sync_tags(self, membership: ClusterMembership, tags: list[str]) -> None:
        wanted = _normalize_tags(tags)
        current = {row.tag: row for row in membership.tag_rows}
        for tag, row in current.items():
            if tag not in wanted:
                membership.tag_rows.remove(row)
        for tag in wanted:
            if tag not in current:
                membership.tag_rows.append(MembershipTag(tag=tag))

    def repo_ids(self, cluster_name: str) -> set[int]:
        rows = (
            self.session.query(ClusterMembership.repo_id)
            .filter(ClusterMembership.cluster_name == cluster_name)
            .all()
        )
        return {row.repo_id for row in rows}

    def prune(self, cluster_name: str, keep_ids: set[int]) -> int:
        """
        Delete memberships of a cluster whose repository is not in keep_ids.

        Returns:
            Number of rows removed
        """
        conditions = [ClusterMembership.cluster_name == cluster_name]
        if keep_ids:
            conditions.append(ClusterMembership.repo_id.notin_(keep_ids))
        doomed = select(ClusterMembership.id).where(*conditions)
        self.session.query(MembershipTag).filter(MembershipTag.membership_id.in_(doomed)).delete(
            synchronize_session=False
        )
        removed = (
            self.session.query(ClusterMembership)
            .filter(*conditions)
            .delete(synchronize_session=False)
        )
        self.session.flush()
        self.session.expire_all()
        return removed

    def for_clusters(self, cluster_names: list[str]) -> list[ClusterMembership]:
        """Memberships of the given clusters with their repositories eagerly loaded."""
        if not cluster_names:
            return []
        return (
            self.session.query(ClusterMembership)
            .options(joinedload(ClusterMembership.repo))
            .filter(ClusterMembership.cluster_name.in_(cluster_names))
            .all()
        )

    def for_tags(
        self,
        tags: list[str],
        exclude_repo_ids: Iterable[int] = (),
        limit: int | None = None,
    ) -> list[tuple[ClusterMembership, int]]:
        """
        Memberships in any cluster carrying at least one of the tags.

        Matching runs against the tag index; rows come back best first:
        match count desc, quality desc, repo id asc.

        Returns:
            (membership, match count) pairs, match count > 0
        """
        wanted = _normalize_tags(tags)
        if not wanted:
            return []

        matches = (
            self.session.query(
                MembershipTag.membership_id.label("membership_id"),
                func.count(MembershipTag.tag).label("match_count"),
            )
            .filter(MembershipTag.tag.in_(wanted))
            .group_by(MembershipTag.membership_id)
            .subquery()
        )
        query = (
            self.session.query(ClusterMembership, matches.c.match_count)
            .join(matches, matches.c.membership_id == ClusterMembership.id)
            .options(joinedload(ClusterMembership.repo))
            .order_by(
                matches.c.match_count.desc(),
                ClusterMembership.quality_score.desc(),
                ClusterMembership.repo_id,
            )
        )
        excluded = set(exclude_repo_ids)
        if excluded:
            query = query.filter(ClusterMembership.repo_id.notin_(excluded))
        if limit is not None:
            query = query.limit(limit)
        return [(membership, int(count)) for membership, count in query.all()]

    def catalogue(
        self, exclude_repo_ids: Iterable[int] = (), limit: int | None = None
    ) -> list[ClusterMembership]:
        """
        Unseen memberships across every cluster, best repositories first.

        Ordered by repository recommendation score desc, then cluster name
        and repo id.
        """
        query = (
            self.session.query(ClusterMembership)
            .join(ClusterMembership.repo)
            .options(contains_eager(ClusterMembership.repo))
            .order_by(
                Repo.recommendation_score.desc(),
                ClusterMembership.repo_id,
                ClusterMembership.cluster_name,
            )
        )
        excluded = set(exclude_repo_ids)
        if excluded:
            query = query.filter(ClusterMembership.repo_id.notin_(excluded))
        if limit is not None:
            query = query.limit(limit)
        return query.all()
