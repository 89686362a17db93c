"""Cluster catalogue access."""

from datetime import datetime, timezone

from sqlalchemy import func

from repoverse.constants import CLUSTER_CATALOGUE, GENERAL_CLUSTER
from repoverse.models import Cluster, ClusterMembership

from .base import BaseRepository

_GENERAL_ENTRY = {
    "display_name": "General",
    "description": "Repositories that match no specific cluster",
    "icon": "📦",
}


class ClusterRepository(BaseRepository[Cluster]):
    """Repository for the fixed cluster catalogue."""

    model = Cluster

    def ensure_catalogue(self) -> list[Cluster]:
        """
        Create missing catalogue rows and refresh their display metadata.

        Counts and curation timestamps are left untouched.
        """
        entries = {name: config for name, config in CLUSTER_CATALOGUE.items()}
        entries[GENERAL_CLUSTER] = _GENERAL_ENTRY

        clusters = []
        for name, config in entries.items():
            cluster = self.get_by_id(name)
            if cluster is None:
                cluster = Cluster(name=name, repo_count=0, is_active=True)
                self.session.add(cluster)
            cluster.display_name = config["display_name"]
            cluster.description = config["description"]
            cluster.icon = config["icon"]
            clusters.append(cluster)

        self.session.flush()
        return clusters

    def update_stats(self, name: str, curated: bool = True) -> Cluster | None:
        """Recount memberships of a cluster and stamp the curation time."""
        cluster = self.get_by_id(name)
        if cluster is None:
            return None
        cluster.repo_count = (
            self.session.query(func.count(ClusterMembership.id))
            .filter(ClusterMembership.cluster_name == name)
            .scalar()
            or 0
        )
        if curated:
            cluster.last_curated_at = datetime.now(timezone.utc)
        self.session.flush()
        return cluster

    def refresh_counts(self) -> None:
        """Recount every cluster without touching curation timestamps."""
        for cluster in self.session.query(Cluster).all():
            self.update_stats(cluster.name, curated=False)

    def list_active(self) -> list[Cluster]:
        return (
            self.session.query(Cluster)
            .filter(Cluster.is_active.is_(True))
            .order_by(Cluster.name)
            .all()
        )

    def known_names(self) -> set[str]:
        return {row.name for row in self.session.query(Cluster.name).all()}
