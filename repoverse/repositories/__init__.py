"""
Repository pattern implementations for data access.

Repositories provide a clean abstraction over database operations,
with batch operations and efficient queries.

Usage:
    from repoverse.repositories import MembershipRepository
    from repoverse.db import db

    with db.session() as session:
        memberships = MembershipRepository(session).for_clusters(["frontend"])
"""

from .base import BaseRepository
from .cluster_repository import ClusterRepository
from .interaction_repository import InteractionRepository
from .membership_repository import MembershipRepository
from .profile_repository import ProfileRepository
from .repo_repository import RepoRepository

__all__ = [
    "BaseRepository",
    "RepoRepository",
    "MembershipRepository",
    "ClusterRepository",
    "InteractionRepository",
    "ProfileRepository",
]
