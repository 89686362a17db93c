"""
SQLAlchemy models for Repoverse.

Single source of truth for the curation store, seen history and profiles.

Usage:
    from repoverse.models import Repo, ClusterMembership, UserPreferenceProfile
"""

from .base import Base
from .cluster import Cluster, ClusterMembership, MembershipTag
from .interaction import LikedRepo, SavedRepo, SeenRecord
from .profile import NEUTRAL_WEIGHT, UserPreferenceProfile
from .repo import Repo, RepoTopic

__all__ = [
    # Base
    "Base",
    # Curation store
    "Repo",
    "RepoTopic",
    "Cluster",
    "ClusterMembership",
    "MembershipTag",
    # Users
    "UserPreferenceProfile",
    "NEUTRAL_WEIGHT",
    # Seen history
    "SeenRecord",
    "SavedRepo",
    "LikedRepo",
]
