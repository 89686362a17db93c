"""
FastAPI dependency injection module.

Provides centralized dependencies for:
- Database sessions
- Repositories
- The process-wide result cache and the services built on it
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from repoverse.cache import ResultCache
from repoverse.db import get_db
from repoverse.repositories import ClusterRepository, ProfileRepository
from repoverse.services import FeedService, InteractionService

# =============================================================================
# Repository Dependencies
# =============================================================================


def get_profile_repository(db: Session = Depends(get_db)) -> ProfileRepository:
    """Get ProfileRepository instance."""
    return ProfileRepository(db)


def get_cluster_repository(db: Session = Depends(get_db)) -> ClusterRepository:
    """Get ClusterRepository instance."""
    return ClusterRepository(db)


# =============================================================================
# Service Dependencies
# =============================================================================


@lru_cache
def get_cache() -> ResultCache:
    """One cache per process; every service shares it so invalidations reach every reader."""
    return ResultCache()


def get_interaction_service(cache: ResultCache = Depends(get_cache)) -> InteractionService:
    return InteractionService(cache)


def get_feed_service(
    cache: ResultCache = Depends(get_cache),
    interactions: InteractionService = Depends(get_interaction_service),
) -> FeedService:
    return FeedService(cache, interactions)


__all__ = [
    "get_db",
    "get_profile_repository",
    "get_cluster_repository",
    "get_cache",
    "get_interaction_service",
    "get_feed_service",
]
