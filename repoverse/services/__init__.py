"""
Online recommendation services.

Services provide a clean interface for the feed and interaction
operations, with the result cache wired into every read and write.
"""

from repoverse.services.feed_service import (
    FeedPage,
    FeedService,
    InvalidCursorError,
    ProfileNotFoundError,
    decode_cursor,
    encode_cursor,
)
from repoverse.services.interaction_service import (
    WRITE_ACTIONS,
    InteractionService,
    UnknownRepositoryError,
)
from repoverse.services.pool_builder import PoolItem, build_pool, fallback_tags, matches_preferences

__all__ = [
    "FeedService",
    "FeedPage",
    "InvalidCursorError",
    "ProfileNotFoundError",
    "encode_cursor",
    "decode_cursor",
    "InteractionService",
    "UnknownRepositoryError",
    "WRITE_ACTIONS",
    "PoolItem",
    "build_pool",
    "fallback_tags",
    "matches_preferences",
]
