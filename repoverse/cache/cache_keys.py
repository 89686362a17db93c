"""
Cache key management.

Centralized cache key definitions to:
- Prevent key collisions
- Group keys into per-user invalidation families
"""


class CacheKeys:
    """
    Centralized cache key definitions.

    Naming convention: user:{user_id}:{family}[:{subtype}]

    Examples:
        - user:42:seen_ids -> Union of the user's seen repository ids
        - user:42:saved_liked:saved -> The user's saved repository ids
        - user:42:saved_liked:liked -> The user's liked repository ids
    """

    # Invalidation families
    FAMILY_SEEN = "seen_ids"
    FAMILY_SAVED_LIKED = "saved_liked"
    FAMILIES = (FAMILY_SEEN, FAMILY_SAVED_LIKED)

    @staticmethod
    def seen_ids(user_id: str) -> str:
        """Cache key for the user's seen-id union."""
        return f"user:{user_id}:{CacheKeys.FAMILY_SEEN}"

    @staticmethod
    def saved_ids(user_id: str) -> str:
        return f"user:{user_id}:{CacheKeys.FAMILY_SAVED_LIKED}:saved"

    @staticmethod
    def liked_ids(user_id: str) -> str:
        return f"user:{user_id}:{CacheKeys.FAMILY_SAVED_LIKED}:liked"

    @staticmethod
    def user_pattern(user_id: str) -> str:
        """Prefix matching all cache keys for a user."""
        return f"user:{user_id}:"
