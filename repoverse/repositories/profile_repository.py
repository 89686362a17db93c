"""User preference profile repository."""

from datetime import datetime, timezone

from repoverse.models import UserPreferenceProfile

from .base import BaseRepository

_PROFILE_FIELDS = (
    "primary_cluster",
    "secondary_clusters",
    "tech_stack",
    "goals",
    "project_types",
    "interests",
    "experience_level",
    "activity_weight",
    "popularity_weight",
    "documentation_weight",
)


class ProfileRepository(BaseRepository[UserPreferenceProfile]):
    """Repository for UserPreferenceProfile operations."""

    model = UserPreferenceProfile

    def get(self, user_id: str) -> UserPreferenceProfile | None:
        return self.get_by_id(user_id)

    def upsert(self, user_id: str, **fields) -> UserPreferenceProfile:
        """
        Create or update a user's profile.
        Only updates fields that are provided (not None).
        """
        unknown = set(fields) - set(_PROFILE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown profile fields: {sorted(unknown)}")

        values = {key: value for key, value in fields.items() if value is not None}
        profile = self.get(user_id)

        if profile:
            for key, value in values.items():
                setattr(profile, key, value)
            profile.updated_at = datetime.now(timezone.utc)
        else:
            profile = UserPreferenceProfile(
                user_id=user_id,
                secondary_clusters=[],
                tech_stack=[],
                goals=[],
                project_types=[],
                interests=[],
            )
            for key, value in values.items():
                setattr(profile, key, value)
            self.session.add(profile)

        self.session.flush()
        return profile

    def has_profile(self, user_id: str) -> bool:
        """Check if a user has a profile (efficient exists query)."""
        return self.exists(user_id)
