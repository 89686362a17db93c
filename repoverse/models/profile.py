"""
User preference profile SQLAlchemy model.
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, Float, JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

NEUTRAL_WEIGHT = 1.0


class UserPreferenceProfile(Base):
    """
    Preferences captured at onboarding and edited by the user.

    Attributes:
        user_id: Opaque identifier issued by the authentication collaborator
        primary_cluster: Main cluster; None only for legacy profiles
        secondary_clusters: Ordered supplementary clusters
        tech_stack: Languages and frameworks (e.g. ["React", "TypeScript"])
        goals: Goal slugs (e.g. ["learning-new-tech"])
        project_types: Project type slugs (e.g. ["tutorial", "library"])
        interests: Free-form domain tags (e.g. ["web-frontend"])
        *_weight: Ranking knobs; 1.0 everywhere keeps the stored composite order
    """

    __tablename__ = "user_profiles"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    primary_cluster: Mapped[Optional[str]] = mapped_column(String(64))
    secondary_clusters: Mapped[List[str]] = mapped_column(JSON, default=list)
    tech_stack: Mapped[List[str]] = mapped_column(JSON, default=list)
    goals: Mapped[List[str]] = mapped_column(JSON, default=list)
    project_types: Mapped[List[str]] = mapped_column(JSON, default=list)
    interests: Mapped[List[str]] = mapped_column(JSON, default=list)
    experience_level: Mapped[Optional[str]] = mapped_column(String(32))
    activity_weight: Mapped[float] = mapped_column(Float, default=NEUTRAL_WEIGHT)
    popularity_weight: Mapped[float] = mapped_column(Float, default=NEUTRAL_WEIGHT)
    documentation_weight: Mapped[float] = mapped_column(Float, default=NEUTRAL_WEIGHT)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    @property
    def has_neutral_weights(self) -> bool:
        """Check if all ranking knobs are at their neutral value."""
        return all(
            (weight if weight is not None else NEUTRAL_WEIGHT) == NEUTRAL_WEIGHT
            for weight in (self.activity_weight, self.popularity_weight, self.documentation_weight)
        )

    @property
    def has_filters(self) -> bool:
        """Check if the profile narrows cluster members by tech stack, goals or project types."""
        return bool(self.tech_stack or self.goals or self.project_types)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "primary_cluster": self.primary_cluster,
            "secondary_clusters": list(self.secondary_clusters or []),
            "tech_stack": list(self.tech_stack or []),
            "goals": list(self.goals or []),
            "project_types": list(self.project_types or []),
            "interests": list(self.interests or []),
            "experience_level": self.experience_level,
            "activity_weight": self.activity_weight,
            "popularity_weight": self.popularity_weight,
            "documentation_weight": self.documentation_weight,
        }
