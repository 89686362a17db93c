"""
Pydantic schemas for request and response validation.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

InteractionAction = Literal["viewed", "liked", "saved", "skipped", "unsaved", "unliked"]


class OwnerResponse(BaseModel):
    login: str | None = None
    avatar_url: str | None = None


class FeedPlacement(BaseModel):
    tier: int
    source: str
    cluster: str | None = None
    score: float


class RepoResponse(BaseModel):
    id: int
    name: str
    full_name: str
    description: str | None = None
    owner: OwnerResponse
    stars: int = 0
    forks: int = 0
    watchers: int = 0
    open_issues: int = 0
    language: str | None = None
    topics: list[str] = Field(default_factory=list)
    license: str | None = None
    html_url: str | None = None
    homepage_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    pushed_at: datetime | None = None
    primary_cluster: str | None = None
    scores: dict[str, float] = Field(default_factory=dict)


class FeedItemResponse(RepoResponse):
    feed: FeedPlacement


class FeedResponse(BaseModel):
    items: list[FeedItemResponse]
    next_cursor: str | None = None
    has_more: bool = False


class RepoListResponse(BaseModel):
    repos: list[RepoResponse]
    total: int


class ProfileUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    primary_cluster: str | None = Field(default=None, max_length=64)
    secondary_clusters: list[str] | None = None
    tech_stack: list[str] | None = None
    goals: list[str] | None = None
    project_types: list[str] | None = None
    interests: list[str] | None = None
    experience_level: str | None = Field(default=None, max_length=32)
    activity_weight: float | None = Field(default=None, ge=0.0, le=5.0)
    popularity_weight: float | None = Field(default=None, ge=0.0, le=5.0)
    documentation_weight: float | None = Field(default=None, ge=0.0, le=5.0)


class ProfileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    primary_cluster: str | None = None
    secondary_clusters: list[str] = Field(default_factory=list)
    tech_stack: list[str] = Field(default_factory=list)
    goals: list[str] = Field(default_factory=list)
    project_types: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    experience_level: str | None = None
    activity_weight: float = 1.0
    popularity_weight: float = 1.0
    documentation_weight: float = 1.0


class InteractionRequest(BaseModel):
    user_id: str = Field(min_length=1, max_length=64)
    repo_id: int
    action: InteractionAction


class InteractionResponse(BaseModel):
    user_id: str
    repo_id: int
    action: str
    changed: bool


class InteractionStatsResponse(BaseModel):
    viewed: int = 0
    liked: int = 0
    saved: int = 0
    skipped: int = 0
    saved_now: int = 0
    liked_now: int = 0


class ClusterResponse(BaseModel):
    name: str
    display_name: str
    description: str | None = None
    icon: str | None = None
    repo_count: int = 0
    last_curated_at: datetime | None = None
    is_active: bool = True


class ClusterListResponse(BaseModel):
    clusters: list[ClusterResponse]
    total: int
