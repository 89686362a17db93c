"""Saved and liked listings, plus interaction counts."""

from fastapi import APIRouter, Depends

from repoverse.services import InteractionService

from ..dependencies import get_interaction_service
from ..schemas import InteractionStatsResponse, RepoListResponse

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}/saved", response_model=RepoListResponse)
def list_saved(
    user_id: str,
    interactions: InteractionService = Depends(get_interaction_service),
):
    """Saved repositories, most recent first."""
    repos = interactions.saved_repos(user_id)
    return RepoListResponse(repos=repos, total=len(repos))


@router.get("/{user_id}/liked", response_model=RepoListResponse)
def list_liked(
    user_id: str,
    interactions: InteractionService = Depends(get_interaction_service),
):
    """Liked repositories, most recent first."""
    repos = interactions.liked_repos(user_id)
    return RepoListResponse(repos=repos, total=len(repos))


@router.get("/{user_id}/stats", response_model=InteractionStatsResponse)
def interaction_stats(
    user_id: str,
    interactions: InteractionService = Depends(get_interaction_service),
):
    return interactions.stats(user_id)
