"""
Preference profile endpoints.

Profiles are created at onboarding and edited afterwards; the user id is
issued by the authentication collaborator and treated as opaque.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from repoverse.logging import get_logger
from repoverse.repositories import ProfileRepository

from ..dependencies import get_profile_repository
from ..schemas import ProfileResponse, ProfileUpdateRequest

logger = get_logger("profile")

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/{user_id}", response_model=ProfileResponse)
def get_profile(
    user_id: str,
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    profile = profiles.get(user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.put("/{user_id}", response_model=ProfileResponse)
def put_profile(
    user_id: str,
    request: ProfileUpdateRequest,
    profiles: ProfileRepository = Depends(get_profile_repository),
):
    """Create or update a profile. Omitted fields keep their stored value."""
    profile = profiles.upsert(user_id, **request.model_dump(exclude_none=True))
    logger.info("profile_saved", user_id=user_id, primary_cluster=profile.primary_cluster)
    return profile
