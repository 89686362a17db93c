"""
Interaction endpoint.

Every write invalidates the user's cached seen and saved/liked sets
before the response is sent.
"""

from fastapi import APIRouter, Depends, status

from repoverse.services import InteractionService

from ..dependencies import get_interaction_service
from ..schemas import InteractionRequest, InteractionResponse

router = APIRouter(prefix="/interactions", tags=["interactions"])


@router.post("", response_model=InteractionResponse, status_code=status.HTTP_201_CREATED)
def record_interaction(
    request: InteractionRequest,
    interactions: InteractionService = Depends(get_interaction_service),
):
    changed = interactions.apply(request.user_id, request.repo_id, request.action)
    return InteractionResponse(
        user_id=request.user_id,
        repo_id=request.repo_id,
        action=request.action,
        changed=changed,
    )
