"""
Feed endpoint.

Cursor-paginated personalized feed. The cursor is opaque to clients:
pass back next_cursor verbatim to get the following page.
"""

from fastapi import APIRouter, Depends, Query

from repoverse.services import FeedService

from ..dependencies import get_feed_service
from ..schemas import FeedResponse

router = APIRouter(prefix="/feed", tags=["feed"])


@router.get("/{user_id}", response_model=FeedResponse)
def get_feed(
    user_id: str,
    cursor: str | None = Query(default=None, max_length=512),
    page_size: int | None = Query(default=None, ge=1),
    feed: FeedService = Depends(get_feed_service),
):
    """Return the next page of the user's feed. Seen repositories never appear."""
    page = feed.feed_for_user(user_id, cursor=cursor, page_size=page_size)
    return page.to_dict()
