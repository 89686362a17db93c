"""
Feed service: cursor pagination over the recommendation pool.

The cursor carries the rotation epoch and the full sort key
(tier, band, rotation, score, id) of the last returned item, so
continuation is a strict "key greater than" comparison inside the same
epoch. Newly ingested repositories slot into their sorted position
without shifting items already served; seen repositories drop out.
"""

import base64
import binascii
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from sqlalchemy.orm import Session

from repoverse.cache import ResultCache
from repoverse.config import get_settings
from repoverse.db import db
from repoverse.logging import LogContext, get_logger, timed
from repoverse.models import UserPreferenceProfile
from repoverse.repositories import ClusterRepository, ProfileRepository
from repoverse.scoring import rotation_epoch

from .interaction_service import InteractionService
from .pool_builder import PoolItem, build_pool

logger = get_logger("feed")

_CURSOR_VERSION = 2

SortKey = Tuple[int, float, int, float, int]


class InvalidCursorError(ValueError):
    """The pagination token is malformed or was not issued by this service."""


class ProfileNotFoundError(LookupError):
    """No preference profile exists for the user."""


@dataclass
class FeedPage:
    items: List[dict] = field(default_factory=list)
    next_cursor: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None

    def to_dict(self) -> dict:
        return {"items": self.items, "next_cursor": self.next_cursor, "has_more": self.has_more}


def encode_cursor(item: PoolItem, epoch: int) -> str:
    payload = {
        "v": _CURSOR_VERSION,
        "e": epoch,
        "k": [item.tier, item.band, item.rotation, item.score, item.repo.id],
    }
    raw = json.dumps(payload, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).decode().rstrip("=")


def decode_cursor(token: str) -> Tuple[int, SortKey]:
    """
    Decode a cursor into its epoch and (tier, -band, -rotation, -score, id) key.

    Raises:
        InvalidCursorError: Malformed or unknown-version token
    """
    try:
        padded = token + "=" * (-len(token) % 4)
        payload = json.loads(base64.urlsafe_b64decode(padded.encode()))
        if payload.get("v") != _CURSOR_VERSION:
            raise InvalidCursorError("Unsupported cursor version")
        tier, band, rotation, score, repo_id = payload["k"]
        key = (int(tier), -float(band), -int(rotation), -float(score), int(repo_id))
        return int(payload["e"]), key
    except InvalidCursorError:
        raise
    except (binascii.Error, UnicodeDecodeError, ValueError, TypeError, KeyError, AttributeError) as e:
        raise InvalidCursorError(f"Invalid cursor: {e}") from e


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FeedService:
    """
    Personalized, paginated feed.

    Usage:
        feed = FeedService(cache)
        page = feed.feed_for_user("user-1", page_size=20)
        more = feed.feed_for_user("user-1", cursor=page.next_cursor)
    """

    def __init__(
        self,
        cache: ResultCache,
        interactions: Optional[InteractionService] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.cache = cache
        self.interactions = interactions or InteractionService(cache)
        self.clock = clock

    def _page_size(self, page_size: Optional[int]) -> int:
        settings = get_settings()
        if page_size is None:
            page_size = settings.feed_default_page_size
        return max(1, min(int(page_size), settings.feed_max_page_size))

    def build_feed(
        self,
        profile: UserPreferenceProfile,
        cursor: Optional[str] = None,
        page_size: Optional[int] = None,
        session: Optional[Session] = None,
    ) -> FeedPage:
        """
        Return the next page of the profile's feed.

        A cursor pins the rotation epoch it was issued in, so a session that
        straddles an epoch boundary keeps one consistent order.

        Raises:
            InvalidCursorError: cursor cannot be decoded
        """
        if cursor:
            epoch, after = decode_cursor(cursor)
        else:
            epoch = rotation_epoch(self.clock(), get_settings().rotation_period_days)
            after = None
        size = self._page_size(page_size)

        with LogContext(user_id=profile.user_id):
            if session is None:
                with db.session() as own_session:
                    return self._build(own_session, profile, epoch, after, size)
            return self._build(session, profile, epoch, after, size)

    def _build(
        self,
        session: Session,
        profile: UserPreferenceProfile,
        epoch: int,
        after: Optional[SortKey],
        size: int,
    ) -> FeedPage:
        with timed("feed_build", logger):
            seen = self.interactions.seen_ids(profile.user_id, session)
            known = ClusterRepository(session).known_names()
            pool = build_pool(session, profile, seen, known_clusters=known, epoch=epoch)

        if after is not None:
            pool = [item for item in pool if item.sort_key > after]

        page = pool[:size]
        next_cursor = encode_cursor(page[-1], epoch) if len(pool) > size else None

        items = []
        for item in page:
            data = item.repo.to_dict()
            data["feed"] = {
                "tier": item.tier,
                "source": item.source,
                "cluster": item.cluster,
                "score": item.score,
            }
            items.append(data)

        logger.info(
            "feed_built",
            returned=len(items),
            candidates=len(pool),
            seen=len(seen),
            epoch=epoch,
            has_more=next_cursor is not None,
        )
        return FeedPage(items=items, next_cursor=next_cursor)

    def feed_for_user(
        self,
        user_id: str,
        cursor: Optional[str] = None,
        page_size: Optional[int] = None,
    ) -> FeedPage:
        """
        Load the user's profile and return a feed page.

        Raises:
            ProfileNotFoundError: The user never completed onboarding
            InvalidCursorError: cursor cannot be decoded
        """
        with db.session() as session:
            profile = ProfileRepository(session).get(user_id)
            if profile is None:
                raise ProfileNotFoundError(f"No preference profile for user {user_id}")
            return self.build_feed(profile, cursor, page_size, session=session)
