"""
Interaction service.

The only write path for seen history and saved/liked sets. Every write
invalidates the affected cache families inside the same transaction: if
invalidation fails the write is rolled back and the error propagates.
"""

from typing import Callable, Iterable, List, Optional, TypeVar

from sqlalchemy.orm import Session

from repoverse.cache import CacheInvalidationError, CacheKeys, ResultCache
from repoverse.constants import ACTION_LIKED, ACTION_SAVED, ACTION_SKIPPED, ACTION_VIEWED
from repoverse.db import db
from repoverse.logging import LogContext, get_logger
from repoverse.repositories import InteractionRepository, RepoRepository

logger = get_logger("interactions")

T = TypeVar("T")

ACTION_UNSAVED = "unsaved"
ACTION_UNLIKED = "unliked"
WRITE_ACTIONS = (
    ACTION_VIEWED,
    ACTION_LIKED,
    ACTION_SAVED,
    ACTION_SKIPPED,
    ACTION_UNSAVED,
    ACTION_UNLIKED,
)

_SEEN_ONLY = (CacheKeys.FAMILY_SEEN,)
_BOTH_FAMILIES = (CacheKeys.FAMILY_SEEN, CacheKeys.FAMILY_SAVED_LIKED)


class UnknownRepositoryError(LookupError):
    """The repository is not in the catalogue."""


class InteractionService:
    """
    Records user actions and serves the cached derived sets.

    Usage:
        interactions = InteractionService(cache)
        interactions.like("user-1", 1296269)
        interactions.seen_ids("user-1")  # reflects the like immediately
    """

    def __init__(self, cache: ResultCache):
        self.cache = cache

    # =========================================================================
    # Writes
    # =========================================================================

    def _invalidate(self, user_id: str, families: Iterable[str]) -> None:
        for family in families:
            try:
                self.cache.invalidate(user_id, family)
            except CacheInvalidationError:
                raise
            except Exception as e:
                raise CacheInvalidationError(
                    f"invalidation of {family} failed for {user_id}: {e}"
                ) from e

    def _write(
        self,
        user_id: str,
        families: Iterable[str],
        operation: Callable[[Session], T],
    ) -> T:
        families = tuple(families)
        with db.session() as session:
            result = operation(session)
            session.flush()
            self._invalidate(user_id, families)
        # Second pass drops anything a concurrent reader cached before commit
        self._invalidate(user_id, families)
        return result

    def _require_repo(self, session: Session, repo_id: int) -> None:
        if not RepoRepository(session).exists(repo_id):
            raise UnknownRepositoryError(f"Repository {repo_id} not found")

    def _record(self, user_id: str, repo_id: int, action: str, add_to: Optional[str] = None) -> bool:
        def operation(session: Session) -> bool:
            self._require_repo(session, repo_id)
            interactions = InteractionRepository(session)
            interactions.record(user_id, repo_id, action)
            if add_to:
                return interactions.add_to_set(add_to, user_id, repo_id)
            return True

        families = _BOTH_FAMILIES if add_to else _SEEN_ONLY
        with LogContext(user_id=user_id, repo_id=repo_id):
            changed = self._write(user_id, families, operation)
            logger.info("interaction_recorded", action=action, changed=changed)
        return changed

    def _undo(self, user_id: str, repo_id: int, kind: str) -> bool:
        with LogContext(user_id=user_id, repo_id=repo_id):
            removed = self._write(
                user_id,
                _BOTH_FAMILIES,
                lambda session: InteractionRepository(session).remove_from_set(kind, user_id, repo_id),
            )
            logger.info("interaction_undone", kind=kind, removed=removed)
        return removed

    def view(self, user_id: str, repo_id: int) -> bool:
        return self._record(user_id, repo_id, ACTION_VIEWED)

    def skip(self, user_id: str, repo_id: int) -> bool:
        return self._record(user_id, repo_id, ACTION_SKIPPED)

    def save(self, user_id: str, repo_id: int) -> bool:
        """Record a save and add to the saved set. Returns False if already saved."""
        return self._record(user_id, repo_id, ACTION_SAVED, add_to="saved")

    def like(self, user_id: str, repo_id: int) -> bool:
        """Record a like and add to the liked set. Returns False if already liked."""
        return self._record(user_id, repo_id, ACTION_LIKED, add_to="liked")

    def unsave(self, user_id: str, repo_id: int) -> bool:
        return self._undo(user_id, repo_id, "saved")

    def unlike(self, user_id: str, repo_id: int) -> bool:
        return self._undo(user_id, repo_id, "liked")

    def apply(self, user_id: str, repo_id: int, action: str) -> bool:
        """
        Dispatch one of WRITE_ACTIONS.

        Raises:
            ValueError: Unknown action
            UnknownRepositoryError: Recording an action on a missing repository
            CacheInvalidationError: The write was rolled back
        """
        handlers = {
            ACTION_VIEWED: self.view,
            ACTION_SKIPPED: self.skip,
            ACTION_SAVED: self.save,
            ACTION_LIKED: self.like,
            ACTION_UNSAVED: self.unsave,
            ACTION_UNLIKED: self.unlike,
        }
        handler = handlers.get(action)
        if handler is None:
            raise ValueError(f"Unknown action: {action} (expected one of {', '.join(WRITE_ACTIONS)})")
        return handler(user_id, repo_id)

    # =========================================================================
    # Cached reads
    # =========================================================================

    def _read(self, loader: Callable[[Session], T], session: Optional[Session]) -> T:
        if session is not None:
            return loader(session)
        with db.session() as own_session:
            return loader(own_session)

    def seen_ids(self, user_id: str, session: Optional[Session] = None) -> frozenset:
        """Union of every repository id the user has viewed, liked, saved or skipped."""
        return self.cache.get_or_load(
            user_id,
            CacheKeys.FAMILY_SEEN,
            CacheKeys.seen_ids(user_id),
            lambda: self._read(
                lambda s: frozenset(InteractionRepository(s).seen_repo_ids(user_id)), session
            ),
        )

    def saved_ids(self, user_id: str, session: Optional[Session] = None) -> tuple:
        return self.cache.get_or_load(
            user_id,
            CacheKeys.FAMILY_SAVED_LIKED,
            CacheKeys.saved_ids(user_id),
            lambda: self._read(lambda s: tuple(InteractionRepository(s).saved_ids(user_id)), session),
        )

    def liked_ids(self, user_id: str, session: Optional[Session] = None) -> tuple:
        return self.cache.get_or_load(
            user_id,
            CacheKeys.FAMILY_SAVED_LIKED,
            CacheKeys.liked_ids(user_id),
            lambda: self._read(lambda s: tuple(InteractionRepository(s).liked_ids(user_id)), session),
        )

    def _listing(self, ids: tuple, session: Session) -> List[dict]:
        repos = RepoRepository(session).batch_get(list(ids))
        return [repos[repo_id].to_dict() for repo_id in ids if repo_id in repos]

    def saved_repos(self, user_id: str) -> List[dict]:
        """Saved repositories, most recent first; swept repositories are omitted."""
        with db.session() as session:
            return self._listing(self.saved_ids(user_id, session), session)

    def liked_repos(self, user_id: str) -> List[dict]:
        """Liked repositories, most recent first; swept repositories are omitted."""
        with db.session() as session:
            return self._listing(self.liked_ids(user_id, session), session)

    def stats(self, user_id: str) -> dict:
        with db.session() as session:
            return InteractionRepository(session).stats(user_id)
