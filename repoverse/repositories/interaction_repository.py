"""Seen-history and saved/liked set access."""

from sqlalchemy import func

from repoverse.models import LikedRepo, SavedRepo, SeenRecord

from .base import BaseRepository


class InteractionRepository(BaseRepository[SeenRecord]):
    """
    Repository for per-user interaction state.

    SeenRecord rows are append-only. Saved and liked sets hold at most one
    row per (user, repo) and may be undone.
    """

    model = SeenRecord

    def record(self, user_id: str, repo_id: int, action: str) -> SeenRecord:
        """Append one action to the user's seen history."""
        return self.create(user_id=user_id, repo_id=repo_id, action=action)

    def _set_model(self, kind: str) -> type[SavedRepo] | type[LikedRepo]:
        if kind == "saved":
            return SavedRepo
        if kind == "liked":
            return LikedRepo
        raise ValueError(f"Unknown set kind: {kind}")

    def add_to_set(self, kind: str, user_id: str, repo_id: int) -> bool:
        """
        Add a repository to the user's saved or liked set.

        Returns:
            True if a row was added, False if it was already present
        """
        model = self._set_model(kind)
        exists = (
            self.session.query(model)
            .filter(model.user_id == user_id, model.repo_id == repo_id)
            .first()
        )
        if exists:
            return False
        self.session.add(model(user_id=user_id, repo_id=repo_id))
        self.session.flush()
        return True

    def remove_from_set(self, kind: str, user_id: str, repo_id: int) -> bool:
        """Remove a repository from the saved or liked set; seen history is kept."""
        model = self._set_model(kind)
        removed = (
            self.session.query(model)
            .filter(model.user_id == user_id, model.repo_id == repo_id)
            .delete(synchronize_session=False)
        )
        self.session.flush()
        return bool(removed)

    def _set_ids(self, kind: str, user_id: str) -> list[int]:
        model = self._set_model(kind)
        rows = (
            self.session.query(model.repo_id)
            .filter(model.user_id == user_id)
            .order_by(model.created_at.desc(), model.id.desc())
            .all()
        )
        return [row.repo_id for row in rows]

    def saved_ids(self, user_id: str) -> list[int]:
        """Saved repository ids, most recent first."""
        return self._set_ids("saved", user_id)

    def liked_ids(self, user_id: str) -> list[int]:
        """Liked repository ids, most recent first."""
        return self._set_ids("liked", user_id)

    def seen_repo_ids(self, user_id: str) -> set[int]:
        """
        Union of every repository the user has acted on.

        Covers all SeenRecord actions plus the current saved and liked sets.
        """
        seen = {
            row.repo_id
            for row in self.session.query(SeenRecord.repo_id)
            .filter(SeenRecord.user_id == user_id)
            .distinct()
            .all()
        }
        seen.update(self.saved_ids(user_id))
        seen.update(self.liked_ids(user_id))
        return seen

    def stats(self, user_id: str) -> dict[str, int]:
        """Counts of recorded actions by type, plus current saved/liked set sizes."""
        rows = (
            self.session.query(SeenRecord.action, func.count(SeenRecord.id))
            .filter(SeenRecord.user_id == user_id)
            .group_by(SeenRecord.action)
            .all()
        )
        counts = {action: count for action, count in rows}
        return {
            "viewed": counts.get("viewed", 0),
            "liked": counts.get("liked", 0),
            "saved": counts.get("saved", 0),
            "skipped": counts.get("skipped", 0),
            "saved_now": len(self.saved_ids(user_id)),
            "liked_now": len(self.liked_ids(user_id)),
        }
