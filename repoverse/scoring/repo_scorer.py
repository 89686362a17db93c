"""
Repository scorer.

Pure functions computing the ScoreSet of a repository from its own
attributes plus the current time. Missing or malformed fields degrade to
neutral values; nothing in here raises on bad input.

Accepts either a normalized repository dict (see repoverse.parsing.repo_parser)
or a Repo model instance.
"""

import hashlib
import math
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional

from repoverse.constants import (
    ACTIVITY_BANDS,
    ACTIVITY_FLOOR,
    ACTIVITY_UNKNOWN,
    FRESHNESS_BANDS,
    FRESHNESS_FLOOR,
    FRESHNESS_UNKNOWN,
    POPULARITY_FORK_WEIGHT,
    POPULARITY_STAR_WEIGHT,
    POPULARITY_WATCHER_WEIGHT,
    RECOMMENDATION_WEIGHTS,
    TRENDING_ACTIVITY_WEIGHT,
    TRENDING_POPULARITY_WEIGHT,
)

_WORD_PATTERN = re.compile(r"[a-z0-9]+")

# (points, predicate name) - evaluated by _quality_points
_DOC_WORDS = frozenset(["documentation", "docs", "wiki", "readme"])
_TEST_WORDS = frozenset(["test", "tests", "testing", "ci", "tested"])
_DEMO_WORDS = frozenset(["demo", "live", "example", "examples", "playground"])

_QUALITY_MAX_POINTS = 100

_UNPARSEABLE = object()


@dataclass(frozen=True)
class ScoreSet:
    """Derived scores of one repository, each in [0, 100]."""

    popularity: float
    activity: float
    freshness: float
    quality: float
    trending: float
    recommendation: float

    def to_dict(self) -> dict[str, float]:
        return asdict(self)

    def as_columns(self) -> dict[str, float]:
        """Map onto Repo score column names."""
        return {f"{name}_score": value for name, value in asdict(self).items()}


# =============================================================================
# Field access
# =============================================================================


def _field(repo: Any, name: str, default: Any = None) -> Any:
    if isinstance(repo, dict):
        value = repo.get(name, default)
    else:
        value = getattr(repo, name, default)
    return default if value is None else value


def _count(repo: Any, name: str) -> int:
    try:
        return max(0, int(_field(repo, name, 0)))
    except (TypeError, ValueError):
        return 0


def _parse_timestamp(value: Any) -> Any:
    """Return an aware datetime, None when absent, or _UNPARSEABLE."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return _UNPARSEABLE
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return _UNPARSEABLE


def _days_since(moment: datetime, now: datetime) -> float:
    return (now - moment).total_seconds() / 86400


def _band(days: float, bands: list[tuple[int, float]], floor: float) -> float:
    for max_days, score in bands:
        if days <= max_days:
            return score
    return floor


def _clamp(value: float) -> float:
    return max(0.0, min(100.0, value))


# =============================================================================
# Component scores
# =============================================================================


def popularity_score(repo: Any) -> float:
    """Logarithmic blend of stars, forks and watchers, clamped to [0, 100]."""
    raw = (
        math.log10(_count(repo, "stars") + 1) * POPULARITY_STAR_WEIGHT
        + math.log10(_count(repo, "forks") + 1) * POPULARITY_FORK_WEIGHT
        + math.log10(_count(repo, "watchers") + 1) * POPULARITY_WATCHER_WEIGHT
    )
    return _clamp(raw)


def activity_score(repo: Any, now: Optional[datetime] = None) -> float:
    """Step function of days since last push (falls back to last update)."""
    now = now or datetime.now(timezone.utc)
    last_push = _parse_timestamp(_field(repo, "pushed_at") or _field(repo, "updated_at"))
    if last_push is None:
        return ACTIVITY_UNKNOWN
    if last_push is _UNPARSEABLE:
        return 50.0
    return _band(_days_since(last_push, now), ACTIVITY_BANDS, ACTIVITY_FLOOR)


def freshness_score(repo: Any, now: Optional[datetime] = None) -> float:
    """Step function of days since creation, favouring new repositories."""
    now = now or datetime.now(timezone.utc)
    created = _parse_timestamp(_field(repo, "created_at"))
    if created is None or created is _UNPARSEABLE:
        return FRESHNESS_UNKNOWN
    return _band(_days_since(created, now), FRESHNESS_BANDS, FRESHNESS_FLOOR)


def _quality_points(repo: Any) -> int:
    description = str(_field(repo, "description", ""))
    topics = [str(t).lower() for t in _field(repo, "topics", [])]
    words = set(_WORD_PATTERN.findall(f"{description} {' '.join(topics)}".lower()))
    words.update(topics)

    points = 0

    if len(description) >= 50:
        points += 20
    elif len(description) >= 20:
        points += 15
    elif len(description) >= 10:
        points += 10

    if len(topics) >= 5:
        points += 20
    elif len(topics) >= 3:
        points += 15
    elif len(topics) >= 1:
        points += 10

    if _field(repo, "license"):
        points += 15
    if _field(repo, "language"):
        points += 10
    if _field(repo, "homepage_url"):
        points += 10
    if words & _DOC_WORDS:
        points += 10
    if words & _TEST_WORDS:
        points += 10
    if words & _DEMO_WORDS:
        points += 5

    return points


def quality_score(repo: Any) -> float:
    """Completeness checklist normalized to [0, 100]."""
    return _clamp(_quality_points(repo) / _QUALITY_MAX_POINTS * 100)


def trending_score(popularity: float, activity: float) -> float:
    """
    Popularity/activity blend standing in for growth telemetry.

    No historical star snapshots are retained, so this is an approximation
    of "gaining attention now", not a stars-per-day rate.
    """
    return _clamp(popularity * TRENDING_POPULARITY_WEIGHT + activity * TRENDING_ACTIVITY_WEIGHT)


def recommendation_score(
    popularity: float,
    activity: float,
    freshness: float,
    quality: float,
    trending: float,
    weights: Optional[dict[str, float]] = None,
) -> float:
    """Fixed linear combination of the five component scores."""
    weights = weights or RECOMMENDATION_WEIGHTS
    components = {
        "popularity": popularity,
        "activity": activity,
        "freshness": freshness,
        "quality": quality,
        "trending": trending,
    }
    return _clamp(sum(components[name] * weight for name, weight in weights.items()))


def compute_scores(repo: Any, now: Optional[datetime] = None) -> ScoreSet:
    """
    Compute the full ScoreSet for a repository.

    Args:
        repo: Normalized repository dict or Repo instance
        now: Reference time; defaults to the current UTC time

    Returns:
        ScoreSet with every value rounded to two decimals
    """
    now = now or datetime.now(timezone.utc)

    popularity = round(popularity_score(repo), 2)
    activity = round(activity_score(repo, now), 2)
    freshness = round(freshness_score(repo, now), 2)
    quality = round(quality_score(repo), 2)
    trending = round(trending_score(popularity, activity), 2)
    recommendation = round(
        recommendation_score(popularity, activity, freshness, quality, trending), 2
    )

    return ScoreSet(
        popularity=popularity,
        activity=activity,
        freshness=freshness,
        quality=quality,
        trending=trending,
        recommendation=recommendation,
    )


def personalized_score(
    scores: dict[str, float],
    activity_weight: Optional[float] = None,
    popularity_weight: Optional[float] = None,
    documentation_weight: Optional[float] = None,
) -> float:
    """
    Re-weight a stored ScoreSet with a user's ranking knobs.

    The popularity knob scales popularity and trending, the activity knob
    scales activity and freshness, the documentation knob scales quality.
    Knobs at 1.0 (or unset) return the stored composite unchanged.
    """
    knobs = {
        "popularity": popularity_weight,
        "trending": popularity_weight,
        "activity": activity_weight,
        "freshness": activity_weight,
        "quality": documentation_weight,
    }
    knobs = {name: 1.0 if value is None else max(0.0, float(value)) for name, value in knobs.items()}
    if all(value == 1.0 for value in knobs.values()):
        return float(scores.get("recommendation") or 0.0)

    weights = {name: RECOMMENDATION_WEIGHTS[name] * knobs[name] for name in RECOMMENDATION_WEIGHTS}
    total = sum(weights.values())
    if total <= 0:
        return float(scores.get("recommendation") or 0.0)

    weights = {name: weight / total for name, weight in weights.items()}
    return round(
        recommendation_score(
            float(scores.get("popularity") or 0.0),
            float(scores.get("activity") or 0.0),
            float(scores.get("freshness") or 0.0),
            float(scores.get("quality") or 0.0),
            float(scores.get("trending") or 0.0),
            weights,
        ),
        2,
    )


# =============================================================================
# Rotation
# =============================================================================


def rotation_epoch(now: datetime, period_days: int) -> int:
    """Index of the rotation window containing now."""
    return int(now.timestamp() // (period_days * 86400))


def rotation_hash(*parts: Any) -> int:
    """Stable 31-bit pseudo-random key for the joined parts."""
    digest = hashlib.sha256(":".join(str(part) for part in parts).encode()).digest()
    return int.from_bytes(digest[:4], "big") % (2**31)


def score_band(score: float, width: float) -> float:
    """
    Coarse score bucket used ahead of rotation in feed ordering.

    A width of 0 disables banding and returns the score itself.
    """
    if width <= 0:
        return score
    return float(math.floor(score / width))
