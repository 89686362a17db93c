# Repository scoring module

from .repo_scorer import (
    ScoreSet,
    activity_score,
    compute_scores,
    freshness_score,
    personalized_score,
    popularity_score,
    quality_score,
    recommendation_score,
    rotation_epoch,
    rotation_hash,
    score_band,
    trending_score,
)

__all__ = [
    "ScoreSet",
    "compute_scores",
    "popularity_score",
    "activity_score",
    "freshness_score",
    "quality_score",
    "trending_score",
    "recommendation_score",
    "personalized_score",
    "rotation_epoch",
    "rotation_hash",
    "score_band",
]
