"""Quality checker module for filtering curation candidates."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple

from repoverse.constants import (
    AI_AGENT_KEYWORDS,
    AWESOME_LIST_MARKERS,
    AWESOME_LIST_STAR_LIMIT,
    CODE_INDICATOR_STAR_LIMIT,
    CODE_INDICATORS,
    CORPORATE_OWNERS,
    CORPORATE_STAR_LIMIT,
    CURATION_QUALITY_BANDS,
    CURATION_QUALITY_DEFAULT,
    LIBRARY_MARKERS,
    MIN_DESCRIPTION_LENGTH,
    NO_CODE_KEYWORDS,
    TUTORIAL_MARKERS,
    WRAPPER_MARKERS,
    WRAPPER_STAR_LIMIT,
)

from .repo_parser import searchable_text


@dataclass(frozen=True)
class Candidate:
    """Precomputed view of a normalized record shared by every rule."""

    record: Dict
    stars: int
    description: str
    text: str
    owner: str
    min_stars: int
    cutoff: datetime


@dataclass(frozen=True)
class RejectRule:
    """A hard reject: when `rejects` is true the candidate is dropped."""

    name: str
    reason: str
    rejects: Callable[[Candidate], bool]


def _any_in(markers, text: str) -> bool:
    return any(marker in text for marker in markers)


def _is_stale(c: Candidate) -> bool:
    pushed_at = c.record.get("pushed_at")
    if pushed_at is None:
        return True
    if pushed_at.tzinfo is None:
        pushed_at = pushed_at.replace(tzinfo=timezone.utc)
    return pushed_at < c.cutoff


# Evaluated in order; every matching rule is reported
REJECT_RULES: List[RejectRule] = [
    RejectRule("min_stars", "Too few stars", lambda c: c.stars < c.min_stars),
    RejectRule(
        "description",
        "Missing or near-empty description",
        lambda c: len(c.description.strip()) < MIN_DESCRIPTION_LENGTH,
    ),
    RejectRule("no_code", "No-code tool", lambda c: _any_in(NO_CODE_KEYWORDS, c.text)),
    RejectRule("ai_agent", "AI agent tooling", lambda c: _any_in(AI_AGENT_KEYWORDS, c.text)),
    RejectRule(
        "awesome_list",
        "Generic awesome list",
        lambda c: _any_in(AWESOME_LIST_MARKERS, c.description.lower())
        and c.stars > AWESOME_LIST_STAR_LIMIT,
    ),
    RejectRule(
        "corporate",
        "Mega-corporate repo (not tutorial)",
        lambda c: c.owner in CORPORATE_OWNERS
        and c.stars > CORPORATE_STAR_LIMIT
        and not _any_in(TUTORIAL_MARKERS, c.description.lower()),
    ),
    RejectRule(
        "wrapper",
        "Simple wrapper/integration",
        lambda c: _any_in(WRAPPER_MARKERS, c.text)
        and not _any_in(LIBRARY_MARKERS, c.description.lower())
        and c.stars < WRAPPER_STAR_LIMIT,
    ),
    RejectRule(
        "code_indicator",
        "No clear code-related purpose",
        lambda c: not _any_in(CODE_INDICATORS, c.text) and c.stars < CODE_INDICATOR_STAR_LIMIT,
    ),
    RejectRule("stale", "Last push older than staleness horizon", _is_stale),
]


def check_repo_quality(
    record: Dict,
    min_stars: int,
    horizon_days: int,
    now: Optional[datetime] = None,
) -> Tuple[bool, List[str]]:
    """
    Run every reject rule against a normalized repository record.

    Returns:
        Tuple of (is_valid, list of rejecting rule names)
    """
    now = now or datetime.now(timezone.utc)
    candidate = Candidate(
        record=record,
        stars=int(record.get("stars") or 0),
        description=record.get("description") or "",
        text=searchable_text(record),
        owner=(record.get("owner_login") or "").lower(),
        min_stars=min_stars,
        cutoff=now - timedelta(days=horizon_days),
    )
    rejected = [rule.name for rule in REJECT_RULES if rule.rejects(candidate)]
    return (len(rejected) == 0, rejected)


def curation_quality_score(stars: int) -> float:
    """Star-band quality score used by the curation ranking."""
    for low, high, score in CURATION_QUALITY_BANDS:
        if low <= stars <= high:
            return score
    return CURATION_QUALITY_DEFAULT


def rule_reason(name: str) -> str:
    """Human readable reason for a reject rule name."""
    for rule in REJECT_RULES:
        if rule.name == name:
            return rule.reason
    return name
