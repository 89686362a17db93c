"""
Recommendation pool builder.

Composes a user's candidate list from tiers in priority order:

    primary cluster -> secondary clusters (profile order) -> tag fallback
    -> legacy cluster inference (profiles without a primary cluster)

A repository belongs to the first tier that yields it and seen
repositories are excluded everywhere. Within a tier items are ordered by
score band desc, per-user rotation desc, score desc, repo id asc. The
rotation is a hash of (user, cluster, repo, rotation epoch): two users
with identical preferences see the same bands in a different order, and
each user's order reshuffles when the epoch advances. If every tier comes
up empty, the best of the whole catalogue is offered as a last resort.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from repoverse.clustering import infer_cluster_from_stack
from repoverse.config import get_settings
from repoverse.constants import GOAL_MATCH_KEYWORDS, GOAL_TAG_EXPANSIONS, PROJECT_TYPE_MATCH_KEYWORDS
from repoverse.logging import LogContext, get_logger
from repoverse.models import ClusterMembership, Repo, UserPreferenceProfile
from repoverse.repositories import MembershipRepository
from repoverse.scoring import personalized_score, rotation_hash, score_band

logger = get_logger("pool")

TAG_FALLBACK_LIMIT = 150
CATALOGUE_LIMIT = 500

SOURCE_PRIMARY = "primary"
SOURCE_SECONDARY = "secondary"
SOURCE_TAGS = "tags"
SOURCE_LEGACY = "legacy"
SOURCE_CATALOGUE = "catalogue"


@dataclass(frozen=True)
class PoolItem:
    """One candidate with its position key inside the pool."""

    tier: int
    band: float
    rotation: int
    score: float
    repo: Repo
    source: str
    cluster: Optional[str] = None

    @property
    def sort_key(self) -> Tuple[int, float, int, float, int]:
        return (self.tier, -self.band, -self.rotation, -self.score, self.repo.id)


# =============================================================================
# Preference filtering
# =============================================================================


def _repo_text(repo: Repo) -> str:
    return " ".join(
        [repo.name or "", repo.description or "", " ".join(repo.topics or [])]
    ).lower()


def matches_preferences(
    repo: Repo,
    profile: UserPreferenceProfile,
    tags: Optional[Iterable[str]] = None,
) -> bool:
    """
    AND across tech stack, goals and project types; OR within each.

    Goals and project types without a keyword set never exclude anything.
    """
    text = _repo_text(repo)

    if profile.tech_stack:
        tech_text = " ".join([text, (repo.language or "").lower(), " ".join(tags or [])])
        if not any(tech.lower() in tech_text for tech in profile.tech_stack if tech):
            return False

    if profile.goals:
        if not any(
            _keywords_hit(GOAL_MATCH_KEYWORDS.get(goal), text) for goal in profile.goals
        ):
            return False

    if profile.project_types:
        if not any(
            _keywords_hit(PROJECT_TYPE_MATCH_KEYWORDS.get(kind), text)
            for kind in profile.project_types
        ):
            return False

    return True


def _keywords_hit(keywords: Optional[List[str]], text: str) -> bool:
    if keywords is None:
        return True
    return any(keyword in text for keyword in keywords)


def fallback_tags(profile: UserPreferenceProfile) -> List[str]:
    """Tech stack, interests, project types and expanded goals, lowercased and unique."""
    tags = [t.lower() for t in (profile.tech_stack or []) if t]
    tags += [t.lower() for t in (profile.interests or []) if t]
    tags += [t.lower() for t in (profile.project_types or []) if t]
    for goal in profile.goals or []:
        tags += GOAL_TAG_EXPANSIONS.get(goal, [])
    tags = [re.sub(r"\s+", "-", t.strip()) for t in tags]
    return list(dict.fromkeys(t for t in tags if t))




# =============================================================================
# Pool assembly
# =============================================================================


class _PoolAssembler:
    def __init__(
        self,
        session: Session,
        profile: UserPreferenceProfile,
        seen_ids: Set[int],
        epoch: int,
        band_width: float,
    ):
        self.memberships = MembershipRepository(session)
        self.profile = profile
        self.seen_ids = seen_ids
        self.epoch = epoch
        self.band_width = band_width
        self.taken: Dict[int, PoolItem] = {}
        self.tier = 0

    def _score(self, repo: Repo) -> float:
        return personalized_score(
            repo.scores_dict(),
            activity_weight=self.profile.activity_weight,
            popularity_weight=self.profile.popularity_weight,
            documentation_weight=self.profile.documentation_weight,
        )

    def _take(self, membership: ClusterMembership, source: str) -> bool:
        repo = membership.repo
        if repo is None or repo.id in self.seen_ids or repo.id in self.taken:
            return False
        score = self._score(repo)
        self.taken[repo.id] = PoolItem(
            tier=self.tier,
            band=score_band(score, self.band_width),
            rotation=rotation_hash(self.profile.user_id, membership.cluster_name, repo.id, self.epoch),
            score=score,
            repo=repo,
            source=source,
            cluster=membership.cluster_name,
        )
        return True

    def add_cluster_tier(self, cluster_name: str, source: str, filtered: bool) -> int:
        added = 0
        with LogContext(cluster=cluster_name):
            for membership in self.memberships.for_clusters([cluster_name]):
                if filtered and self.profile.has_filters:
                    if not matches_preferences(membership.repo, self.profile, membership.tags):
                        continue
                added += self._take(membership, source)
            logger.debug("pool_tier", tier=self.tier, source=source, added=added)
        self.tier += 1
        return added

    def add_tag_tier(self, tags: List[str], limit: int = TAG_FALLBACK_LIMIT) -> int:
        # Rows arrive best first, so the first membership seen per repo wins
        added = 0
        rows = self.memberships.for_tags(tags, exclude_repo_ids=self.seen_ids | set(self.taken))
        for membership, _ in rows:
            if added >= limit:
                break
            added += self._take(membership, SOURCE_TAGS)
        logger.debug("pool_tier", tier=self.tier, source=SOURCE_TAGS, tags=len(tags), added=added)
        self.tier += 1
        return added

    def add_catalogue_tier(self, limit: int = CATALOGUE_LIMIT) -> int:
        added = 0
        for membership in self.memberships.catalogue(exclude_repo_ids=self.seen_ids, limit=limit):
            added += self._take(membership, SOURCE_CATALOGUE)
        logger.debug("pool_tier", tier=self.tier, source=SOURCE_CATALOGUE, added=added)
        self.tier += 1
        return added

    def items(self) -> List[PoolItem]:
        return sorted(self.taken.values(), key=lambda item: item.sort_key)


def build_pool(
    session: Session,
    profile: UserPreferenceProfile,
    seen_ids: Set[int],
    known_clusters: Optional[Set[str]] = None,
    epoch: int = 0,
    band_width: Optional[float] = None,
) -> List[PoolItem]:
    """
    Build the full ordered candidate pool for a profile.

    epoch selects the rotation window; callers paginating with a cursor
    pass the epoch the cursor was issued in. band_width defaults to
    FEED_SCORE_BAND. Unknown cluster names yield empty tiers. Returns an
    empty list only when no unseen repository exists anywhere in the
    curation store.
    """
    if band_width is None:
        band_width = get_settings().feed_score_band
    assembler = _PoolAssembler(session, profile, set(seen_ids), epoch, band_width)

    def usable(name: Optional[str]) -> bool:
        return bool(name) and (known_clusters is None or name in known_clusters)

    clusters_used: List[str] = []
    if usable(profile.primary_cluster):
        assembler.add_cluster_tier(profile.primary_cluster, SOURCE_PRIMARY, filtered=True)
        clusters_used.append(profile.primary_cluster)
    elif profile.primary_cluster:
        logger.warning("unknown_cluster", cluster=profile.primary_cluster, tier=SOURCE_PRIMARY)
    assembler.tier = 1

    for name in profile.secondary_clusters or []:
        if name in clusters_used:
            continue
        if not usable(name):
            logger.warning("unknown_cluster", cluster=name, tier=SOURCE_SECONDARY)
            continue
        assembler.add_cluster_tier(name, SOURCE_SECONDARY, filtered=True)
        clusters_used.append(name)

    tags = fallback_tags(profile)
    if tags:
        assembler.add_tag_tier(tags)
    else:
        assembler.tier += 1

    if not profile.primary_cluster:
        legacy = infer_cluster_from_stack(profile.tech_stack, profile.interests, profile.goals)
        assembler.add_cluster_tier(legacy, SOURCE_LEGACY, filtered=False)
    else:
        assembler.tier += 1

    if not assembler.taken:
        assembler.add_catalogue_tier()

    return assembler.items()
