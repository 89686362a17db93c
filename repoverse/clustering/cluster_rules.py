"""
Cluster assignment.

Each repository gets exactly one primary cluster from an ordered rule
table: the first rule whose predicate matches wins, and repositories that
match nothing land in the "general" cluster. Rule order is part of the
contract (frontend, backend, mobile, desktop, ai-ml, data-science, devops,
game-dev).
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from repoverse.constants import (
    CLUSTER_RULES,
    GENERAL_CLUSTER,
    LEGACY_CLUSTER_RULES,
    LEGACY_DEFAULT_CLUSTER,
)


def _phrase_pattern(phrase: str) -> re.Pattern:
    return re.compile(r"\b" + re.escape(phrase.lower()) + r"\b")


@dataclass(frozen=True)
class ClusterRule:
    """
    One row of the assignment table.

    A repository matches if any topic equals one of `topics`, any phrase
    appears as a whole word in its topics or description, or its primary
    language is in `languages`.
    """

    cluster: str
    topics: frozenset
    phrases: Tuple[re.Pattern, ...]
    languages: frozenset

    @classmethod
    def from_config(cls, config: dict) -> "ClusterRule":
        return cls(
            cluster=config["cluster"],
            topics=frozenset(t.lower() for t in config["topics"]),
            phrases=tuple(_phrase_pattern(p) for p in config["phrases"]),
            languages=frozenset(lang.lower() for lang in config["languages"]),
        )

    def match_reason(self, topics: set, text: str, language: str) -> Optional[str]:
        """Return which predicate matched, or None."""
        hit = self.topics & topics
        if hit:
            return f"topic:{sorted(hit)[0]}"
        for pattern in self.phrases:
            if pattern.search(text):
                return f"phrase:{pattern.pattern[2:-2]}"
        if language and language in self.languages:
            return f"language:{language}"
        return None


RULE_TABLE: List[ClusterRule] = [ClusterRule.from_config(rule) for rule in CLUSTER_RULES]


def _signals(repo: Any) -> Tuple[set, str, str]:
    if isinstance(repo, dict):
        topics, description, language = repo.get("topics"), repo.get("description"), repo.get("language")
    else:
        topics, description, language = repo.topics, repo.description, repo.language
    topic_set = {str(t).lower() for t in topics or []}
    text = " ".join(sorted(topic_set) + [(description or "").lower()])
    return topic_set, text, (language or "").lower()


def explain_cluster(repo: Any, rules: Iterable[ClusterRule] = RULE_TABLE) -> Tuple[str, str]:
    """
    Assign a cluster and report the rule that decided it.

    Returns:
        (cluster name, reason) - reason is "fallback" for the general cluster
    """
    topics, text, language = _signals(repo)
    for rule in rules:
        reason = rule.match_reason(topics, text, language)
        if reason:
            return rule.cluster, reason
    return GENERAL_CLUSTER, "fallback"


def assign_cluster(repo: Any) -> str:
    """Deterministic primary cluster for a normalized repository dict or Repo."""
    return explain_cluster(repo)[0]


def infer_cluster_from_stack(
    tech_stack: Optional[List[str]] = None,
    interests: Optional[List[str]] = None,
    goals: Optional[List[str]] = None,
) -> str:
    """
    Infer a cluster for legacy profiles that never picked a primary cluster.

    Domain interests are consulted first, then frameworks in the tech stack;
    falls back to the default cluster.
    """
    tags = {t.lower() for t in (interests or []) + (tech_stack or []) + (goals or []) if t}
    for cluster, triggers in LEGACY_CLUSTER_RULES:
        if tags & set(triggers):
            return cluster
    return LEGACY_DEFAULT_CLUSTER
