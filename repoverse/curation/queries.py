"""
Search query generation for cluster and facet curation passes.

Query groups are interleaved before truncation so a small query budget
still samples base keywords, languages, frameworks and domains.
"""

from itertools import zip_longest
from typing import List, Optional

from repoverse.config import get_settings
from repoverse.constants import (
    CLUSTER_CATALOGUE,
    FACET_KINDS,
    GOAL_FACETS,
    LANGUAGE_FACETS,
    PROJECT_TYPE_FACETS,
)


def _slug(value: str) -> str:
    return "-".join(value.lower().split())


def _interleave(*groups: List[str]) -> List[str]:
    merged = [query for row in zip_longest(*groups) for query in row if query]
    return list(dict.fromkeys(merged))


def cluster_queries(cluster_name: str, max_queries: Optional[int] = None) -> List[str]:
    """
    Build the search queries for one catalogue cluster.

    Raises:
        KeyError: cluster_name is not in the catalogue
    """
    settings = get_settings()
    max_queries = max_queries or settings.curation_max_queries
    config = CLUSTER_CATALOGUE[cluster_name]
    min_stars = settings.curation_min_stars

    base = [f"{keyword} stars:>{min_stars}" for keyword in config["keywords"]]

    languages = []
    for language in config["languages"]:
        lang = language.lower()
        languages.extend(
            [
                f"{lang} {cluster_name} stars:>100",
                f"{lang} tutorial stars:>100",
                f"{lang} library stars:>200",
                f"{lang} framework stars:>300",
                f"{lang} boilerplate stars:>100",
                f"{lang} example stars:>100",
            ]
        )

    frameworks = []
    for framework in config["frameworks"]:
        slug = _slug(framework)
        frameworks.extend(
            [
                f"{slug} {cluster_name} stars:>100",
                f"{slug} tutorial stars:>100",
                f"{slug} example stars:>100",
                f"{slug} boilerplate stars:>100",
                f"{slug} starter stars:>100",
            ]
        )

    domain = [
        f"{cluster_name} tutorial stars:>100",
        f"{cluster_name} course stars:>100",
        f"{cluster_name} boilerplate stars:>100",
        f"{cluster_name} example stars:>100",
        f"{cluster_name} library stars:>200",
        f"{cluster_name} framework stars:>300",
    ]

    return _interleave(base, languages, frameworks, domain)[:max_queries]


def facet_values(kind: str) -> List[str]:
    """Known values for a facet kind."""
    if kind == "language":
        return list(LANGUAGE_FACETS)
    if kind == "goal":
        return list(GOAL_FACETS)
    if kind == "project-type":
        return list(PROJECT_TYPE_FACETS)
    raise ValueError(f"Unknown facet kind: {kind} (expected one of {', '.join(FACET_KINDS)})")


def facet_queries(kind: str, value: str, max_queries: Optional[int] = None) -> List[str]:
    """
    Build the search queries for one language, goal or project-type facet.

    Raises:
        ValueError: Unknown facet kind or value
    """
    max_queries = max_queries or get_settings().curation_max_queries
    if value not in facet_values(kind):
        raise ValueError(f"Unknown {kind} facet: {value}")

    if kind == "language":
        lang = value.lower()
        queries = [
            f"language:{lang} stars:>100",
            f"language:{lang} tutorial stars:>50",
            f"language:{lang} boilerplate stars:>50",
            f"language:{lang} library stars:>100",
            f"language:{lang} framework stars:>200",
        ]
    elif kind == "goal":
        queries = []
        for keyword in GOAL_FACETS[value]:
            queries.extend(
                [
                    f"{keyword} stars:>100",
                    f"{keyword} tutorial stars:>50",
                    f"{keyword} example stars:>50",
                ]
            )
    else:
        queries = []
        for keyword in PROJECT_TYPE_FACETS[value]:
            queries.extend([f"{keyword} stars:>100", f"{keyword} boilerplate stars:>50"])

    return list(dict.fromkeys(queries))[:max_queries]


def parse_facet(text: str) -> tuple[str, str]:
    """
    Parse a "kind:value" facet selector, e.g. "language:Python".

    Raises:
        ValueError: Malformed selector or unknown kind/value
    """
    kind, sep, value = text.partition(":")
    if not sep or not value:
        raise ValueError(f"Facet must look like kind:value, got {text!r}")
    kind = kind.strip().lower()
    value = value.strip()
    for known in facet_values(kind):
        if known.lower() == value.lower():
            return kind, known
    raise ValueError(f"Unknown {kind} facet: {value}")
