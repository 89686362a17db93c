"""
Repository parsing and tag derivation.

Turns raw search API items into normalized repository dicts whose keys
match the Repo columns, and derives the tag set used for cluster overlap
and feed filtering.
"""

import re
from datetime import datetime, timezone
from typing import Dict, List, Optional

from repoverse.constants import (
    ALL_FRAMEWORKS,
    LANGUAGE_ALIASES,
    MAX_REPO_TAGS,
    PROJECT_TYPE_TAG_RULES,
)

# Trigger words match at the start of a word: "learn" hits "learning"
_TRIGGER_PATTERNS = [
    (re.compile(r"\b(?:" + "|".join(re.escape(w) for w in triggers) + r")"), tags)
    for triggers, tags in PROJECT_TYPE_TAG_RULES
]


def _framework_variants(framework: str) -> List[str]:
    lowered = framework.lower()
    return list(dict.fromkeys([lowered, lowered.replace(" ", "-"), lowered.replace(" ", "")]))


_FRAMEWORK_PATTERNS = [
    (
        framework.lower(),
        re.compile(
            r"(?<![a-z0-9])(?:"
            + "|".join(re.escape(v) for v in _framework_variants(framework))
            + r")(?![a-z0-9])"
        ),
    )
    for framework in ALL_FRAMEWORKS
]


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 API timestamp into an aware UTC datetime; None if absent or malformed."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_repo(item: Dict) -> Optional[Dict]:
    """
    Normalize one search API item.

    Returns:
        Dict keyed like the Repo columns, or None when the item has no id
    """
    repo_id = item.get("id")
    if repo_id is None:
        return None

    owner = item.get("owner") or {}
    license_info = item.get("license") or {}
    full_name = item.get("full_name") or ""
    name = item.get("name") or full_name.split("/")[-1]

    return {
        "id": int(repo_id),
        "name": name,
        "full_name": full_name or name,
        "description": (item.get("description") or "").strip() or None,
        "owner_login": owner.get("login") or (full_name.split("/")[0] if "/" in full_name else ""),
        "owner_avatar": owner.get("avatar_url"),
        "stars": item.get("stargazers_count") or 0,
        "forks": item.get("forks_count") or 0,
        "watchers": item.get("watchers_count") or 0,
        "open_issues": item.get("open_issues_count") or 0,
        "language": item.get("language"),
        "topics": [str(t).lower() for t in item.get("topics") or []],
        "license": license_info.get("name") if isinstance(license_info, dict) else None,
        "html_url": item.get("html_url"),
        "homepage_url": item.get("homepage") or None,
        "created_at": parse_timestamp(item.get("created_at")),
        "updated_at": parse_timestamp(item.get("updated_at")),
        "pushed_at": parse_timestamp(item.get("pushed_at")),
    }


def searchable_text(record: Dict) -> str:
    """Lowercased name, description and topics joined for keyword checks."""
    return " ".join(
        [
            (record.get("name") or "").lower(),
            (record.get("description") or "").lower(),
            " ".join(record.get("topics") or []).lower(),
        ]
    )


def derive_tags(record: Dict, cluster_name: Optional[str] = None) -> List[str]:
    """
    Derive the repository tag set.

    Order: normalized language, topics, detected project types, cluster
    name, known frameworks. Unique, capped at MAX_REPO_TAGS.
    """
    tags: List[str] = []
    text = searchable_text(record)

    language = (record.get("language") or "").lower()
    if language:
        tags.append(LANGUAGE_ALIASES.get(language, language))

    tags.extend(str(t).lower() for t in record.get("topics") or [])

    for pattern, type_tags in _TRIGGER_PATTERNS:
        if pattern.search(text):
            tags.extend(type_tags)

    if cluster_name:
        tags.append(cluster_name.lower())

    for framework, pattern in _FRAMEWORK_PATTERNS:
        if pattern.search(text):
            tags.append(framework)

    unique = list(dict.fromkeys(t.strip() for t in tags if t and t.strip()))
    return unique[:MAX_REPO_TAGS]
