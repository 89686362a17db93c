# Repository parsing and quality filtering module

from .quality_checker import REJECT_RULES, check_repo_quality, curation_quality_score, rule_reason
from .repo_parser import derive_tags, normalize_repo, parse_timestamp, searchable_text

__all__ = [
    "normalize_repo",
    "parse_timestamp",
    "searchable_text",
    "derive_tags",
    "check_repo_quality",
    "curation_quality_score",
    "REJECT_RULES",
    "rule_reason",
]
