# Upstream repository search module

from .github_api import (
    CurationCancelled,
    GitHubFetcher,
    SearchPage,
    SourceFetcher,
    SourceFetchError,
    fetch_all,
)

__all__ = [
    "GitHubFetcher",
    "SourceFetcher",
    "SearchPage",
    "SourceFetchError",
    "CurationCancelled",
    "fetch_all",
]
