"""Shared test data: a fixed clock, raw search API items and fetcher doubles."""

from datetime import datetime, timedelta, timezone

from repoverse.api import SearchPage, SourceFetchError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def iso(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


def api_item(
    repo_id: int,
    name: str | None = None,
    owner: str = "octo",
    description: str = "A React component library with tutorial and examples",
    stars: int = 500,
    forks: int = 50,
    language: str | None = "JavaScript",
    topics: list[str] | None = None,
    pushed_days_ago: int = 3,
    created_days_ago: int = 400,
    license_name: str | None = "MIT License",
) -> dict:
    """Raw search API item, timestamps relative to NOW."""
    name = name or f"repo-{repo_id}"
    return {
        "id": repo_id,
        "name": name,
        "full_name": f"{owner}/{name}",
        "description": description,
        "owner": {"login": owner, "avatar_url": f"https://avatars.example/{owner}"},
        "stargazers_count": stars,
        "forks_count": forks,
        "watchers_count": stars,
        "open_issues_count": 4,
        "language": language,
        "topics": ["react", "frontend"] if topics is None else topics,
        "license": {"name": license_name} if license_name else None,
        "html_url": f"https://github.com/{owner}/{name}",
        "homepage": None,
        "created_at": iso(NOW - timedelta(days=created_days_ago)),
        "updated_at": iso(NOW - timedelta(days=pushed_days_ago)),
        "pushed_at": iso(NOW - timedelta(days=pushed_days_ago)),
    }


class FakeFetcher:
    """
    SourceFetcher double.

    responses maps query -> list of items (page 1 only) or an exception
    instance to raise. Unknown queries return an empty page.
    """

    def __init__(self, responses: dict | None = None, default: list | None = None):
        self.responses = responses or {}
        self.default = default or []
        self.calls: list[tuple[str, int]] = []
        self.deadline = None

    def search(self, query: str, page: int) -> SearchPage:
        self.calls.append((query, page))
        result = self.responses.get(query, self.default)
        if isinstance(result, Exception):
            raise result
        items = list(result) if page == 1 else []
        return SearchPage(items=items, rate_limit_remaining=29, rate_limit_reset=None, total_count=len(items))


class FailingFetcher(FakeFetcher):
    """Fails every query."""

    def search(self, query: str, page: int) -> SearchPage:
        self.calls.append((query, page))
        raise SourceFetchError(f"HTTP 502 for {query!r}")
