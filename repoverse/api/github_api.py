"""GitHub repository search client with rate limiting and interruptible backoff."""

import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol

import requests  # type: ignore[import-untyped]

from repoverse.config import get_settings
from repoverse.constants import GITHUB_SEARCH_MAX_RESULTS, GITHUB_SEARCH_REPOSITORIES
from repoverse.logging import get_logger

logger = get_logger("github")


class SourceFetchError(Exception):
    """A search request failed and will not be retried."""


class CurationCancelled(Exception):
    """The job was cancelled or a wait would pass the job deadline."""


@dataclass
class SearchPage:
    """One page of search results plus the rate-limit state reported with it."""

    items: list[dict] = field(default_factory=list)
    rate_limit_remaining: Optional[int] = None
    rate_limit_reset: Optional[int] = None
    total_count: int = 0


class SourceFetcher(Protocol):
    """Anything that can run one repository search page."""

    def search(self, query: str, page: int) -> SearchPage: ...


def _get_headers(token: Optional[str]) -> dict[str, str]:
    """Get headers for GitHub API requests."""
    headers = {
        "Accept": "application/vnd.github.v3+json",
        "User-Agent": "Repoverse/1.0",
    }
    if token:
        headers["Authorization"] = f"token {token}"
    return headers


def _rate_headers(response: requests.Response) -> tuple[Optional[int], Optional[int]]:
    """Read (remaining, reset epoch) from response headers."""
    try:
        remaining = int(response.headers["X-RateLimit-Remaining"])
    except (KeyError, ValueError):
        remaining = None
    try:
        reset = int(response.headers["X-RateLimit-Reset"])
    except (KeyError, ValueError):
        reset = None
    return remaining, reset


def _is_rate_limited(response: requests.Response, remaining: Optional[int]) -> bool:
    if response.status_code == 429:
        return True
    if response.status_code != 403:
        return False
    if remaining == 0 or "Retry-After" in response.headers:
        return True
    return "rate limit" in (response.text or "").lower()


class GitHubFetcher:
    """
    Search API fetcher.

    Enforces a per-minute request budget, honours the rate-limit reset
    epoch on 403/429 with a single retry, and performs every wait through
    an interruptible sleep so a job deadline or cancel event can stop it.

    Usage:
        fetcher = GitHubFetcher(deadline=time.time() + 3600)
        page = fetcher.search("react tutorial stars:>100", page=1)
    """

    def __init__(
        self,
        token: Optional[str] = None,
        requests_per_minute: Optional[int] = None,
        max_backoff_seconds: Optional[int] = None,
        per_page: Optional[int] = None,
        timeout: Optional[int] = None,
        deadline: Optional[float] = None,
        cancel_event: Optional[threading.Event] = None,
        sleep: Optional[Callable[[float], bool]] = None,
        clock: Callable[[], float] = time.time,
    ):
        settings = get_settings()
        self.token = token if token is not None else settings.github_token
        self.requests_per_minute = requests_per_minute or settings.github_requests_per_minute
        self.max_backoff_seconds = max_backoff_seconds or settings.github_max_backoff_seconds
        self.per_page = per_page or settings.github_per_page
        self.timeout = timeout or settings.github_request_timeout
        self.deadline = deadline
        self.cancel_event = cancel_event or threading.Event()
        # sleep(seconds) returns True when interrupted
        self._sleep = sleep or self.cancel_event.wait
        self._clock = clock
        self._sent: deque[float] = deque()
        self._lock = threading.Lock()

        if not self.token:
            logger.warning("no_token", message="GITHUB_TOKEN not set, using unauthenticated requests")

    def cancel(self) -> None:
        """Interrupt any in-progress or future wait."""
        self.cancel_event.set()

    def _wait(self, seconds: float, reason: str) -> None:
        if seconds <= 0:
            return
        if self.cancel_event.is_set():
            raise CurationCancelled("cancelled")
        if self.deadline is not None and self._clock() + seconds > self.deadline:
            raise CurationCancelled(f"{reason} wait of {seconds:.0f}s passes the job deadline")
        if self._sleep(seconds):
            raise CurationCancelled("cancelled")

    def _respect_budget(self) -> None:
        """Block until another request fits in the per-minute budget."""
        with self._lock:
            now = self._clock()
            while self._sent and now - self._sent[0] >= 60:
                self._sent.popleft()
            wait = 60 - (now - self._sent[0]) if len(self._sent) >= self.requests_per_minute else 0
        if wait > 0:
            logger.debug("request_budget_wait", wait_seconds=round(wait, 2))
            self._wait(wait, "budget")
        with self._lock:
            self._sent.append(self._clock())

    def backoff_seconds(self, reset: Optional[int], attempt: int, retry_after: Optional[str] = None) -> float:
        """max(reset - now + 1, 2**attempt), capped at the configured maximum."""
        base = float(2**attempt)
        if retry_after and retry_after.isdigit():
            base = max(base, float(retry_after))
        if reset:
            base = max(base, reset - self._clock() + 1)
        return min(base, float(self.max_backoff_seconds))

    def search(self, query: str, page: int) -> SearchPage:
        """
        Fetch one page of repository search results sorted by stars.

        Raises:
            SourceFetchError: Non-200 response, network failure, or rate limit after the retry
            CurationCancelled: Backoff would pass the deadline or the job was cancelled
        """
        params = {
            "q": query,
            "sort": "stars",
            "order": "desc",
            "per_page": self.per_page,
            "page": page,
        }
        attempt = 0

        while True:
            self._respect_budget()
            try:
                response = requests.get(
                    GITHUB_SEARCH_REPOSITORIES,
                    headers=_get_headers(self.token),
                    params=params,
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                logger.error("request_exception", error=str(e), query=query, page=page)
                raise SourceFetchError(f"request failed for {query!r}: {e}") from e

            remaining, reset = _rate_headers(response)

            if response.status_code == 200:
                data = response.json()
                return SearchPage(
                    items=data.get("items") or [],
                    rate_limit_remaining=remaining,
                    rate_limit_reset=reset,
                    total_count=data.get("total_count") or 0,
                )

            if _is_rate_limited(response, remaining) and attempt == 0:
                attempt += 1
                wait_time = self.backoff_seconds(
                    reset, attempt, response.headers.get("Retry-After")
                )
                logger.info(
                    "rate_limited_retry",
                    wait_seconds=round(wait_time, 2),
                    query=query,
                    page=page,
                    attempt=attempt,
                )
                self._wait(wait_time, "rate limit")
                continue

            logger.error("api_error", status=response.status_code, query=query, page=page)
            raise SourceFetchError(f"search returned HTTP {response.status_code} for {query!r}")


def fetch_all(fetcher: SourceFetcher, query: str, max_pages: Optional[int] = None) -> list[dict]:
    """
    Collect items for a query across pages.

    Stops at max_pages, on a short page, or at the search API result ceiling.
    A failure on page 1 propagates; a failure on a later page keeps the
    items already collected.
    """
    settings = get_settings()
    max_pages = max_pages or settings.github_max_pages
    per_page = getattr(fetcher, "per_page", None) or settings.github_per_page
    items: list[dict] = []

    for page in range(1, max_pages + 1):
        try:
            result = fetcher.search(query, page)
        except SourceFetchError as e:
            if page == 1:
                raise
            logger.warning(
                "partial_query", query=query, page=page, collected=len(items), error=str(e)
            )
            break
        items.extend(result.items)
        if len(result.items) < per_page or page * per_page >= GITHUB_SEARCH_MAX_RESULTS:
            break

    return items
