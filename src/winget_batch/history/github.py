"""GitHub commit-history source.

Pages through the commits of the winget manifest repository. Requests are
counted against a persisted budget so the tool stops before GitHub starts
refusing, and a rate-limit refusal ends the run instead of being retried.
"""

import logging
from datetime import UTC, datetime
from typing import Any, Optional

import aiohttp

from winget_batch.config import DEFAULT_GITHUB_REPO
from winget_batch.errors import GitHubError, GitHubRateLimitError
from winget_batch.history.http import HttpSource
from winget_batch.ratelimit import (
    AUTHENTICATED_LIMIT,
    UNAUTHENTICATED_LIMIT,
    RateLimitStore,
)

logger = logging.getLogger(__name__)

API_ROOT = "https://api.github.com"

RATE_LIMIT_HELP = (
    "GitHub API rate limit reached. Create a personal access token at "
    "https://github.com/settings/tokens and set GITHUB_TOKEN (or pass "
    "--token) to raise the limit from 60 to 5000 requests per hour."
)


class GitHubCommitSource(HttpSource):
    """Fetches commits from a GitHub repository, newest first.

    Attributes:
        repo: Repository as ``owner/name``.
        github_token: Optional token sent as a Bearer credential.
        rate_limit: Optional persisted request counter.
        per_page: Page size requested from the API (max 100).
        max_pages: Hard cap on the number of pages fetched per run.
    """

    def __init__(
        self,
        repo: str = DEFAULT_GITHUB_REPO,
        github_token: Optional[str] = None,
        rate_limit: Optional[RateLimitStore] = None,
        per_page: int = 100,
        max_pages: int = 10,
    ) -> None:
        super().__init__()
        self.repo = repo
        self.github_token = github_token
        self.rate_limit = rate_limit
        self.per_page = per_page
        self.max_pages = max_pages

    @property
    def request_limit(self) -> int:
        return AUTHENTICATED_LIMIT if self.github_token else UNAUTHENTICATED_LIMIT

    @property
    def commits_url(self) -> str:
        return f"{API_ROOT}/repos/{self.repo}/commits"

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.github_token:
            headers["Authorization"] = f"Bearer {self.github_token}"
        return headers

    def _check_budget(self) -> None:
        if self.rate_limit is None:
            return
        if self.rate_limit.remaining(self.request_limit) <= 0:
            raise GitHubRateLimitError(RATE_LIMIT_HELP)

    @staticmethod
    def _is_rate_limited(status: int, headers: Any, body: str) -> bool:
        if status not in (403, 429):
            return False
        if headers.get("X-RateLimit-Remaining") == "0":
            return True
        return "rate limit" in body.lower()

    async def fetch_page(self, since: datetime, page: int) -> list[dict[str, Any]]:
        """Fetch one page of commits authored after ``since``.

        Raises:
            GitHubRateLimitError: If the local budget is spent or GitHub
                reports a rate limit.
            GitHubError: On any other failed request.
        """
        self._check_budget()

        params = {
            "since": since.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "page": str(page),
            "per_page": str(self.per_page),
        }
        session = await self._get_session()
        logger.debug("Fetching %s page %d", self.commits_url, page)

        try:
            async with session.get(
                self.commits_url, params=params, headers=self._headers()
            ) as response:
                if self.rate_limit is not None:
                    self.rate_limit.record_request()

                if response.status == 200:
                    data = await response.json()
                    if not isinstance(data, list):
                        raise GitHubError("Unexpected response from GitHub commits API")
                    return data

                body = await response.text()
                if self._is_rate_limited(response.status, response.headers, body):
                    raise GitHubRateLimitError(RATE_LIMIT_HELP)
                raise GitHubError(
                    f"GitHub returned HTTP {response.status} for {self.commits_url}"
                )
        except aiohttp.ClientError as e:
            raise GitHubError(f"Could not reach GitHub: {e}") from e

    async def fetch_commits(self, since: datetime) -> list[dict[str, Any]]:
        """Fetch all commits since ``since``, following pagination.

        Pagination stops at the first short or empty page, or after
        ``max_pages`` pages.
        """
        commits: list[dict[str, Any]] = []
        for page in range(1, self.max_pages + 1):
            batch = await self.fetch_page(since, page)
            commits.extend(batch)
            if len(batch) < self.per_page:
                break
        else:
            logger.info("Stopped after %d pages of commits", self.max_pages)

        logger.debug("Fetched %d commits from %s", len(commits), self.repo)
        return commits
