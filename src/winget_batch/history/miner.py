"""Detects newly published packages in the manifest repository history."""

import logging
from datetime import datetime
from typing import Any, Optional

from winget_batch.history.github import GitHubCommitSource
from winget_batch.models import CommitCandidate
from winget_batch.parsers.commits import classify_commit, headline

logger = logging.getLogger(__name__)


def candidate_from_commit(commit: dict[str, Any]) -> Optional[CommitCandidate]:
    """Build a CommitCandidate from one GitHub commit object.

    Args:
        commit: Item of the commits API
            (``{sha, commit: {message, author: {name, date}}}``).

    Returns:
        The candidate, or None for maintenance commits, unrecognised
        messages and malformed objects.
    """
    try:
        details = commit["commit"]
        message = details["message"]
        author = details.get("author") or {}
        commit_date = datetime.fromisoformat(author["date"])
    except (KeyError, TypeError, ValueError):
        logger.debug("Skipping malformed commit object %r", commit.get("sha"))
        return None

    match = classify_commit(message)
    if match is None:
        return None

    return CommitCandidate(
        name=match.name,
        version=match.version,
        commit_date=commit_date,
        author_name=author.get("name") or "",
        short_hash=str(commit.get("sha") or "")[:7],
        headline=headline(message),
    )


class NewPackageMiner:
    """Turns the commit history into a list of newly published packages."""

    def __init__(self, source: GitHubCommitSource) -> None:
        self.source = source

    async def find_new_packages(self, since: datetime) -> list[CommitCandidate]:
        """Return packages added since ``since``, newest first.

        A package submitted more than once keeps only its newest commit.

        Raises:
            GitHubRateLimitError: If GitHub refuses the requests.
            GitHubError: If the history cannot be fetched.
        """
        commits = await self.source.fetch_commits(since)

        newest: dict[tuple[str, str], CommitCandidate] = {}
        for commit in commits:
            candidate = candidate_from_commit(commit)
            if candidate is None:
                continue
            key = (candidate.name.lower(), candidate.version)
            current = newest.get(key)
            if current is None or candidate.commit_date > current.commit_date:
                newest[key] = candidate

        candidates = sorted(newest.values(), key=lambda c: c.commit_date, reverse=True)
        logger.info(
            "Found %d new packages in %d commits", len(candidates), len(commits)
        )
        return candidates
