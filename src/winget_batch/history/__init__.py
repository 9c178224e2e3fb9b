"""GitHub commit-history mining for newly published winget packages."""

from winget_batch.history.github import GitHubCommitSource
from winget_batch.history.http import HttpSource
from winget_batch.history.miner import NewPackageMiner, candidate_from_commit

__all__ = [
    "GitHubCommitSource",
    "HttpSource",
    "NewPackageMiner",
    "candidate_from_commit",
]
