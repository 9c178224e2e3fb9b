"""Classifier for winget-pkgs commit messages.

Manifest submissions use a handful of loosely followed message shapes.
Only commits that introduce a package are interesting; maintenance commits
(updates, removals, moves, bot runs) are rejected before any shape is
tried.
"""

import re
from typing import Optional

from winget_batch.models import CommitMatch

MAINTENANCE_PREFIX = re.compile(
    r"^\s*(?:Remove|Delete|Deprecat|Update:|New version:|Automatic|Move)",
    re.IGNORECASE,
)

# Captures stop at a trailing " (#123)" pull-request reference
_TAIL = r"(?P<version>.+?)(?=\s*\(#|$)"

# Narrowest shapes first so the PR number never ends up in the version
COMMIT_SHAPES = (
    re.compile(r"^New package:\s*(?P<name>.+?)\s+version\s+" + _TAIL, re.IGNORECASE),
    re.compile(r"^Add:\s*(?P<name>.+?)\s+version\s+" + _TAIL, re.IGNORECASE),
    re.compile(
        r"^(?P<name>.+?)\s+version\s+(?P<version>.+?)\s*\(#\d+\)", re.IGNORECASE
    ),
    re.compile(r"^(?P<name>.+?)\s+version\s+(?P<version>.+?)$", re.IGNORECASE),
)


def headline(message: str) -> str:
    """Return the first line of a commit message."""
    lines = message.strip().splitlines()
    return lines[0].strip() if lines else ""


def is_maintenance(message: str) -> bool:
    return MAINTENANCE_PREFIX.match(message) is not None


def classify_commit(message: str) -> Optional[CommitMatch]:
    """Extract the package name and version from a commit message.

    Args:
        message: Full commit message; only its headline is classified.

    Returns:
        CommitMatch for a new-package commit, None for maintenance commits
        and messages that fit no known shape.
    """
    title = headline(message)
    if not title or is_maintenance(title):
        return None

    for shape in COMMIT_SHAPES:
        match = shape.match(title)
        if match is None:
            continue
        name = match.group("name").strip()
        version = match.group("version").strip()
        if name and version:
            return CommitMatch(name=name, version=version)
    return None
