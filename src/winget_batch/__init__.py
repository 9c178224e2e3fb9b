"""winget-batch - Batch package operations on top of winget.

This package parses winget's table and detail output, pre-fetches package
details in the background while the user selects packages, and mines the
winget-pkgs commit history for newly published packages.
"""

__version__ = "0.1.0"

from winget_batch.models import (
    ActionKind,
    BatchResult,
    CacheEntry,
    CommitCandidate,
    PackageDetail,
    PackageRecord,
)

__all__ = [
    "__version__",
    "ActionKind",
    "BatchResult",
    "CacheEntry",
    "CommitCandidate",
    "PackageDetail",
    "PackageRecord",
]
