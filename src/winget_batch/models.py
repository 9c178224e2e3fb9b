"""Core data models for winget_batch.

This module defines the records passed between the parsers, the detail
cache, the background fetch pool and the batch executor.
"""

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional

UNKNOWN = "Unknown"


@dataclass(frozen=True)
class PackageRecord:
    """One row of a winget ``search``/``upgrade``/``list`` table.

    Attributes:
        id: Package identifier (e.g., "Microsoft.PowerToys").
        name: Display name.
        version: Version column, or "Unknown" when blank or missing.
        source: Source column, or "Unknown" when blank or missing.
        search_term: The query that produced this row.
        match: Optional ``Match`` column (e.g., "Tag: editor").
        available: Optional ``Available`` column of upgrade listings.
    """

    id: str
    name: str
    version: str = UNKNOWN
    source: str = UNKNOWN
    search_term: str = ""
    match: Optional[str] = None
    available: Optional[str] = None


@dataclass(frozen=True)
class PackageDetail:
    """Structured form of a ``winget show`` dump.

    Every field except ``id`` is optional and left as None when the dump
    did not carry it. ``tags`` is always a tuple, possibly empty.
    ``publisher_source_host_link`` is derived from ``publisher_url`` when
    that URL points at a source-hosting site.
    """

    id: str
    version: Optional[str] = None
    publisher: Optional[str] = None
    publisher_url: Optional[str] = None
    publisher_source_host_link: Optional[str] = None
    author: Optional[str] = None
    homepage: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    tags: tuple[str, ...] = ()
    license: Optional[str] = None
    license_url: Optional[str] = None
    copyright: Optional[str] = None
    copyright_url: Optional[str] = None
    privacy_url: Optional[str] = None
    package_url: Optional[str] = None
    release_notes: Optional[str] = None
    release_notes_url: Optional[str] = None
    installer_type: Optional[str] = None
    pricing: Optional[str] = None
    store_license: Optional[str] = None
    free_trial: Optional[str] = None
    age_rating: Optional[str] = None
    moniker: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        """True when nothing beyond the id is known."""
        return all(
            getattr(self, f.name) in (None, ())
            for f in fields(self)
            if f.name != "id"
        )

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-serialisable dictionary."""
        data = asdict(self)
        data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PackageDetail":
        """Build a detail from ``to_dict`` output, ignoring unknown keys.

        Raises:
            KeyError: If ``id`` is missing.
        """
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        values["id"] = str(data["id"])
        values["tags"] = tuple(data.get("tags") or ())
        return cls(**values)


@dataclass
class CacheEntry:
    """A cached detail record with its creation timestamp.

    Attributes:
        key: Package id the entry is stored under.
        details: Cached PackageDetail.
        cached_at: Timezone-aware timestamp of the write.
    """

    key: str
    details: PackageDetail
    cached_at: datetime

    def is_expired(self, now: datetime, ttl: timedelta) -> bool:
        """Return True once the entry is older than ``ttl``."""
        return now - self.cached_at > ttl


@dataclass(frozen=True)
class CommitMatch:
    """Package name and version recognised in a commit message."""

    name: str
    version: str


@dataclass(frozen=True)
class CommitCandidate:
    """A newly published package discovered in the manifest repository history.

    Attributes:
        name: Package identifier from the commit message.
        version: Package version from the commit message.
        commit_date: Author date of the commit.
        author_name: Commit author.
        short_hash: First seven characters of the commit SHA.
        headline: First line of the commit message.
    """

    name: str
    version: str
    commit_date: datetime
    author_name: str
    short_hash: str
    headline: str


@dataclass
class CommandResult:
    """Exit code and combined output of one package-manager invocation."""

    exit_code: int
    lines: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


class ActionKind(str, Enum):
    """Batch actions the executor can apply to a package."""

    INSTALL = "install"
    UPGRADE = "upgrade"
    UNINSTALL = "uninstall"


@dataclass(frozen=True)
class ActionOutcome:
    """Result of applying one action to one package."""

    package_id: str
    exit_code: int

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass
class BatchResult:
    """Aggregated outcome of a batch run."""

    action: ActionKind
    outcomes: list[ActionOutcome] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.succeeded)

    @property
    def fail_count(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.succeeded)

    @property
    def failed_ids(self) -> list[str]:
        return [o.package_id for o in self.outcomes if not o.succeeded]


@dataclass
class RateLimitState:
    """Persisted GitHub request counter."""

    request_count: int
    last_reset: datetime
