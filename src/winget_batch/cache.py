"""JSON document cache for package details.

All entries live in one JSON object keyed by package id, so every write is
a read-modify-write of the whole document. Writers are serialised through
a lock shared by every store opened on the same path.
"""

import json
import logging
import os
import tempfile
import threading
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from winget_batch.config import CACHE_FILENAME, DEFAULT_CACHE_TTL_DAYS, default_config_dir
from winget_batch.models import CacheEntry, PackageDetail

logger = logging.getLogger(__name__)

_LOCKS: dict[Path, threading.Lock] = {}
_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.Lock:
    key = path.resolve()
    with _LOCKS_GUARD:
        lock = _LOCKS.get(key)
        if lock is None:
            lock = _LOCKS[key] = threading.Lock()
        return lock


class JsonDocumentStore:
    """A single JSON object persisted at ``path``.

    Reads never fail: a missing, unreadable or malformed document is
    treated as an empty object. Writes go through a temporary file and
    ``os.replace`` so readers never observe a half-written document.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = _lock_for(path)

    def _read(self) -> dict[str, Any]:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.debug("Ignoring unreadable document %s: %s", self.path, e)
            return {}

        if not isinstance(data, dict):
            logger.debug("Ignoring non-object document %s", self.path)
            return {}
        return data

    def _write(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=self.path.name, suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class DetailCache(JsonDocumentStore):
    """Time-boxed cache of PackageDetail records keyed by package id.

    Entries are valid for ``ttl_days`` after they were written. Expiry is
    evaluated when reading; expired entries stay on disk until overwritten
    or cleared.

    Attributes:
        path: Location of the JSON document.
        ttl_days: Number of days before entries expire (default: 30).
    """

    DEFAULT_TTL_DAYS = DEFAULT_CACHE_TTL_DAYS

    def __init__(
        self,
        path: Optional[Path] = None,
        ttl_days: int = DEFAULT_TTL_DAYS,
    ) -> None:
        """Initialize the detail cache.

        Args:
            path: Path to the JSON document. If None, uses
                ~/.config/winget-batch/details_cache.json.
            ttl_days: Number of days before entries expire.
        """
        if path is None:
            path = default_config_dir() / CACHE_FILENAME
        super().__init__(path)
        self.ttl_days = ttl_days

    @property
    def ttl(self) -> timedelta:
        return timedelta(days=self.ttl_days)

    def _entry_from(self, key: str, raw: Any) -> Optional[CacheEntry]:
        try:
            cached_at = datetime.fromisoformat(raw["CachedDate"])
            if cached_at.tzinfo is None:
                cached_at = cached_at.replace(tzinfo=UTC)
            details = PackageDetail.from_dict({"id": key, **raw["Details"]})
        except (KeyError, TypeError, ValueError) as e:
            logger.debug("Ignoring malformed cache entry %s: %s", key, e)
            return None
        return CacheEntry(key=key, details=details, cached_at=cached_at)

    def get_entry(self, key: Any) -> Optional[CacheEntry]:
        """Return the stored entry for ``key`` regardless of its age."""
        key = str(key)
        raw = self._read().get(key)
        if raw is None:
            return None
        return self._entry_from(key, raw)

    def get(self, key: Any) -> Optional[PackageDetail]:
        """Retrieve cached details for a package.

        Args:
            key: Package id.

        Returns:
            The cached PackageDetail, or None on a miss or expired entry.
        """
        entry = self.get_entry(key)
        if entry is None:
            logger.debug("Cache miss for %s", key)
            return None
        if entry.is_expired(datetime.now(UTC), self.ttl):
            logger.debug("Cache entry for %s expired at %s", key, entry.cached_at)
            return None
        logger.debug("Cache hit for %s", key)
        return entry.details

    def set(self, key: Any, details: PackageDetail) -> None:
        """Store details for a package, replacing any previous entry.

        Write failures are logged and the entry is dropped.

        Args:
            key: Package id; coerced to ``str``.
            details: Details to cache.
        """
        key = str(key)
        record = {
            "CachedDate": datetime.now(UTC).isoformat(),
            "Details": details.to_dict(),
        }
        with self._lock:
            data = self._read()
            data[key] = record
            try:
                self._write(data)
            except OSError as e:
                logger.warning("Could not write cache entry for %s: %s", key, e)

    def clear(self, key: Optional[Any] = None) -> int:
        """Clear cache entries.

        Args:
            key: If specified, clear only this package. If None, clear all.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            data = self._read()
            if key is None:
                removed = len(data)
                data = {}
            else:
                removed = 1 if data.pop(str(key), None) is not None else 0
            self._write(data)
        return removed

    def info(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with cache information:
                - path: Path to the cache document
                - count: Number of stored entries
                - expired: Number of stored entries past their TTL
                - size_bytes: Document size in bytes
        """
        data = self._read()
        now = datetime.now(UTC)
        expired = 0
        for key, raw in data.items():
            entry = self._entry_from(key, raw)
            if entry is None or entry.is_expired(now, self.ttl):
                expired += 1

        size_bytes = self.path.stat().st_size if self.path.exists() else 0

        return {
            "path": str(self.path),
            "count": len(data),
            "expired": expired,
            "size_bytes": size_bytes,
        }
