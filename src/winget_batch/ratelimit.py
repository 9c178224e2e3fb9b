"""Persisted GitHub request counter.

GitHub allows 60 unauthenticated (5000 authenticated) requests per hour.
The counter is kept on disk so separate CLI runs share the same budget
estimate; it resets once an hour has passed since the last reset.
"""

import logging
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Optional

from winget_batch.cache import JsonDocumentStore
from winget_batch.models import RateLimitState

logger = logging.getLogger(__name__)

UNAUTHENTICATED_LIMIT = 60
AUTHENTICATED_LIMIT = 5000
RESET_INTERVAL = timedelta(hours=1)


class RateLimitStore(JsonDocumentStore):
    """Store for the ``{RequestCount, LastReset}`` document."""

    def __init__(self, path: Path) -> None:
        super().__init__(path)

    def _load(self, now: datetime) -> RateLimitState:
        data = self._read()
        try:
            last_reset = datetime.fromisoformat(data["LastReset"])
            if last_reset.tzinfo is None:
                last_reset = last_reset.replace(tzinfo=UTC)
            return RateLimitState(
                request_count=int(data["RequestCount"]), last_reset=last_reset
            )
        except (KeyError, TypeError, ValueError):
            return RateLimitState(request_count=0, last_reset=now)

    def _store(self, state: RateLimitState) -> None:
        self._write(
            {
                "RequestCount": state.request_count,
                "LastReset": state.last_reset.isoformat(),
            }
        )

    def get(self, now: Optional[datetime] = None) -> RateLimitState:
        """Return the current counter, resetting it if the window has passed."""
        now = now or datetime.now(UTC)
        with self._lock:
            state = self._load(now)
            if now - state.last_reset > RESET_INTERVAL:
                logger.debug("Resetting GitHub request counter")
                state = RateLimitState(request_count=0, last_reset=now)
                self._store(state)
        return state

    def put(self, state: RateLimitState) -> None:
        with self._lock:
            self._store(state)

    def reset(self, now: Optional[datetime] = None) -> RateLimitState:
        state = RateLimitState(request_count=0, last_reset=now or datetime.now(UTC))
        self.put(state)
        return state

    def record_request(self, count: int = 1) -> RateLimitState:
        """Add ``count`` requests to the counter and persist it."""
        now = datetime.now(UTC)
        with self._lock:
            state = self._load(now)
            if now - state.last_reset > RESET_INTERVAL:
                state = RateLimitState(request_count=0, last_reset=now)
            state.request_count += count
            self._store(state)
        return state

    def remaining(self, limit: int) -> int:
        return max(limit - self.get().request_count, 0)
