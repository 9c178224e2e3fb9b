"""Background pool that pre-fetches package details.

Ids are split into contiguous slices, one per worker, and each worker runs
as an asyncio task. Workers consult the detail cache first and only call
``winget show`` on a miss, so the per-id process latency overlaps across
workers while the user is still choosing packages.
"""

import asyncio
import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from winget_batch.backends.base import BasePackageManager
from winget_batch.cache import DetailCache
from winget_batch.config import DEFAULT_CONCURRENCY
from winget_batch.models import PackageDetail
from winget_batch.parsers.details import parse_details

logger = logging.getLogger(__name__)


def partition(ids: list[str], concurrency: int) -> list[list[str]]:
    """Split ``ids`` into at most ``concurrency`` contiguous slices.

    Uses ``min(concurrency, len(ids))`` slices whose sizes differ by at most
    one; the first ``len(ids) % slices`` slices get the extra id. No slice
    is ever empty. 35 ids over 10 workers gives sizes 4,4,4,4,4,3,3,3,3,3.

    Args:
        ids: Ids in display order.
        concurrency: Maximum number of slices.

    Returns:
        Slices in order; concatenated they equal ``ids``.

    Raises:
        ValueError: If ``concurrency`` is less than 1.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be at least 1")
    if not ids:
        return []

    workers = min(concurrency, len(ids))
    size, remainder = divmod(len(ids), workers)
    slices = []
    start = 0
    for index in range(workers):
        end = start + size + (1 if index < remainder else 0)
        slices.append(ids[start:end])
        start = end
    return slices


@dataclass
class FetchJob:
    """One background worker and the ids it owns.

    Attributes:
        job_id: Position of the worker in launch order.
        ids: The worker's slice of package ids.
        task: Task resolving to a mapping of id to PackageDetail.
    """

    job_id: int
    ids: tuple[str, ...]
    task: "asyncio.Task[dict[str, PackageDetail]]"

    def done(self) -> bool:
        return self.task.done()

    def cancel(self) -> bool:
        return self.task.cancel()

    def intersects(self, selected: Iterable[str]) -> bool:
        """Return True if any of this job's ids were selected."""
        return not set(self.ids).isdisjoint(selected)


class FetchScheduler:
    """Launches cache-first detail workers over a list of package ids.

    Attributes:
        backend: Package manager used for ``show`` on cache misses.
        cache: Detail cache consulted before and updated after each fetch.
        concurrency: Maximum number of concurrent workers.
    """

    def __init__(
        self,
        backend: BasePackageManager,
        cache: Optional[DetailCache] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.backend = backend
        self.cache = cache
        self.concurrency = concurrency

    async def fetch_one(self, package_id: str, refresh: bool = False) -> PackageDetail:
        """Return details for one package, from the cache when possible.

        With ``refresh`` the cache is not read, but a successful fetch still
        replaces the stored entry. A failed ``show`` yields a detail carrying
        only the id; it is not cached.
        """
        if self.cache is not None and not refresh:
            cached = self.cache.get(package_id)
            if cached is not None:
                return cached

        result = await self.backend.show(package_id)
        if not result.succeeded:
            logger.warning(
                "Fetching details for %s failed with exit code %d",
                package_id,
                result.exit_code,
            )
            return PackageDetail(id=package_id)

        details = parse_details(result.lines, package_id)
        if self.cache is not None:
            self.cache.set(package_id, details)
        return details

    async def _run_worker(self, ids: tuple[str, ...]) -> dict[str, PackageDetail]:
        results: dict[str, PackageDetail] = {}
        for package_id in ids:
            results[package_id] = await self.fetch_one(package_id)
        return results

    def launch(self, ids: Iterable[str]) -> list[FetchJob]:
        """Start background workers for ``ids`` and return immediately.

        Must be called from a running event loop. Duplicate ids are dropped,
        keeping the first occurrence.

        Args:
            ids: Package ids in display order.

        Returns:
            One FetchJob per launched worker.
        """
        unique = list(dict.fromkeys(ids))
        jobs = []
        for job_id, chunk in enumerate(partition(unique, self.concurrency)):
            slice_ids = tuple(chunk)
            task = asyncio.create_task(
                self._run_worker(slice_ids), name=f"fetch-details-{job_id}"
            )
            jobs.append(FetchJob(job_id=job_id, ids=slice_ids, task=task))

        logger.debug(
            "Launched %d detail workers for %d packages", len(jobs), len(unique)
        )
        return jobs
