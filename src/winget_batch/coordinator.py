"""Reconciles background detail workers with the user's selection."""

import asyncio
import logging
from collections.abc import Iterable

from winget_batch.config import DEFAULT_SELECTION_TIMEOUT
from winget_batch.models import PackageDetail
from winget_batch.scheduler import FetchJob

logger = logging.getLogger(__name__)


class SelectionCoordinator:
    """Waits for the workers that matter and abandons the rest.

    Once the user has picked packages, only workers whose slice contains a
    selected id are still useful. Those are awaited up to ``timeout``
    seconds; every other worker is cancelled straight away.

    Attributes:
        timeout: Upper bound in seconds on waiting for relevant workers.
    """

    def __init__(self, timeout: float = DEFAULT_SELECTION_TIMEOUT) -> None:
        self.timeout = timeout

    async def reconcile(
        self, jobs: list[FetchJob], selected: Iterable[str]
    ) -> dict[str, PackageDetail]:
        """Collect details for the selected ids.

        Args:
            jobs: Handles returned by FetchScheduler.launch.
            selected: Ids chosen by the user.

        Returns:
            Details merged by id from every relevant worker that finished.
            Every selected id is present; ids whose worker failed or timed
            out map to a detail carrying only the id.
        """
        selected = list(dict.fromkeys(selected))
        wanted = set(selected)
        relevant = [job for job in jobs if job.intersects(wanted)]
        irrelevant = [job for job in jobs if not job.intersects(wanted)]

        merged: dict[str, PackageDetail] = {}
        try:
            for job in irrelevant:
                job.cancel()

            running = [job.task for job in relevant if not job.done()]
            if running:
                _, pending = await asyncio.wait(running, timeout=self.timeout)
                if pending:
                    logger.warning(
                        "%d detail worker(s) did not finish within %.0fs",
                        len(pending),
                        self.timeout,
                    )
                for task in pending:
                    task.cancel()

            for job in relevant:
                if not job.done() or job.task.cancelled():
                    continue
                error = job.task.exception()
                if error is not None:
                    logger.error("Detail worker %d failed: %s", job.job_id, error)
                    continue
                merged.update(job.task.result())
        finally:
            await asyncio.gather(*(job.task for job in jobs), return_exceptions=True)

        for package_id in selected:
            if package_id not in merged:
                merged[package_id] = PackageDetail(id=package_id)
        return merged
