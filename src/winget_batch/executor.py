"""Sequential batch runner for install, upgrade and uninstall actions."""

import logging
from collections.abc import Callable, Iterable
from typing import Optional

from winget_batch.backends.base import BasePackageManager
from winget_batch.models import ActionKind, ActionOutcome, BatchResult

logger = logging.getLogger(__name__)

# Recorded when the package manager process could not be started.
SPAWN_FAILED_EXIT_CODE = -1

OutcomeCallback = Callable[[ActionOutcome], None]


class BatchExecutor:
    """Applies one action to a list of packages, one at a time.

    Runs are sequential because concurrent winget installs contend for the
    same installer locks. Failures are recorded and the batch continues;
    nothing is retried.
    """

    def __init__(self, backend: BasePackageManager) -> None:
        self.backend = backend

    async def run(
        self,
        ids: Iterable[str],
        action: ActionKind,
        on_start: Optional[Callable[[str], None]] = None,
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> BatchResult:
        """Apply ``action`` to each id in order.

        Args:
            ids: Package ids; duplicates are dropped, keeping the first.
            action: Action to apply.
            on_start: Called with each id before its process starts.
            on_outcome: Called with each outcome as soon as it is known.

        Returns:
            BatchResult with one outcome per unique id.
        """
        result = BatchResult(action=action)
        for package_id in dict.fromkeys(ids):
            if on_start is not None:
                on_start(package_id)

            try:
                command = await self.backend.action(action, package_id)
                exit_code = command.exit_code
            except OSError as e:
                logger.warning("Could not run %s for %s: %s", action.value, package_id, e)
                exit_code = SPAWN_FAILED_EXIT_CODE
            outcome = ActionOutcome(package_id=package_id, exit_code=exit_code)
            result.outcomes.append(outcome)

            if outcome.succeeded:
                logger.debug("%s %s succeeded", action.value, package_id)
            else:
                logger.warning(
                    "%s %s failed with exit code %d",
                    action.value,
                    package_id,
                    outcome.exit_code,
                )
            if on_outcome is not None:
                on_outcome(outcome)

        logger.info(
            "Batch %s complete: %d succeeded, %d failed",
            action.value,
            result.success_count,
            result.fail_count,
        )
        return result
