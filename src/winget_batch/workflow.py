"""Search, select, confirm and run a batch action as a state machine.

Details for every candidate are fetched in the background while the user
is choosing. Going back from the confirmation step is a plain transition
to SELECTING; the relaunched workers hit the now-warm cache.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Optional

from winget_batch.coordinator import SelectionCoordinator
from winget_batch.executor import BatchExecutor
from winget_batch.models import ActionKind, BatchResult, PackageDetail, PackageRecord
from winget_batch.reporters.console import ConsoleReporter, choice_label
from winget_batch.scheduler import FetchScheduler
from winget_batch.selection import Confirmer, Selector

logger = logging.getLogger(__name__)

CandidateLoader = Callable[[], Awaitable[list[PackageRecord]]]

_TITLES = {
    ActionKind.INSTALL: "Select packages to install",
    ActionKind.UPGRADE: "Select packages to upgrade",
    ActionKind.UNINSTALL: "Select packages to uninstall",
}


def unique_by_id(records: list[PackageRecord]) -> list[PackageRecord]:
    """Drop records whose id was already seen, keeping the first."""
    seen: dict[str, PackageRecord] = {}
    for record in records:
        seen.setdefault(record.id, record)
    return list(seen.values())


class WorkflowState(str, Enum):
    SEARCHING = "searching"
    SELECTING = "selecting"
    CONFIRMING = "confirming"
    INSTALLING = "installing"
    DONE = "done"
    CANCELLED = "cancelled"


TERMINAL_STATES = (WorkflowState.DONE, WorkflowState.CANCELLED)


class BatchWorkflow:
    """Drives one batch action from candidate lookup to the final result.

    Attributes:
        action: Action applied to the selected packages.
        state: Current state.
        history: Every state entered, in order.
        selected: Ids chosen in the last selection round.
        details: Details gathered for the selected ids.
        result: Batch result once INSTALLING has run.
    """

    def __init__(
        self,
        action: ActionKind,
        scheduler: FetchScheduler,
        coordinator: SelectionCoordinator,
        selector: Selector,
        confirmer: Confirmer,
        executor: BatchExecutor,
        reporter: Optional[ConsoleReporter] = None,
        assume_yes: bool = False,
        select_all: bool = False,
    ) -> None:
        self.action = action
        self.scheduler = scheduler
        self.coordinator = coordinator
        self.selector = selector
        self.confirmer = confirmer
        self.executor = executor
        self.reporter = reporter
        self.assume_yes = assume_yes
        self.select_all = select_all

        self.state = WorkflowState.SEARCHING
        self.history: list[WorkflowState] = []
        self.candidates: list[PackageRecord] = []
        self.selected: list[str] = []
        self.details: dict[str, PackageDetail] = {}
        self.result: Optional[BatchResult] = None

    def _enter(self, state: WorkflowState) -> None:
        logger.debug("Workflow %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)

    async def _choose(self) -> list[str]:
        ids = [record.id for record in self.candidates]
        if self.select_all:
            return ids

        labels = [choice_label(record) for record in self.candidates]
        by_label = dict(zip(labels, ids))
        chosen = await asyncio.to_thread(
            self.selector.select, _TITLES[self.action], labels
        )
        return [by_label[label] for label in chosen if label in by_label]

    async def _select(self) -> WorkflowState:
        jobs = self.scheduler.launch(record.id for record in self.candidates)
        try:
            chosen = await self._choose()
        except BaseException:
            # Nothing is relevant; cancels and disposes every worker
            await self.coordinator.reconcile(jobs, [])
            raise

        self.selected = list(dict.fromkeys(chosen))
        self.details = await self.coordinator.reconcile(jobs, self.selected)
        if not self.selected:
            return WorkflowState.CANCELLED
        return WorkflowState.CONFIRMING

    async def _confirm(self) -> WorkflowState:
        if self.reporter is not None:
            self.reporter.show_details(self.details[i] for i in self.selected)
        if self.assume_yes:
            return WorkflowState.INSTALLING

        question = f"{self.action.value.capitalize()} {len(self.selected)} package(s)?"
        answer = await asyncio.to_thread(self.confirmer.confirm, question)
        if answer == "yes":
            return WorkflowState.INSTALLING
        if answer == "back":
            return WorkflowState.SELECTING
        return WorkflowState.CANCELLED

    async def _install(self) -> WorkflowState:
        on_start = on_outcome = None
        if self.reporter is not None:
            reporter = self.reporter

            def on_start(package_id: str) -> None:
                reporter.start(self.action, package_id)

            on_outcome = reporter.outcome

        self.result = await self.executor.run(
            self.selected, self.action, on_start=on_start, on_outcome=on_outcome
        )
        if self.reporter is not None:
            self.reporter.show_summary(self.result)
        return WorkflowState.DONE

    async def run(self, load_candidates: CandidateLoader) -> Optional[BatchResult]:
        """Run the workflow until it reaches DONE or CANCELLED.

        Args:
            load_candidates: Coroutine function returning the packages the
                user can choose from.

        Returns:
            The batch result, or None if nothing was run.
        """
        self.history = []
        self._enter(WorkflowState.SEARCHING)
        while self.state not in TERMINAL_STATES:
            if self.state is WorkflowState.SEARCHING:
                self.candidates = unique_by_id(await load_candidates())
                next_state = (
                    WorkflowState.SELECTING if self.candidates else WorkflowState.DONE
                )
            elif self.state is WorkflowState.SELECTING:
                next_state = await self._select()
            elif self.state is WorkflowState.CONFIRMING:
                next_state = await self._confirm()
            else:
                next_state = await self._install()
            self._enter(next_state)
        return self.result
