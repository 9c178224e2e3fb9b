"""Tests for the batch workflow state machine."""

import pytest
from conftest import ScriptedConfirmer, ScriptedSelector

from winget_batch.coordinator import SelectionCoordinator
from winget_batch.executor import BatchExecutor
from winget_batch.models import ActionKind, PackageRecord
from winget_batch.scheduler import FetchScheduler
from winget_batch.workflow import BatchWorkflow, WorkflowState, unique_by_id

S = WorkflowState

RECORDS = [
    PackageRecord(id="Git.Git", name="Git", version="2.43.0", source="winget"),
    PackageRecord(id="Microsoft.PowerToys", name="PowerToys", version="0.76.0"),
    PackageRecord(id="Discord.Discord", name="Discord", version="1.0.9028"),
]


def _loader(records):
    async def load():
        return list(records)

    return load


def _workflow(backend, selector, confirmer, action=ActionKind.INSTALL, **kwargs):
    return BatchWorkflow(
        action=action,
        scheduler=FetchScheduler(backend, concurrency=2),
        coordinator=SelectionCoordinator(timeout=5),
        selector=selector,
        confirmer=confirmer,
        executor=BatchExecutor(backend),
        **kwargs,
    )


def test_unique_by_id_keeps_first():
    duplicate = PackageRecord(id="Git.Git", name="Git (again)")
    assert unique_by_id([RECORDS[0], duplicate, RECORDS[1]]) == RECORDS[:2]


class TestBatchWorkflow:
    @pytest.mark.asyncio
    async def test_select_confirm_install(self, fake_backend):
        selector = ScriptedSelector([0, 2])
        confirmer = ScriptedConfirmer("yes")
        workflow = _workflow(fake_backend, selector, confirmer)

        result = await workflow.run(_loader(RECORDS))

        assert workflow.history == [S.SEARCHING, S.SELECTING, S.CONFIRMING, S.INSTALLING, S.DONE]
        assert workflow.selected == ["Git.Git", "Discord.Discord"]
        assert set(workflow.details) >= {"Git.Git", "Discord.Discord"}
        assert fake_backend.action_calls == [
            ("install", "Git.Git"),
            ("install", "Discord.Discord"),
        ]
        assert result.success_count == 2
        assert confirmer.questions == ["Install 2 package(s)?"]

    @pytest.mark.asyncio
    async def test_choice_labels(self, fake_backend):
        selector = ScriptedSelector([])
        workflow = _workflow(fake_backend, selector, ScriptedConfirmer())

        await workflow.run(_loader(RECORDS[:1]))

        assert selector.calls == [["Git [Git.Git] 2.43.0"]]

    @pytest.mark.asyncio
    async def test_back_returns_to_selection(self, fake_backend):
        selector = ScriptedSelector([0], [1])
        confirmer = ScriptedConfirmer("back", "yes")
        workflow = _workflow(fake_backend, selector, confirmer, action=ActionKind.UPGRADE)

        result = await workflow.run(_loader(RECORDS))

        assert workflow.history == [
            S.SEARCHING,
            S.SELECTING,
            S.CONFIRMING,
            S.SELECTING,
            S.CONFIRMING,
            S.INSTALLING,
            S.DONE,
        ]
        assert len(selector.calls) == 2
        assert fake_backend.action_calls == [("upgrade", "Microsoft.PowerToys")]
        assert result.outcomes[0].package_id == "Microsoft.PowerToys"

    @pytest.mark.asyncio
    async def test_back_reuses_cached_details(self, fake_backend, detail_cache):
        selector = ScriptedSelector([0], [0])
        confirmer = ScriptedConfirmer("back", "no")
        workflow = BatchWorkflow(
            action=ActionKind.INSTALL,
            scheduler=FetchScheduler(fake_backend, detail_cache, concurrency=1),
            coordinator=SelectionCoordinator(timeout=5),
            selector=selector,
            confirmer=confirmer,
            executor=BatchExecutor(fake_backend),
        )

        await workflow.run(_loader(RECORDS[:1]))

        assert fake_backend.show_calls == ["Git.Git"]

    @pytest.mark.asyncio
    async def test_empty_selection_cancels(self, fake_backend):
        confirmer = ScriptedConfirmer()
        workflow = _workflow(fake_backend, ScriptedSelector([]), confirmer)

        result = await workflow.run(_loader(RECORDS))

        assert result is None
        assert workflow.state is S.CANCELLED
        assert workflow.history == [S.SEARCHING, S.SELECTING, S.CANCELLED]
        assert confirmer.questions == []
        assert fake_backend.action_calls == []

    @pytest.mark.asyncio
    async def test_declined_confirmation_cancels(self, fake_backend):
        workflow = _workflow(fake_backend, ScriptedSelector([0]), ScriptedConfirmer("no"))

        result = await workflow.run(_loader(RECORDS))

        assert result is None
        assert workflow.history[-1] is S.CANCELLED
        assert fake_backend.action_calls == []

    @pytest.mark.asyncio
    async def test_no_candidates_is_done(self, fake_backend):
        selector = ScriptedSelector()
        workflow = _workflow(fake_backend, selector, ScriptedConfirmer())

        result = await workflow.run(_loader([]))

        assert result is None
        assert workflow.history == [S.SEARCHING, S.DONE]
        assert selector.calls == []

    @pytest.mark.asyncio
    async def test_assume_yes_skips_confirmation(self, fake_backend):
        confirmer = ScriptedConfirmer()
        workflow = _workflow(
            fake_backend, ScriptedSelector([1]), confirmer, assume_yes=True
        )

        result = await workflow.run(_loader(RECORDS))

        assert confirmer.questions == []
        assert result.success_count == 1

    @pytest.mark.asyncio
    async def test_select_all_skips_selector(self, fake_backend):
        selector = ScriptedSelector()
        workflow = _workflow(
            fake_backend,
            selector,
            ScriptedConfirmer(),
            action=ActionKind.UPGRADE,
            assume_yes=True,
            select_all=True,
        )

        result = await workflow.run(_loader(RECORDS))

        assert selector.calls == []
        assert [o.package_id for o in result.outcomes] == [r.id for r in RECORDS]

    @pytest.mark.asyncio
    async def test_duplicate_candidates_are_offered_once(self, fake_backend):
        selector = ScriptedSelector([])
        workflow = _workflow(fake_backend, selector, ScriptedConfirmer())

        await workflow.run(_loader(RECORDS + RECORDS[:1]))

        assert len(selector.calls[0]) == 3

    @pytest.mark.asyncio
    async def test_failed_install_is_reported(self, fake_backend):
        fake_backend.action_exit_codes = {"Git.Git": 1}
        workflow = _workflow(
            fake_backend, ScriptedSelector([0, 1]), ScriptedConfirmer("yes")
        )

        result = await workflow.run(_loader(RECORDS))

        assert workflow.state is S.DONE
        assert result.failed_ids == ["Git.Git"]

    @pytest.mark.asyncio
    async def test_selector_error_cancels_workers(self, fake_backend):
        fake_backend.blocked = {r.id for r in RECORDS}

        def explode(choices):
            raise RuntimeError("terminal lost")

        workflow = _workflow(fake_backend, ScriptedSelector(explode), ScriptedConfirmer())

        with pytest.raises(RuntimeError):
            await workflow.run(_loader(RECORDS))

        assert fake_backend.in_flight == 0
        assert fake_backend.action_calls == []
