"""Pytest configuration and fixtures."""

import asyncio
from pathlib import Path
from typing import Optional

import pytest

from winget_batch.backends.base import BasePackageManager
from winget_batch.cache import DetailCache
from winget_batch.models import CommandResult

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def read_fixture(name: str) -> list[str]:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8").splitlines()


class FakeBackend(BasePackageManager):
    """Scripted package manager that records every call.

    Attributes:
        show_outputs: Detail dump returned per id; ids not listed get a
            minimal two-line dump.
        show_exit_codes: Non-zero ``show`` exit codes per id.
        action_exit_codes: Non-zero install/upgrade/uninstall exit codes per id.
        action_errors: Exceptions raised by install/upgrade/uninstall per id.
        blocked: Ids whose ``show`` never returns until cancelled.
        delay: Seconds each ``show`` sleeps before answering.
        tables: Table output per command (``search:<query>``, ``list``,
            ``upgrade``).
    """

    def __init__(self) -> None:
        self.show_outputs: dict[str, str] = {}
        self.show_exit_codes: dict[str, int] = {}
        self.action_exit_codes: dict[str, int] = {}
        self.action_errors: dict[str, Exception] = {}
        self.blocked: set[str] = set()
        self.delay = 0.0
        self.tables: dict[str, list[str]] = {}

        self.show_calls: list[str] = []
        self.cancelled: list[str] = []
        self.action_calls: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    @property
    def name(self) -> str:
        return "fake"

    async def search(self, query: str) -> CommandResult:
        return CommandResult(0, list(self.tables.get(f"search:{query}", [])))

    async def show(self, package_id: str) -> CommandResult:
        self.show_calls.append(package_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if package_id in self.blocked:
                await asyncio.Event().wait()
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled.append(package_id)
            raise
        finally:
            self.in_flight -= 1

        exit_code = self.show_exit_codes.get(package_id, 0)
        text = self.show_outputs.get(
            package_id, f"Version: 1.0.0\nPublisher: {package_id} Inc."
        )
        return CommandResult(exit_code, text.splitlines() if exit_code == 0 else [])

    async def list_installed(self, query: Optional[str] = None) -> CommandResult:
        return CommandResult(0, list(self.tables.get("list", [])))

    async def list_upgrades(self) -> CommandResult:
        return CommandResult(0, list(self.tables.get("upgrade", [])))

    async def _act(self, verb: str, package_id: str) -> CommandResult:
        self.action_calls.append((verb, package_id))
        if package_id in self.action_errors:
            raise self.action_errors[package_id]
        return CommandResult(self.action_exit_codes.get(package_id, 0))

    async def install(self, package_id: str) -> CommandResult:
        return await self._act("install", package_id)

    async def upgrade(self, package_id: str) -> CommandResult:
        return await self._act("upgrade", package_id)

    async def uninstall(self, package_id: str) -> CommandResult:
        return await self._act("uninstall", package_id)


class ScriptedSelector:
    """Selector returning pre-scripted answers, one per call."""

    def __init__(self, *answers) -> None:
        self.answers = list(answers)
        self.calls: list[list[str]] = []

    def select(self, title, choices):
        self.calls.append(list(choices))
        answer = self.answers.pop(0) if self.answers else []
        if callable(answer):
            return answer(list(choices))
        return [choices[i] for i in answer]


class ScriptedConfirmer:
    """Confirmer returning pre-scripted answers, one per call."""

    def __init__(self, *answers) -> None:
        self.answers = list(answers)
        self.questions: list[str] = []

    def confirm(self, question):
        self.questions.append(question)
        return self.answers.pop(0) if self.answers else "no"


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def detail_cache(tmp_path) -> DetailCache:
    """Create a DetailCache in a temporary directory."""
    return DetailCache(path=tmp_path / "details_cache.json")


@pytest.fixture
def search_lines() -> list[str]:
    return read_fixture("winget_search.txt")


@pytest.fixture
def upgrade_lines() -> list[str]:
    return read_fixture("winget_upgrade.txt")


@pytest.fixture
def show_lines() -> list[str]:
    return read_fixture("winget_show.txt")
