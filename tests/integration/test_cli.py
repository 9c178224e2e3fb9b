from datetime import UTC, datetime

import pytest
from conftest import FakeBackend, ScriptedSelector, read_fixture
from typer.testing import CliRunner

from winget_batch.cache import DetailCache
from winget_batch.cli import app
from winget_batch.errors import GitHubRateLimitError, PackageManagerNotFoundError
from winget_batch.history.github import RATE_LIMIT_HELP
from winget_batch.models import CommitCandidate, PackageDetail

runner = CliRunner()

GIT_TABLE = [
    "Name   Id        Version  Source",
    "-" * 35,
    "Git    Git.Git   2.43.0   winget",
]


@pytest.fixture
def backend(mocker):
    """Replace the winget backend with a scripted one."""
    fake = FakeBackend()
    fake.tables["search:git"] = GIT_TABLE
    fake.tables["upgrade"] = read_fixture("winget_upgrade.txt")
    mocker.patch("winget_batch.cli.WingetBackend", return_value=fake)
    return fake


@pytest.fixture
def config_dir(tmp_path):
    return tmp_path / "config"


@pytest.fixture
def candidates():
    return [
        CommitCandidate(
            name="Acme.Widget",
            version="3.0.1",
            commit_date=datetime(2024, 5, 4, 9, 15, tzinfo=UTC),
            author_name="octocat",
            short_hash="0123456",
            headline="New package: Acme.Widget version 3.0.1",
        )
    ]


def test_search_command(config_dir, backend):
    result = runner.invoke(app, ["search", "git", "--config-dir", str(config_dir)])

    assert result.exit_code == 0
    assert "Git.Git" in result.stdout
    assert "Found 1 packages" in result.stdout


def test_search_without_results(config_dir, backend):
    result = runner.invoke(app, ["search", "nothing", "--config-dir", str(config_dir)])

    assert result.exit_code == 0
    assert "No packages found" in result.stdout


def test_missing_winget(config_dir, mocker):
    mocker.patch(
        "winget_batch.cli.WingetBackend",
        side_effect=PackageManagerNotFoundError("'winget' not found in PATH"),
    )

    result = runner.invoke(app, ["search", "git", "--config-dir", str(config_dir)])

    assert result.exit_code == 1
    assert "not found in PATH" in result.output


def test_install_without_terminal_selects_nothing(config_dir, backend):
    result = runner.invoke(app, ["install", "git", "--config-dir", str(config_dir)])

    assert result.exit_code == 0
    assert "Nothing selected" in result.stdout
    assert backend.action_calls == []


def test_install_selected_package(config_dir, backend, mocker):
    mocker.patch("winget_batch.cli.ConsoleSelector", return_value=ScriptedSelector([0]))

    result = runner.invoke(
        app, ["install", "git", "--yes", "--config-dir", str(config_dir)]
    )

    assert result.exit_code == 0
    assert backend.action_calls == [("install", "Git.Git")]
    assert "Install: 1 succeeded, 0 failed" in result.stdout
    # Details fetched for the selection end up in the cache
    assert DetailCache(config_dir / "details_cache.json").get("Git.Git") is not None


def test_install_failure_sets_exit_code(config_dir, backend, mocker):
    backend.action_exit_codes["Git.Git"] = 1
    mocker.patch("winget_batch.cli.ConsoleSelector", return_value=ScriptedSelector([0]))

    result = runner.invoke(
        app, ["install", "git", "--yes", "--config-dir", str(config_dir)]
    )

    assert result.exit_code == 1
    assert "1 failed" in result.stdout


def test_upgrade_all(config_dir, backend):
    result = runner.invoke(
        app, ["upgrade", "--all", "--yes", "--config-dir", str(config_dir)]
    )

    assert result.exit_code == 0
    assert backend.action_calls == [
        ("upgrade", "Git.Git"),
        ("upgrade", "Microsoft.PowerToys"),
        ("upgrade", "Discord.Discord"),
    ]


def test_show_uses_cache(config_dir, backend):
    DetailCache(config_dir / "details_cache.json").set(
        "Git.Git", PackageDetail(id="Git.Git", publisher="The Git Development Community")
    )

    result = runner.invoke(app, ["show", "Git.Git", "--config-dir", str(config_dir)])

    assert result.exit_code == 0
    assert "The Git Development Community" in result.stdout
    assert backend.show_calls == []


def test_show_refresh_fetches_again(config_dir, backend):
    DetailCache(config_dir / "details_cache.json").set(
        "Git.Git", PackageDetail(id="Git.Git", publisher="Stale")
    )

    result = runner.invoke(
        app, ["show", "Git.Git", "--refresh", "--config-dir", str(config_dir)]
    )

    assert result.exit_code == 0
    assert backend.show_calls == ["Git.Git"]
    assert "Git.Git Inc." in result.stdout


def test_show_refresh_failure_keeps_cached_entry(config_dir, backend):
    cache = DetailCache(config_dir / "details_cache.json")
    cache.set("Git.Git", PackageDetail(id="Git.Git", publisher="Stale"))
    backend.show_exit_codes["Git.Git"] = 1

    result = runner.invoke(
        app, ["show", "Git.Git", "--refresh", "--config-dir", str(config_dir)]
    )

    assert result.exit_code == 1
    assert cache.get("Git.Git").publisher == "Stale"


def test_show_unknown_package(config_dir, backend):
    backend.show_exit_codes["Missing.Package"] = 1

    result = runner.invoke(
        app, ["show", "Missing.Package", "--config-dir", str(config_dir)]
    )

    assert result.exit_code == 1
    assert "Details unavailable" in result.stdout


def test_new_command_writes_report(config_dir, candidates, mocker, tmp_path):
    miner = mocker.patch("winget_batch.cli.NewPackageMiner")
    miner.return_value.find_new_packages = mocker.AsyncMock(return_value=candidates)
    output_file = tmp_path / "new.md"

    result = runner.invoke(
        app,
        ["new", "--days", "3", "--output", str(output_file), "--config-dir", str(config_dir)],
    )

    assert result.exit_code == 0
    assert "Acme.Widget" in result.stdout
    assert "Generated:" in result.stdout
    assert "| Acme.Widget | 3.0.1 |" in output_file.read_text()


def test_new_command_rate_limited(config_dir, mocker):
    miner = mocker.patch("winget_batch.cli.NewPackageMiner")
    miner.return_value.find_new_packages = mocker.AsyncMock(
        side_effect=GitHubRateLimitError(RATE_LIMIT_HELP)
    )

    result = runner.invoke(app, ["new", "--config-dir", str(config_dir)])

    assert result.exit_code == 1
    assert "GITHUB_TOKEN" in result.output


def test_new_command_offers_install(config_dir, candidates, backend, mocker):
    miner = mocker.patch("winget_batch.cli.NewPackageMiner")
    miner.return_value.find_new_packages = mocker.AsyncMock(return_value=candidates)
    mocker.patch("winget_batch.cli.ConsoleSelector", return_value=ScriptedSelector([0]))

    result = runner.invoke(
        app, ["new", "--install", "--yes", "--config-dir", str(config_dir)]
    )

    assert result.exit_code == 0
    assert backend.action_calls == [("install", "Acme.Widget")]


def test_cache_show_command(config_dir):
    DetailCache(config_dir / "details_cache.json").set(
        "Git.Git", PackageDetail(id="Git.Git", version="2.43.0")
    )

    result = runner.invoke(app, ["cache", "show", "--config-dir", str(config_dir)])

    assert result.exit_code == 0
    assert "Cache Location:" in result.stdout
    assert "Entries: 1 (0 expired)" in result.stdout


def test_cache_clear_command(config_dir):
    cache = DetailCache(config_dir / "details_cache.json")
    cache.set("Git.Git", PackageDetail(id="Git.Git"))
    cache.set("Discord.Discord", PackageDetail(id="Discord.Discord"))

    result = runner.invoke(
        app, ["cache", "clear", "Git.Git", "--config-dir", str(config_dir)]
    )
    assert result.exit_code == 0
    assert "Cleared cache for:" in result.stdout
    assert cache.get("Git.Git") is None

    result = runner.invoke(app, ["cache", "clear", "--config-dir", str(config_dir)])
    assert result.exit_code == 0
    assert "Cache cleared" in result.stdout
    assert cache.info()["count"] == 0


def test_cache_unknown_action(config_dir):
    result = runner.invoke(app, ["cache", "purge", "--config-dir", str(config_dir)])

    assert result.exit_code == 1
    assert "Unknown action" in result.output
