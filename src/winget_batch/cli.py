"""Command-line interface for winget_batch.

Provides batch search, install, upgrade and uninstall on top of winget,
plus discovery of newly published packages from the winget-pkgs history.
"""

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from winget_batch.backends import BasePackageManager, WingetBackend
from winget_batch.cache import DetailCache
from winget_batch.config import Settings, load_settings
from winget_batch.coordinator import SelectionCoordinator
from winget_batch.errors import WingetBatchError
from winget_batch.executor import BatchExecutor
from winget_batch.history import GitHubCommitSource, NewPackageMiner
from winget_batch.models import ActionKind, BatchResult, CommitCandidate, PackageRecord
from winget_batch.parsers import aggregate, parse_table
from winget_batch.ratelimit import RateLimitStore
from winget_batch.reporters import ConsoleReporter, MarkdownReporter
from winget_batch.reporters.console import candidates_table, details_panel, records_table
from winget_batch.scheduler import FetchScheduler
from winget_batch.selection import ConsoleConfirmer, ConsoleSelector
from winget_batch.workflow import BatchWorkflow

app = typer.Typer(
    name="winget-batch",
    help="Batch search, install, upgrade and uninstall for winget.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)

# Configure logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger("winget_batch")

ConfigDirOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config-dir",
        envvar="WINGET_BATCH_HOME",
        help="Directory for the detail cache and rate-limit counter",
    ),
]
WingetOption = Annotated[
    Optional[str],
    typer.Option(
        "--winget",
        envvar="WINGET_BATCH_EXECUTABLE",
        help="Name or path of the winget executable",
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option(
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
]
YesOption = Annotated[
    bool,
    typer.Option(
        "--yes",
        "-y",
        help="Do not ask for confirmation",
    ),
]


def _setup_logging(verbose: bool) -> None:
    """Configure logging level based on verbosity flag."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.getLogger("winget_batch").setLevel(level)


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(code=1)


def _settings(config_dir: Optional[Path], winget: Optional[str]) -> Settings:
    try:
        return load_settings(config_dir=config_dir, winget_executable=winget)
    except WingetBatchError as e:
        raise _fail(str(e))


def _backend(settings: Settings) -> WingetBackend:
    try:
        return WingetBackend(settings.winget_executable)
    except WingetBatchError as e:
        raise _fail(str(e))


async def _with_spinner(description: str, coro):
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        progress.add_task(description, total=None)
        return await coro


async def _search_records(
    backend: BasePackageManager, queries: list[str]
) -> list[PackageRecord]:
    """Run one winget search per query and combine the results."""
    results = []
    for query in queries:
        command = await backend.search(query)
        records = parse_table(command.lines, query)
        if not records:
            logger.debug(
                "No results for %r (exit code %d)", query, command.exit_code
            )
        results.append(records)
    return aggregate(results)


async def _table_records(command_coro, query: str = "") -> list[PackageRecord]:
    command = await command_coro
    return parse_table(command.lines, query)


def _run_workflow(
    settings: Settings,
    backend: BasePackageManager,
    action: ActionKind,
    load_candidates,
    assume_yes: bool,
    select_all: bool = False,
) -> Optional[BatchResult]:
    cache = DetailCache(settings.cache_path, ttl_days=settings.cache_ttl_days)
    workflow = BatchWorkflow(
        action=action,
        scheduler=FetchScheduler(backend, cache, concurrency=settings.concurrency),
        coordinator=SelectionCoordinator(timeout=settings.selection_timeout),
        selector=ConsoleSelector(console),
        confirmer=ConsoleConfirmer(console),
        executor=BatchExecutor(backend),
        reporter=ConsoleReporter(console),
        assume_yes=assume_yes,
        select_all=select_all,
    )
    result = asyncio.run(workflow.run(load_candidates))

    if not workflow.candidates:
        console.print("[yellow]No packages found[/yellow]")
    elif result is None:
        console.print("[yellow]Nothing selected; no changes made[/yellow]")
    return result


def _exit_for(result: Optional[BatchResult]) -> None:
    if result is not None and result.fail_count:
        raise typer.Exit(code=1)
    raise typer.Exit(code=0)


@app.command()
def search(
    queries: Annotated[
        list[str],
        typer.Argument(help="One or more search queries"),
    ],
    config_dir: ConfigDirOption = None,
    winget: WingetOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Search winget for packages matching each query."""
    _setup_logging(verbose)
    settings = _settings(config_dir, winget)
    backend = _backend(settings)

    records = asyncio.run(
        _with_spinner("Searching...", _search_records(backend, queries))
    )
    if not records:
        console.print("[yellow]No packages found[/yellow]")
        raise typer.Exit(code=0)

    console.print(records_table(records, title=f"Results for {', '.join(queries)}"))
    console.print(f"Found [bold]{len(records)}[/bold] packages")


@app.command()
def install(
    queries: Annotated[
        list[str],
        typer.Argument(help="One or more search queries"),
    ],
    yes: YesOption = False,
    config_dir: ConfigDirOption = None,
    winget: WingetOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Search, pick packages interactively and install them in one batch."""
    _setup_logging(verbose)
    settings = _settings(config_dir, winget)
    backend = _backend(settings)

    def load():
        return _with_spinner("Searching...", _search_records(backend, queries))

    result = _run_workflow(settings, backend, ActionKind.INSTALL, load, yes)
    _exit_for(result)


@app.command()
def upgrade(
    all_: Annotated[
        bool,
        typer.Option(
            "--all",
            "-a",
            help="Upgrade every available package without prompting for a selection",
        ),
    ] = False,
    yes: YesOption = False,
    config_dir: ConfigDirOption = None,
    winget: WingetOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Pick packages with available upgrades and upgrade them in one batch."""
    _setup_logging(verbose)
    settings = _settings(config_dir, winget)
    backend = _backend(settings)

    def load():
        return _with_spinner(
            "Checking for upgrades...", _table_records(backend.list_upgrades())
        )

    result = _run_workflow(
        settings, backend, ActionKind.UPGRADE, load, yes, select_all=all_
    )
    _exit_for(result)


@app.command()
def uninstall(
    queries: Annotated[
        Optional[list[str]],
        typer.Argument(help="Only list installed packages matching these words"),
    ] = None,
    yes: YesOption = False,
    config_dir: ConfigDirOption = None,
    winget: WingetOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Pick installed packages and uninstall them in one batch."""
    _setup_logging(verbose)
    settings = _settings(config_dir, winget)
    backend = _backend(settings)
    query = " ".join(queries or [])

    def load():
        return _with_spinner(
            "Listing installed packages...",
            _table_records(backend.list_installed(query or None), query),
        )

    result = _run_workflow(settings, backend, ActionKind.UNINSTALL, load, yes)
    _exit_for(result)


@app.command()
def show(
    package_id: Annotated[str, typer.Argument(help="Exact package id")],
    refresh: Annotated[
        bool,
        typer.Option("--refresh", "-r", help="Ignore the cache and fetch again"),
    ] = False,
    config_dir: ConfigDirOption = None,
    winget: WingetOption = None,
    verbose: VerboseOption = False,
) -> None:
    """Show package details, using the cache when possible."""
    _setup_logging(verbose)
    settings = _settings(config_dir, winget)
    cache = DetailCache(settings.cache_path, ttl_days=settings.cache_ttl_days)

    details = None if refresh else cache.get(package_id)
    if details is None:
        scheduler = FetchScheduler(_backend(settings), cache)
        details = asyncio.run(
            _with_spinner(
                f"Fetching {package_id}...", scheduler.fetch_one(package_id, refresh)
            )
        )
    elif verbose:
        console.print("[dim]Using cached details[/dim]")

    console.print(details_panel(details))
    if details.is_placeholder:
        raise typer.Exit(code=1)


def _candidate_records(candidates: list[CommitCandidate]) -> list[PackageRecord]:
    return [
        PackageRecord(
            id=c.name, name=c.name, version=c.version, source="winget", search_term="new"
        )
        for c in candidates
    ]


@app.command()
def new(
    days: Annotated[
        int,
        typer.Option("--days", "-d", min=1, help="How many days of history to scan"),
    ] = 7,
    github_token: Annotated[
        Optional[str],
        typer.Option(
            "--token",
            envvar="GITHUB_TOKEN",
            help="GitHub API token for higher rate limits",
        ),
    ] = None,
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write a Markdown report to this file"),
    ] = None,
    template: Annotated[
        Optional[Path],
        typer.Option(
            "--template",
            "-t",
            help="Custom Jinja2 template for the report",
            exists=True,
            readable=True,
        ),
    ] = None,
    offer_install: Annotated[
        bool,
        typer.Option("--install", help="Offer the new packages for installation"),
    ] = False,
    yes: YesOption = False,
    config_dir: ConfigDirOption = None,
    winget: WingetOption = None,
    verbose: VerboseOption = False,
) -> None:
    """List packages newly published to the winget-pkgs repository."""
    _setup_logging(verbose)
    settings = _settings(config_dir, winget)
    since = datetime.now(UTC) - timedelta(days=days)

    async def mine() -> list[CommitCandidate]:
        async with GitHubCommitSource(
            repo=settings.github_repo,
            github_token=github_token,
            rate_limit=RateLimitStore(settings.rate_limit_path),
        ) as source:
            return await NewPackageMiner(source).find_new_packages(since)

    try:
        candidates = asyncio.run(_with_spinner("Reading commit history...", mine()))
    except WingetBatchError as e:
        raise _fail(str(e))

    if not candidates:
        console.print(f"[yellow]No new packages in the last {days} day(s)[/yellow]")
    else:
        console.print(candidates_table(candidates))
        console.print(f"Found [bold]{len(candidates)}[/bold] new packages")

    if output:
        reporter = MarkdownReporter(template_path=template)
        try:
            reporter.write(candidates, output, since=since)
        except OSError as e:
            raise _fail(f"Error writing output: {e}")
        console.print(f"[green]Generated:[/green] {output}")

    if offer_install and candidates:
        backend = _backend(settings)

        async def load() -> list[PackageRecord]:
            return _candidate_records(candidates)

        result = _run_workflow(settings, backend, ActionKind.INSTALL, load, yes)
        _exit_for(result)


@app.command()
def cache(
    action: Annotated[
        str,
        typer.Argument(help="Cache action: 'show' or 'clear'"),
    ],
    package: Annotated[
        Optional[str],
        typer.Argument(help="Specific package to clear (optional)"),
    ] = None,
    config_dir: ConfigDirOption = None,
) -> None:
    """Manage the package detail cache.

    Actions:
        show  - Display cache location, entry count, and size
        clear - Clear all cached entries (or specific package)
    """
    settings = _settings(config_dir, None)
    cache_instance = DetailCache(settings.cache_path, ttl_days=settings.cache_ttl_days)

    if action == "show":
        info = cache_instance.info()
        console.print(f"[bold]Cache Location:[/bold] {info['path']}")
        console.print(f"[bold]Entries:[/bold] {info['count']} ({info['expired']} expired)")
        console.print(f"[bold]Size:[/bold] {info['size_bytes'] / 1024:.1f} KB")

    elif action == "clear":
        if package:
            cache_instance.clear(package)
            console.print(f"[green]Cleared cache for:[/green] {package}")
        else:
            cache_instance.clear()
            console.print("[green]Cache cleared[/green]")

    else:
        err_console.print(f"[red]Unknown action:[/red] {action}")
        err_console.print("Valid actions: show, clear")
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
