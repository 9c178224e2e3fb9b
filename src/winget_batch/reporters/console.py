"""Rich console rendering for records, details and batch results."""

from collections.abc import Iterable
from typing import Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from winget_batch.models import (
    ActionKind,
    ActionOutcome,
    BatchResult,
    CommitCandidate,
    PackageDetail,
    PackageRecord,
)

# (label, field) pairs shown in detail panels, in display order
DETAIL_ROWS = (
    ("Version", "version"),
    ("Publisher", "publisher"),
    ("Author", "author"),
    ("Description", "description"),
    ("Homepage", "homepage"),
    ("Source", "publisher_source_host_link"),
    ("License", "license"),
    ("Category", "category"),
    ("Pricing", "pricing"),
    ("Installer", "installer_type"),
    ("Release Notes", "release_notes_url"),
)

_VERBS = {
    ActionKind.INSTALL: "Installing",
    ActionKind.UPGRADE: "Upgrading",
    ActionKind.UNINSTALL: "Uninstalling",
}


def choice_label(record: PackageRecord) -> str:
    """Label used for a record in the selection list."""
    label = f"{record.name} [{record.id}] {record.version}"
    if record.available:
        label += f" -> {record.available}"
    return label


def records_table(records: Iterable[PackageRecord], title: str = "Packages") -> Table:
    records = list(records)
    show_available = any(r.available for r in records)
    show_match = any(r.match for r in records)

    table = Table(title=title)
    table.add_column("Name", style="bold")
    table.add_column("Id", style="cyan")
    table.add_column("Version")
    if show_available:
        table.add_column("Available", style="green")
    if show_match:
        table.add_column("Match", style="dim")
    table.add_column("Source", style="dim")

    for record in records:
        row = [record.name, record.id, record.version]
        if show_available:
            row.append(record.available or "")
        if show_match:
            row.append(record.match or "")
        row.append(record.source)
        table.add_row(*row)
    return table


def details_panel(detail: PackageDetail) -> Panel:
    if detail.is_placeholder:
        body = Text("Details unavailable", style="dim italic")
        return Panel(body, title=detail.id, title_align="left")

    grid = Table.grid(padding=(0, 2))
    grid.add_column(style="bold")
    grid.add_column()
    for label, field_name in DETAIL_ROWS:
        value = getattr(detail, field_name)
        if value:
            grid.add_row(label, value)
    if detail.tags:
        grid.add_row("Tags", ", ".join(detail.tags))
    return Panel(grid, title=detail.id, title_align="left")


def candidates_table(candidates: Iterable[CommitCandidate]) -> Table:
    table = Table(title="New packages")
    table.add_column("Date", no_wrap=True)
    table.add_column("Package", style="cyan")
    table.add_column("Version")
    table.add_column("Author", style="dim")
    table.add_column("Commit", style="dim", no_wrap=True)
    for candidate in candidates:
        table.add_row(
            candidate.commit_date.strftime("%Y-%m-%d %H:%M"),
            candidate.name,
            candidate.version,
            candidate.author_name,
            candidate.short_hash,
        )
    return table


class ConsoleReporter:
    """Prints workflow progress to a rich console."""

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def show_details(self, details: Iterable[PackageDetail]) -> None:
        self.console.print(Group(*(details_panel(d) for d in details)))

    def start(self, action: ActionKind, package_id: str) -> None:
        self.console.print(f"[bold]{_VERBS[action]}[/bold] {package_id}...")

    def outcome(self, outcome: ActionOutcome) -> None:
        if outcome.succeeded:
            self.console.print(f"  [green]OK[/green] {outcome.package_id}")
        else:
            self.console.print(
                f"  [red]Failed[/red] {outcome.package_id} "
                f"(exit code {outcome.exit_code})"
            )

    def show_summary(self, result: BatchResult) -> None:
        style = "green" if result.fail_count == 0 else "yellow"
        self.console.print(
            f"\n[{style}]{result.action.value.capitalize()}: "
            f"{result.success_count} succeeded, {result.fail_count} failed[/{style}]"
        )
        for package_id in result.failed_ids:
            self.console.print(f"  - {package_id}")
