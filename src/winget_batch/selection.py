"""Interactive multi-select and confirmation prompts.

Selection is a plain function from a list of choice labels to the chosen
subset, so the workflow does not depend on how the choice is made. The
console implementation numbers the choices in a rich table and reads an
expression such as ``1,3-5`` or ``all``. Without a terminal it falls back
to printing the listing and selecting nothing.
"""

import re
import sys
from collections.abc import Sequence
from typing import Literal, Optional, Protocol

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table

ConfirmAnswer = Literal["yes", "no", "back"]

_TOKEN = re.compile(r"(\d+)(?:-(\d+))?")
_ALL = {"a", "all", "*"}


class Selector(Protocol):
    def select(self, title: str, choices: Sequence[str]) -> list[str]:
        ...


class Confirmer(Protocol):
    def confirm(self, question: str) -> ConfirmAnswer:
        ...


def parse_selection(text: str, count: int) -> list[int]:
    """Parse a selection expression into zero-based indices.

    Args:
        text: Expression like ``"1,3-5 7"``, ``"all"`` or blank for none.
        count: Number of available choices.

    Returns:
        Indices in the order given, without duplicates. Out-of-range numbers
        and unparseable tokens are ignored.
    """
    text = text.strip().lower()
    if not text:
        return []
    if text in _ALL:
        return list(range(count))

    indices: list[int] = []
    for token in re.split(r"[,\s]+", re.sub(r"\s*-\s*", "-", text)):
        match = _TOKEN.fullmatch(token)
        if match is None:
            continue
        first = int(match.group(1))
        last = int(match.group(2) or first)
        if first > last:
            first, last = last, first
        indices.extend(n - 1 for n in range(first, last + 1) if 1 <= n <= count)
    return list(dict.fromkeys(indices))


def _stdin_is_tty() -> bool:
    try:
        return sys.stdin.isatty()
    except (AttributeError, ValueError):
        return False


class ConsoleSelector:
    """Numbered-list multi-select on a rich console."""

    def __init__(
        self, console: Optional[Console] = None, interactive: Optional[bool] = None
    ) -> None:
        self.console = console or Console()
        self._interactive = interactive

    @property
    def interactive(self) -> bool:
        if self._interactive is not None:
            return self._interactive
        return _stdin_is_tty()

    def _render(self, title: str, choices: Sequence[str]) -> None:
        table = Table(title=title, show_lines=False)
        table.add_column("#", justify="right", style="cyan", no_wrap=True)
        table.add_column("Package")
        for number, choice in enumerate(choices, start=1):
            table.add_row(str(number), choice)
        self.console.print(table)

    def select(self, title: str, choices: Sequence[str]) -> list[str]:
        """Show ``choices`` and return the ones the user picks.

        Never raises: an unavailable terminal or an aborted prompt selects
        nothing.
        """
        if not choices:
            return []

        self._render(title, choices)
        if not self.interactive:
            self.console.print(
                "[yellow]No interactive terminal; listing only, nothing selected.[/yellow]"
            )
            return []

        try:
            answer = Prompt.ask(
                "Select packages ([cyan]1,3-5[/cyan], [cyan]all[/cyan], blank for none)",
                console=self.console,
                default="",
                show_default=False,
            )
        except (EOFError, KeyboardInterrupt):
            return []
        return [choices[index] for index in parse_selection(answer, len(choices))]


class ConsoleConfirmer:
    """Yes/no/back confirmation on a rich console."""

    _ANSWERS: dict[str, ConfirmAnswer] = {"y": "yes", "n": "no", "b": "back"}

    def __init__(
        self, console: Optional[Console] = None, interactive: Optional[bool] = None
    ) -> None:
        self.console = console or Console()
        self._interactive = interactive

    @property
    def interactive(self) -> bool:
        if self._interactive is not None:
            return self._interactive
        return _stdin_is_tty()

    def confirm(self, question: str) -> ConfirmAnswer:
        if not self.interactive:
            return "no"
        try:
            answer = Prompt.ask(
                f"{question} ([green]y[/green]es / [red]n[/red]o / [cyan]b[/cyan]ack)",
                console=self.console,
                choices=list(self._ANSWERS),
                default="y",
                show_choices=False,
            )
        except (EOFError, KeyboardInterrupt):
            return "no"
        return self._ANSWERS[answer]
