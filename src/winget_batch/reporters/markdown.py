"""Markdown reporter for newly published packages.

Renders the history miner's results with a Jinja2 template, either the
bundled one or a custom file.
"""

from datetime import UTC, datetime
from importlib.resources import files
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, Template, select_autoescape

from winget_batch.models import CommitCandidate
from winget_batch.reporters.base import BaseReporter

DEFAULT_TEMPLATE = "new_packages.md.j2"


class MarkdownReporter(BaseReporter):
    """Reporter that generates a Markdown list of new packages.

    Package names come from free-text commit messages, so values are
    HTML-escaped before they reach the document.

    Attributes:
        template: The Jinja2 template to use for rendering.
    """

    def __init__(self, template_path: Optional[Path] = None) -> None:
        """Initialize the Markdown reporter.

        Args:
            template_path: Optional path to a custom Jinja2 template.
                If not provided, uses the bundled template.
        """
        if template_path:
            env = Environment(
                loader=FileSystemLoader(template_path.parent),
                autoescape=select_autoescape(default=True, default_for_string=True),
            )
            self.template = env.get_template(template_path.name)
        else:
            self.template = self._load_default_template()

    def _load_default_template(self) -> Template:
        template_content = (
            files("winget_batch.templates")
            .joinpath(DEFAULT_TEMPLATE)
            .read_text(encoding="utf-8")
        )
        env = Environment(autoescape=True)
        return env.from_string(template_content)

    def render(
        self,
        candidates: list[CommitCandidate],
        since: Optional[datetime] = None,
    ) -> str:
        return self.template.render(
            candidates=candidates,
            since=since,
            generated_at=datetime.now(UTC),
        )

    @property
    def format_name(self) -> str:
        return "markdown"

    @property
    def default_extension(self) -> str:
        return ".md"
