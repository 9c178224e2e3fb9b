"""Output reporters for console display and saved documents."""

from winget_batch.reporters.base import BaseReporter
from winget_batch.reporters.console import ConsoleReporter
from winget_batch.reporters.markdown import MarkdownReporter

__all__ = ["BaseReporter", "ConsoleReporter", "MarkdownReporter"]
