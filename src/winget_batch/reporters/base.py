"""Base interface for file reporters.

Reporters render the packages found by the history miner into a document
that can be saved or shared.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Optional

from winget_batch.models import CommitCandidate


class BaseReporter(ABC):
    """Abstract base class for new-package reporters."""

    @abstractmethod
    def render(
        self,
        candidates: list[CommitCandidate],
        since: Optional[datetime] = None,
    ) -> str:
        """Render candidates to formatted output.

        Args:
            candidates: Newly published packages, newest first.
            since: Start of the mined period, if known.

        Returns:
            Rendered output as a string.
        """
        ...

    def write(
        self,
        candidates: list[CommitCandidate],
        output_path: Path,
        since: Optional[datetime] = None,
    ) -> None:
        """Render and write output to a file."""
        content = self.render(candidates, since)
        output_path.write_text(content, encoding="utf-8")

    @property
    @abstractmethod
    def format_name(self) -> str:
        ...

    @property
    @abstractmethod
    def default_extension(self) -> str:
        ...
