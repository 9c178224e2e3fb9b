"""Base interface for package-manager backends.

A backend wraps the native package-manager executable. It only runs the
process and returns its exit code and output; interpreting the output is
left to the parsers.
"""

from abc import ABC, abstractmethod
from typing import Optional

from winget_batch.models import ActionKind, CommandResult


class BasePackageManager(ABC):
    """Abstract base class for package-manager backends.

    All methods are coroutines so that several ``show`` calls can overlap
    in the background fetch pool.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the backend name for logging/display."""
        ...

    @abstractmethod
    async def search(self, query: str) -> CommandResult:
        """Run a search and return its table output."""
        ...

    @abstractmethod
    async def show(self, package_id: str) -> CommandResult:
        """Return the key/value detail dump for one package."""
        ...

    @abstractmethod
    async def list_installed(self, query: Optional[str] = None) -> CommandResult:
        """Return the table of installed packages, optionally filtered."""
        ...

    @abstractmethod
    async def list_upgrades(self) -> CommandResult:
        """Return the table of packages with an available upgrade."""
        ...

    @abstractmethod
    async def install(self, package_id: str) -> CommandResult:
        ...

    @abstractmethod
    async def upgrade(self, package_id: str) -> CommandResult:
        ...

    @abstractmethod
    async def uninstall(self, package_id: str) -> CommandResult:
        ...

    async def action(self, kind: ActionKind, package_id: str) -> CommandResult:
        """Apply a batch action to one package.

        Args:
            kind: Action to perform.
            package_id: Target package.

        Returns:
            Result of the underlying process call.
        """
        if kind is ActionKind.INSTALL:
            return await self.install(package_id)
        if kind is ActionKind.UPGRADE:
            return await self.upgrade(package_id)
        return await self.uninstall(package_id)
