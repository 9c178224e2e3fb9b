"""Backend that drives the ``winget`` executable."""

import asyncio
import logging
import shutil
from typing import Optional

from winget_batch.backends.base import BasePackageManager
from winget_batch.errors import PackageManagerNotFoundError
from winget_batch.models import CommandResult

logger = logging.getLogger(__name__)

SOURCE_AGREEMENTS = "--accept-source-agreements"
PACKAGE_AGREEMENTS = "--accept-package-agreements"


class WingetBackend(BasePackageManager):
    """Runs winget as a child process and captures its combined output.

    Attributes:
        executable: Resolved path of the winget executable.
    """

    def __init__(self, executable: str = "winget") -> None:
        """Locate the winget executable.

        Args:
            executable: Name or path of the executable.

        Raises:
            PackageManagerNotFoundError: If the executable is not on PATH.
        """
        resolved = shutil.which(executable)
        if resolved is None:
            raise PackageManagerNotFoundError(
                f"'{executable}' not found in PATH. Is App Installer installed?"
            )
        self.executable = resolved

    @property
    def name(self) -> str:
        return "winget"

    async def _run(self, *args: str) -> CommandResult:
        """Run winget with ``args`` and wait for it to exit.

        stdout and stderr are merged. If the calling task is cancelled the
        child process is killed and reaped before the cancellation
        propagates.
        """
        logger.debug("Running %s %s", self.executable, " ".join(args))
        process = await asyncio.create_subprocess_exec(
            self.executable,
            *args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
        )
        try:
            stdout, _ = await process.communicate()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise

        text = stdout.decode("utf-8", errors="replace") if stdout else ""
        return CommandResult(exit_code=process.returncode, lines=text.splitlines())

    async def _run_interactive(self, *args: str) -> CommandResult:
        """Run winget with its output going straight to the terminal.

        Installers print progress bars meant for a console, so their output
        is not captured.
        """
        logger.debug("Running %s %s", self.executable, " ".join(args))
        process = await asyncio.create_subprocess_exec(self.executable, *args)
        try:
            exit_code = await process.wait()
        except asyncio.CancelledError:
            if process.returncode is None:
                process.kill()
                await process.wait()
            raise
        return CommandResult(exit_code=exit_code)

    async def search(self, query: str) -> CommandResult:
        return await self._run("search", "--query", query, SOURCE_AGREEMENTS)

    async def show(self, package_id: str) -> CommandResult:
        return await self._run(
            "show", "--id", package_id, "--exact", SOURCE_AGREEMENTS
        )

    async def list_installed(self, query: Optional[str] = None) -> CommandResult:
        args = ["list", SOURCE_AGREEMENTS]
        if query:
            args[1:1] = ["--query", query]
        return await self._run(*args)

    async def list_upgrades(self) -> CommandResult:
        return await self._run("upgrade", SOURCE_AGREEMENTS)

    async def install(self, package_id: str) -> CommandResult:
        return await self._run_interactive(
            "install", "--id", package_id, "--exact",
            PACKAGE_AGREEMENTS, SOURCE_AGREEMENTS,
        )

    async def upgrade(self, package_id: str) -> CommandResult:
        return await self._run_interactive(
            "upgrade", "--id", package_id, "--exact",
            PACKAGE_AGREEMENTS, SOURCE_AGREEMENTS,
        )

    async def uninstall(self, package_id: str) -> CommandResult:
        return await self._run_interactive(
            "uninstall", "--id", package_id, "--exact", SOURCE_AGREEMENTS
        )
