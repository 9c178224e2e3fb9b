"""Runtime settings for winget_batch.

Values come from CLI options (which also read the ``WINGET_BATCH_HOME``,
``WINGET_BATCH_EXECUTABLE`` and ``GITHUB_TOKEN`` environment variables) and
fall back to the defaults below.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from winget_batch.errors import ConfigurationError

DEFAULT_CONCURRENCY = 10
DEFAULT_SELECTION_TIMEOUT = 30.0
DEFAULT_CACHE_TTL_DAYS = 30
DEFAULT_GITHUB_REPO = "microsoft/winget-pkgs"

CACHE_FILENAME = "details_cache.json"
RATE_LIMIT_FILENAME = "github_rate_limit.json"


def default_config_dir() -> Path:
    return Path.home() / ".config" / "winget-batch"


@dataclass
class Settings:
    """Resolved configuration for one CLI invocation.

    Attributes:
        config_dir: Directory holding the cache and rate-limit documents.
        winget_executable: Name or path of the winget executable.
        concurrency: Maximum number of background detail-fetch workers.
        selection_timeout: Seconds to wait for relevant workers after a
            selection is made.
        cache_ttl_days: Lifetime of cached package details.
        github_repo: ``owner/name`` of the manifest repository to mine.
    """

    config_dir: Path = field(default_factory=default_config_dir)
    winget_executable: str = "winget"
    concurrency: int = DEFAULT_CONCURRENCY
    selection_timeout: float = DEFAULT_SELECTION_TIMEOUT
    cache_ttl_days: int = DEFAULT_CACHE_TTL_DAYS
    github_repo: str = DEFAULT_GITHUB_REPO

    @property
    def cache_path(self) -> Path:
        return self.config_dir / CACHE_FILENAME

    @property
    def rate_limit_path(self) -> Path:
        return self.config_dir / RATE_LIMIT_FILENAME

    def ensure_config_dir(self) -> Path:
        """Create the configuration directory if needed.

        Returns:
            The configuration directory.

        Raises:
            ConfigurationError: If the directory cannot be created.
        """
        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot create configuration directory {self.config_dir}: {e}"
            ) from e
        return self.config_dir


def load_settings(
    config_dir: Optional[Path] = None,
    winget_executable: Optional[str] = None,
) -> Settings:
    """Build Settings from optional overrides and ensure the directory exists.

    Raises:
        ConfigurationError: If the configuration directory cannot be created.
    """
    settings = Settings()
    if config_dir is not None:
        settings.config_dir = config_dir.expanduser()
    if winget_executable:
        settings.winget_executable = winget_executable
    settings.ensure_config_dir()
    return settings
