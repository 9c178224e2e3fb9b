"""Domain-specific exceptions for winget_batch.

Parse misses are never errors; these cover the failures that have to reach
the user (missing executable, unusable configuration, GitHub refusals).
"""


class WingetBatchError(RuntimeError):
    """Base error for winget_batch failures."""


class PackageManagerNotFoundError(WingetBatchError):
    """Raised when the winget executable cannot be located."""


class ConfigurationError(WingetBatchError):
    """Raised when the configuration directory cannot be created or used."""


class GitHubError(WingetBatchError):
    """Raised when the GitHub commit history cannot be fetched."""


class GitHubRateLimitError(GitHubError):
    """Raised when GitHub refuses further requests because of rate limiting."""


__all__ = [
    "WingetBatchError",
    "PackageManagerNotFoundError",
    "ConfigurationError",
    "GitHubError",
    "GitHubRateLimitError",
]
