"""Package-manager backends.

Backends run the native package-manager executable and hand its raw
output to the parsers.
"""

from winget_batch.backends.base import BasePackageManager
from winget_batch.backends.winget import WingetBackend

__all__ = [
    "BasePackageManager",
    "WingetBackend",
]
