"""Package backends for the supported update sources.

This module exports the backend classes for querying and updating packages.
"""

from winupctl.sources.base import PackageBackend
from winupctl.sources.chocolatey import ChocolateyBackend
from winupctl.sources.store import StoreBackend
from winupctl.sources.winget import WingetBackend

__all__ = ["ChocolateyBackend", "PackageBackend", "StoreBackend", "WingetBackend"]
