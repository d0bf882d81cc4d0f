"""Microsoft Store package backend implementation.

Store apps are upgraded through winget's msstore source. Packages that
winget does not know about (AppX packages installed outside the store
catalog) are looked up with Get-AppxPackage.
"""

import json
import logging
import subprocess
from pathlib import Path

from winupctl.models.package import PackageSource
from winupctl.sources.winget import WingetBackend
from winupctl.utils.shell import quote_powershell, run_powershell

logger = logging.getLogger(__name__)


class StoreBackend(WingetBackend):
    """Backend for Microsoft Store apps (winget msstore source).

    Store package identifiers are catalog IDs such as "9WZDNCRFJ3TJ" or
    AppX package names such as "Microsoft.WindowsTerminal".
    """

    _WINGET_SOURCE = "msstore"

    @property
    def source(self) -> PackageSource:
        """Return STORE as the package source."""
        return PackageSource.STORE

    def _appx_package(self, package_name: str) -> dict[str, str] | None:
        """Query Get-AppxPackage for a package by name.

        Returns:
            Dict with Version and InstallLocation, or None if not found.
        """
        script = (
            f"Get-AppxPackage -Name {quote_powershell(package_name)} | "
            "Select-Object -First 1 @{n='Version';e={[string]$_.Version}}, InstallLocation | "
            "ConvertTo-Json -Compress"
        )
        try:
            result = run_powershell(script, timeout=self._QUERY_TIMEOUT)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.debug("Get-AppxPackage unavailable for %s: %s", package_name, e)
            return None

        if not result.success or not result.stdout.strip():
            return None
        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError:
            logger.debug("Unexpected Get-AppxPackage output: %s", result.stdout)
            return None
        if not isinstance(data, dict):
            return None
        return {
            "Version": str(data.get("Version") or ""),
            "InstallLocation": str(data.get("InstallLocation") or ""),
        }

    def get_installed_version(self, package_name: str) -> str | None:
        """Read the installed version from winget, falling back to Get-AppxPackage."""
        version = super().get_installed_version(package_name)
        if version:
            return version

        appx = self._appx_package(package_name)
        if appx and appx["Version"]:
            return appx["Version"]
        return None

    def _install_location(self, package_name: str) -> Path | None:
        appx = self._appx_package(package_name)
        if appx and appx["InstallLocation"]:
            return Path(appx["InstallLocation"])
        return None
