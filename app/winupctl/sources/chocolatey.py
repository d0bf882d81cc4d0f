"""Chocolatey package backend implementation.

Uses the choco CLI with --limit-output (-r), which prints one
pipe-separated record per line:

    choco outdated -r   ->  name|current|available|pinned
    choco list -r       ->  name|version
"""

import logging
import os
import subprocess
from pathlib import Path

from winupctl.models.history import OperationType
from winupctl.models.operation import OperationResult
from winupctl.models.package import PackageSource, UpgradablePackage
from winupctl.sources.base import PackageBackend
from winupctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

# Default install root when ChocolateyInstall is not set
_DEFAULT_CHOCOLATEY_ROOT = Path("C:/ProgramData/chocolatey")


class ChocolateyBackend(PackageBackend):
    """Backend for Chocolatey packages.

    Dry-run operations are passed to choco as --noop so that choco itself
    reports what it would do.
    """

    # 1641 and 3010 mean success with a pending reboot
    _SUCCESS_CODES = frozenset({0, 1641, 3010})

    @property
    def source(self) -> PackageSource:
        """Return CHOCOLATEY as the package source."""
        return PackageSource.CHOCOLATEY

    def is_available(self) -> bool:
        """Check if the choco CLI is available."""
        return command_exists("choco")

    @property
    def install_root(self) -> Path:
        """Chocolatey installation root."""
        root = os.environ.get("ChocolateyInstall")
        return Path(root) if root else _DEFAULT_CHOCOLATEY_ROOT

    def _query(self, args: list[str]) -> str:
        self._require_available()
        try:
            result = run_command(args, timeout=self._QUERY_TIMEOUT)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            msg = f"{' '.join(args[:2])} failed: {e}"
            raise RuntimeError(msg) from e

        if not result.success:
            msg = f"{' '.join(args[:2])} failed: {result.output}"
            raise RuntimeError(msg)
        return result.stdout

    def list_available_upgrades(self) -> list[UpgradablePackage]:
        """List outdated packages via `choco outdated -r`.

        Pinned packages are skipped.

        Raises:
            RuntimeError: If choco is unavailable or fails.
        """
        output = self._query(["choco", "outdated", "-r", "--ignore-unfound"])

        packages: list[UpgradablePackage] = []
        for line in output.strip().splitlines():
            parts = [part.strip() for part in line.split("|")]
            if len(parts) < 3 or not parts[0] or not parts[1]:
                continue
            if len(parts) >= 4 and parts[3].lower() == "true":
                logger.debug("Skipping pinned package %s", parts[0])
                continue
            packages.append(
                UpgradablePackage(
                    name=parts[0],
                    version=parts[1],
                    source=PackageSource.CHOCOLATEY,
                    available_version=parts[2] or None,
                )
            )

        logger.debug("choco reported %d outdated package(s)", len(packages))
        return packages

    def get_installed_version(self, package_name: str) -> str | None:
        """Read the installed version from `choco list --exact <name> -r`."""
        try:
            output = self._query(["choco", "list", "--exact", package_name, "-r"])
        except RuntimeError as e:
            logger.warning("Cannot query installed version of %s: %s", package_name, e)
            return None

        for line in output.strip().splitlines():
            parts = [part.strip() for part in line.split("|")]
            if len(parts) >= 2 and parts[0].lower() == package_name.lower() and parts[1]:
                return parts[1]
        return None

    def _operation_args(self, command: str, package_name: str) -> list[str]:
        args = ["choco", command, package_name, "-y", "--no-progress"]
        if self.dry_run:
            args.append("--noop")
        return args

    def upgrade(self, package_name: str) -> OperationResult:
        """Upgrade a package using `choco upgrade <name> -y`.

        Raises:
            RuntimeError: If choco is not available.
        """
        self._require_available()
        return self._run_operation(
            OperationType.UPGRADE,
            package_name,
            self._operation_args("upgrade", package_name),
            simulate=False,
        )

    def install(self, package_name: str, version: str | None = None) -> OperationResult:
        """Install a package using `choco install`, optionally at a version.

        Raises:
            RuntimeError: If choco is not available.
        """
        self._require_available()
        args = self._operation_args("install", package_name)
        if version:
            args.extend(["--version", version, "--allow-downgrade"])
        return self._run_operation(OperationType.INSTALL, package_name, args, simulate=False)

    def uninstall(self, package_name: str) -> OperationResult:
        """Uninstall a package using `choco uninstall`.

        Raises:
            RuntimeError: If choco is not available.
        """
        self._require_available()
        return self._run_operation(
            OperationType.UNINSTALL,
            package_name,
            self._operation_args("uninstall", package_name),
            simulate=False,
        )

    def _install_location(self, package_name: str) -> Path | None:
        location = self.install_root / "lib" / package_name
        return location if location.is_dir() else None
