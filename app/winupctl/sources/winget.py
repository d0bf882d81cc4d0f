"""Winget package backend implementation.

Lists and upgrades packages using the Windows Package Manager CLI. winget
prints fixed-width tables whose column offsets are taken from the header
line, for example:

    Name            Id              Version   Available  Source
    -----------------------------------------------------------
    Git             Git.Git         2.43.0    2.44.0     winget
    2 upgrades available.
"""

import logging
import subprocess

from winupctl.models.history import OperationType
from winupctl.models.operation import OperationResult
from winupctl.models.package import PackageSource, UpgradablePackage
from winupctl.sources.base import PackageBackend
from winupctl.utils.shell import command_exists, run_command

logger = logging.getLogger(__name__)

# Header labels in column order, mapped to row keys
_COLUMNS: tuple[tuple[str, str], ...] = (
    ("Name", "name"),
    ("Id", "id"),
    ("Version", "version"),
    ("Available", "available"),
    ("Source", "source"),
)


def _clean_line(line: str) -> str:
    # winget redraws its progress spinner with carriage returns
    return line.rsplit("\r", 1)[-1].rstrip()


def _is_separator(line: str) -> bool:
    stripped = line.strip()
    return bool(stripped) and set(stripped) <= {"-", "─"}


def parse_winget_table(output: str) -> list[dict[str, str]]:
    """Parse the first table in winget list/upgrade output.

    Column boundaries come from the positions of the header labels. Parsing
    stops at the first blank line after the data rows, which also skips the
    secondary "require explicit targeting" table.

    Args:
        output: Raw stdout from winget.

    Returns:
        One dict per row with keys name, id, version, available and source
        (missing columns are empty strings).
    """
    lines = [_clean_line(line) for line in output.splitlines()]

    header_index: int | None = None
    for index, line in enumerate(lines):
        if "Name" in line and "Id" in line and "Version" in line:
            header_index = index
            break
    if header_index is None:
        return []

    header = lines[header_index]
    positions = sorted(
        (header.find(label), key) for label, key in _COLUMNS if header.find(label) >= 0
    )

    rows: list[dict[str, str]] = []
    for line in lines[header_index + 1 :]:
        if _is_separator(line):
            continue
        if not line.strip():
            if rows:
                break
            continue
        lowered = line.strip().lower()
        if "upgrades available" in lowered or "upgrade available" in lowered:
            continue
        if lowered.startswith("no ") or lowered.startswith("the following"):
            break

        row = {key: "" for _, key in _COLUMNS}
        for i, (start, key) in enumerate(positions):
            end = positions[i + 1][0] if i + 1 < len(positions) else None
            row[key] = line[start:end].strip()
        if row["id"]:
            rows.append(row)
    return rows


class WingetBackend(PackageBackend):
    """Backend for the winget community repository.

    Every command is restricted to one winget source so that the Store
    backend can reuse this implementation for msstore packages.
    """

    # Name of the winget source queried by this backend
    _WINGET_SOURCE: str = "winget"

    _AGREEMENTS: tuple[str, ...] = (
        "--accept-package-agreements",
        "--accept-source-agreements",
    )

    @property
    def source(self) -> PackageSource:
        """Return WINGET as the package source."""
        return PackageSource.WINGET

    def is_available(self) -> bool:
        """Check if the winget CLI is available."""
        return command_exists("winget")

    def _query(self, args: list[str]) -> str:
        """Run a winget query command and return stdout.

        Raises:
            RuntimeError: If winget is unavailable, fails or times out.
        """
        self._require_available()
        try:
            result = run_command(args, timeout=self._QUERY_TIMEOUT)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            msg = f"{' '.join(args[:2])} failed: {e}"
            raise RuntimeError(msg) from e

        if not result.success and not result.stdout.strip():
            msg = f"{' '.join(args[:2])} failed: {result.output}"
            raise RuntimeError(msg)
        return result.stdout

    def list_available_upgrades(self) -> list[UpgradablePackage]:
        """List upgradable packages via `winget upgrade --include-unknown`.

        Rows without an available version are skipped.

        Raises:
            RuntimeError: If winget is unavailable or fails.
        """
        output = self._query(
            [
                "winget",
                "upgrade",
                "--include-unknown",
                "--source",
                self._WINGET_SOURCE,
                "--accept-source-agreements",
            ]
        )

        packages: list[UpgradablePackage] = []
        for row in parse_winget_table(output):
            if not row["version"] or not row["available"]:
                continue
            if row["source"] and row["source"].lower() != self._WINGET_SOURCE:
                continue
            packages.append(
                UpgradablePackage(
                    name=row["id"],
                    version=row["version"],
                    source=self.source,
                    available_version=row["available"],
                    display_name=row["name"] or None,
                )
            )

        logger.debug("winget (%s) reported %d upgrade(s)", self._WINGET_SOURCE, len(packages))
        return packages

    def get_installed_version(self, package_name: str) -> str | None:
        """Read the installed version from `winget list --id <name> --exact`."""
        try:
            output = self._query(
                [
                    "winget",
                    "list",
                    "--id",
                    package_name,
                    "--exact",
                    "--source",
                    self._WINGET_SOURCE,
                    "--accept-source-agreements",
                ]
            )
        except RuntimeError as e:
            logger.warning("Cannot query installed version of %s: %s", package_name, e)
            return None

        for row in parse_winget_table(output):
            if row["id"].lower() == package_name.lower() and row["version"]:
                return row["version"]
        return None

    def upgrade(self, package_name: str) -> OperationResult:
        """Upgrade a package using `winget upgrade --id <name> --exact --silent`.

        Raises:
            RuntimeError: If winget is not available.
        """
        self._require_available()
        return self._run_operation(
            OperationType.UPGRADE,
            package_name,
            [
                "winget",
                "upgrade",
                "--id",
                package_name,
                "--exact",
                "--silent",
                "--source",
                self._WINGET_SOURCE,
                *self._AGREEMENTS,
            ],
        )

    def install(self, package_name: str, version: str | None = None) -> OperationResult:
        """Install a package using `winget install`, optionally at a version.

        Raises:
            RuntimeError: If winget is not available.
        """
        self._require_available()
        args = [
            "winget",
            "install",
            "--id",
            package_name,
            "--exact",
            "--silent",
            "--source",
            self._WINGET_SOURCE,
        ]
        if version:
            args.extend(["--version", version])
        args.extend(self._AGREEMENTS)
        return self._run_operation(OperationType.INSTALL, package_name, args)

    def uninstall(self, package_name: str) -> OperationResult:
        """Uninstall a package using `winget uninstall`.

        Raises:
            RuntimeError: If winget is not available.
        """
        self._require_available()
        return self._run_operation(
            OperationType.UNINSTALL,
            package_name,
            [
                "winget",
                "uninstall",
                "--id",
                package_name,
                "--exact",
                "--silent",
                "--source",
                self._WINGET_SOURCE,
                "--accept-source-agreements",
            ],
        )
