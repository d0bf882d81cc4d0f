"""Abstract base class for package backends.

This module defines the PackageBackend interface that every update source
implements. A backend both queries its package manager (listing upgrades,
reading installed versions) and executes operations on it (upgrade,
install, uninstall). File inspection used by the security validator
(digest, code signature, executable lookup) is shared by all backends.
"""

import hashlib
import json
import logging
import os
import re
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path

from winupctl.models.history import OperationType
from winupctl.models.operation import OperationResult
from winupctl.models.package import PackageSource, UpgradablePackage
from winupctl.models.validation import HashAlgorithm, SignatureStatus, SignatureVerdict
from winupctl.utils.shell import CommandResult, quote_powershell, run_command, run_powershell

logger = logging.getLogger(__name__)

_DIGEST_CHUNK_SIZE = 1024 * 1024

_NAME_SEPARATORS = re.compile(r"[.\-_\s]+")


def executable_prefixes(package_name: str) -> list[str]:
    """Derive case-folded executable name prefixes from a package identifier.

    "Mozilla.Firefox" yields ["firefox", "mozilla", "mozilla.firefox"]; the
    last identifier segment is usually the product name.
    """
    parts = [part for part in _NAME_SEPARATORS.split(package_name) if part]
    candidates = [*parts[-1:], *parts[:1], package_name]
    prefixes: list[str] = []
    for candidate in candidates:
        folded = candidate.casefold()
        if folded and folded not in prefixes:
            prefixes.append(folded)
    return prefixes


def find_executable_in(directory: Path, prefixes: list[str]) -> Path | None:
    """Find the first *.exe under directory whose name starts with a prefix.

    Prefixes are tried in order; within a prefix, shallower paths win and
    ties are broken alphabetically.
    """
    if not directory.is_dir():
        return None

    try:
        executables = sorted(
            directory.rglob("*.exe"),
            key=lambda p: (len(p.relative_to(directory).parts), str(p).casefold()),
        )
    except OSError as e:
        logger.debug("Cannot search %s: %s", directory, e)
        return None

    for prefix in prefixes:
        for path in executables:
            if path.name.casefold().startswith(prefix):
                return path
    return None


class PackageBackend(ABC):
    """Abstract base class for all update sources.

    Attributes:
        dry_run: If True, operations are simulated.
        timeout: Timeout in seconds for operation commands.

    Example:
        >>> backend = WingetBackend(dry_run=True)
        >>> if backend.is_available():
        ...     for pkg in backend.list_available_upgrades():
        ...         print(f"{pkg.name}: {pkg.version} -> {pkg.available_version}")
    """

    # Timeout for listing and query commands
    _QUERY_TIMEOUT: float = 120.0

    # Exit codes that indicate success for operation commands
    _SUCCESS_CODES: frozenset[int] = frozenset({0})

    def __init__(self, dry_run: bool = False, timeout: float = 1800.0) -> None:
        """Initialize the backend.

        Args:
            dry_run: If True, only simulate operations.
            timeout: Timeout in seconds for upgrade/install/uninstall commands.
        """
        self._dry_run = dry_run
        self._timeout = timeout

    @property
    def dry_run(self) -> bool:
        """Check if backend is in dry-run mode."""
        return self._dry_run

    @property
    def timeout(self) -> float:
        """Timeout for operation commands in seconds."""
        return self._timeout

    @property
    @abstractmethod
    def source(self) -> PackageSource:
        """Return the update source this backend handles."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this package manager is available on the system."""

    @abstractmethod
    def list_available_upgrades(self) -> list[UpgradablePackage]:
        """List installed packages that have an upgrade available.

        Returns:
            UpgradablePackage for each upgradable package.

        Raises:
            RuntimeError: If the package manager is unavailable or fails.
        """

    @abstractmethod
    def get_installed_version(self, package_name: str) -> str | None:
        """Return the installed version of a package, None if not installed."""

    @abstractmethod
    def upgrade(self, package_name: str) -> OperationResult:
        """Upgrade one package to the latest available version.

        Raises:
            RuntimeError: If the package manager is not available.
        """

    @abstractmethod
    def install(self, package_name: str, version: str | None = None) -> OperationResult:
        """Install one package, optionally pinned to a version.

        Raises:
            RuntimeError: If the package manager is not available.
        """

    @abstractmethod
    def uninstall(self, package_name: str) -> OperationResult:
        """Uninstall one package.

        Raises:
            RuntimeError: If the package manager is not available.
        """

    def _require_available(self) -> None:
        if not self.is_available():
            msg = f"{self.source.value} package manager is not available on this system"
            raise RuntimeError(msg)

    def _run_operation(
        self,
        operation: OperationType,
        package_name: str,
        args: list[str],
        simulate: bool = True,
    ) -> OperationResult:
        """Execute an operation command and convert it to an OperationResult.

        Args:
            operation: Operation being performed.
            package_name: Package the command acts on.
            args: Command argument vector.
            simulate: In dry-run mode, skip execution entirely. Backends whose
                CLI has its own no-op flag pass False and add the flag.

        Returns:
            OperationResult. Command errors and timeouts become failures.
        """
        if self.dry_run and simulate:
            logger.info("Dry-run: would run %s", " ".join(args))
            return OperationResult(
                package=package_name,
                source=self.source,
                operation=operation,
                success=True,
                message=f"Dry-run: {operation.value.lower()} simulated",
                dry_run=True,
            )

        logger.info(
            "Executing %s %s for %s (dry_run=%s)",
            self.source.value,
            operation.value.lower(),
            package_name,
            self.dry_run,
        )

        try:
            result = run_command(args, timeout=self.timeout)
        except FileNotFoundError as e:
            return self._failed(operation, package_name, f"Command not found: {e}")
        except subprocess.TimeoutExpired:
            return self._failed(
                operation,
                package_name,
                f"Command timed out after {self.timeout:.0f} seconds",
            )

        return self._to_result(operation, package_name, result)

    def _to_result(
        self,
        operation: OperationType,
        package_name: str,
        result: CommandResult,
    ) -> OperationResult:
        if result.returncode in self._SUCCESS_CODES:
            message = "Dry-run completed" if self.dry_run else "Operation completed"
            return OperationResult(
                package=package_name,
                source=self.source,
                operation=operation,
                success=True,
                message=message,
                exit_code=result.returncode,
                dry_run=self.dry_run,
            )

        error = result.output or f"Command failed with exit code {result.returncode}"
        return self._failed(operation, package_name, error[-1000:], result.returncode)

    def _failed(
        self,
        operation: OperationType,
        package_name: str,
        error: str,
        exit_code: int | None = None,
    ) -> OperationResult:
        logger.warning(
            "%s %s of %s failed: %s",
            self.source.value,
            operation.value.lower(),
            package_name,
            error,
        )
        return OperationResult(
            package=package_name,
            source=self.source,
            operation=operation,
            success=False,
            error=error,
            exit_code=exit_code,
            dry_run=self.dry_run,
        )

    def _install_location(self, package_name: str) -> Path | None:
        """Return the install directory reported by the package manager, if any.

        The default implementation reports nothing and leaves lookup to
        directory probing.
        """
        return None

    def search_roots(self) -> list[Path]:
        """Well-known program directories probed for executables."""
        roots: list[Path] = []
        for var in ("ProgramFiles", "ProgramFiles(x86)", "ProgramW6432"):
            value = os.environ.get(var)
            if value:
                roots.append(Path(value))
        local_app_data = os.environ.get("LOCALAPPDATA")
        if local_app_data:
            roots.append(Path(local_app_data) / "Programs")
            roots.append(Path(local_app_data))
        choco_root = os.environ.get("ChocolateyInstall")
        if choco_root:
            roots.append(Path(choco_root) / "lib")

        unique: list[Path] = []
        for root in roots:
            if root not in unique:
                unique.append(root)
        return unique

    def find_executable_path(self, package_name: str) -> Path | None:
        """Locate the primary executable of an installed package.

        The install location reported by the package manager is searched
        first. Otherwise every search root is probed for a directory whose
        name starts with one of the package's name prefixes, and that
        directory is searched for a matching executable.

        Returns:
            Path to the executable, or None if nothing matched.
        """
        prefixes = executable_prefixes(package_name)

        location = self._install_location(package_name)
        if location is not None:
            found = find_executable_in(location, prefixes)
            if found is not None:
                logger.debug("Found %s in reported install location %s", found, location)
                return found

        for root in self.search_roots():
            if not root.is_dir():
                continue
            try:
                children = sorted(
                    (child for child in root.iterdir() if child.is_dir()),
                    key=lambda p: p.name.casefold(),
                )
            except OSError as e:
                logger.debug("Cannot list %s: %s", root, e)
                continue

            for prefix in prefixes:
                for child in children:
                    if not child.name.casefold().startswith(prefix):
                        continue
                    found = find_executable_in(child, prefixes)
                    if found is not None:
                        logger.debug("Found %s by probing %s", found, root)
                        return found

        logger.debug("No executable found for %s (%s)", package_name, self.source.value)
        return None

    def compute_file_digest(self, path: Path, algorithm: HashAlgorithm) -> str:
        """Compute the digest of a file.

        Args:
            path: File to hash.
            algorithm: Digest algorithm.

        Returns:
            Upper-case hexadecimal digest.

        Raises:
            OSError: If the file cannot be read.
        """
        digest = hashlib.new(algorithm.hashlib_name)
        with path.open("rb") as f:
            for chunk in iter(lambda: f.read(_DIGEST_CHUNK_SIZE), b""):
                digest.update(chunk)
        return digest.hexdigest().upper()

    def get_signature_verdict(self, path: Path) -> SignatureVerdict:
        """Read the Authenticode signature status of a file.

        Runs Get-AuthenticodeSignature through PowerShell. Any failure to
        obtain a status yields UnknownError rather than raising.
        """
        script = (
            f"$s = Get-AuthenticodeSignature -LiteralPath {quote_powershell(str(path))}; "
            "[pscustomobject]@{ Status = [string]$s.Status; "
            "Subject = $s.SignerCertificate.Subject } | ConvertTo-Json -Compress"
        )
        try:
            result = run_powershell(script, timeout=self._QUERY_TIMEOUT)
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.warning("Cannot read signature of %s: %s", path, e)
            return SignatureVerdict(valid=False, status=SignatureStatus.UNKNOWN_ERROR)

        if not result.success or not result.stdout.strip():
            logger.warning("Signature query for %s failed: %s", path, result.output)
            return SignatureVerdict(valid=False, status=SignatureStatus.UNKNOWN_ERROR)

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError:
            logger.warning("Unexpected signature output for %s: %s", path, result.stdout)
            return SignatureVerdict(valid=False, status=SignatureStatus.UNKNOWN_ERROR)

        status = SignatureStatus.parse(data.get("Status") if isinstance(data, dict) else None)
        publisher = data.get("Subject") if isinstance(data, dict) else None
        return SignatureVerdict(
            valid=status == SignatureStatus.VALID,
            status=status,
            publisher=publisher or None,
        )
