"""Unit tests for rolling back recorded upgrades.

Tests for finding rollback targets in the history and for the rollback
runner's batch behavior.
"""

from pathlib import Path

import pytest
from winupctl.core.history import HistoryFilter, HistoryLedger
from winupctl.core.rollback import RollbackRunner, RollbackTarget, find_rollback_targets
from winupctl.models.history import HistoryEntry, OperationType
from winupctl.models.operation import OperationResult
from winupctl.models.package import PackageSource, UpgradablePackage
from winupctl.sources.base import PackageBackend


class MockBackend(PackageBackend):
    """Backend that records installs and fails for selected packages."""

    def __init__(self, fail: set[str] | None = None, available: bool = True) -> None:
        super().__init__()
        self.fail = fail or set()
        self.available = available
        self.installed: list[tuple[str, str | None]] = []

    @property
    def source(self) -> PackageSource:
        return PackageSource.WINGET

    def is_available(self) -> bool:
        return self.available

    def list_available_upgrades(self) -> list[UpgradablePackage]:
        return []

    def get_installed_version(self, package_name: str) -> str | None:
        return None

    def upgrade(self, package_name: str) -> OperationResult:
        raise NotImplementedError

    def install(self, package_name: str, version: str | None = None) -> OperationResult:
        self._require_available()
        self.installed.append((package_name, version))
        success = package_name not in self.fail
        return OperationResult(
            package=package_name,
            source=self.source,
            operation=OperationType.INSTALL,
            success=success,
            error=None if success else "Installer failed with exit code: 1603",
            exit_code=0 if success else 1,
        )

    def uninstall(self, package_name: str) -> OperationResult:
        raise NotImplementedError

    def find_executable_path(self, package_name: str) -> Path | None:
        return None


def _entry(
    name: str,
    *,
    version: str = "2.44.0",
    previous: str = "2.43.0",
    operation: OperationType = OperationType.UPGRADE,
    success: bool = True,
    source: PackageSource = PackageSource.WINGET,
) -> HistoryEntry:
    return HistoryEntry(
        timestamp="2026-03-30T10:00:00+00:00",
        package_name=name,
        version=version,
        previous_version=previous,
        source=source,
        operation=operation,
        success=success,
        error_message="" if success else "Installer failed",
    )


@pytest.fixture
def ledger(tmp_path: Path) -> HistoryLedger:
    """Create a HistoryLedger backed by a temporary file."""
    return HistoryLedger(tmp_path / "history.json")


def _target(name: str = "Git.Git") -> RollbackTarget:
    return RollbackTarget(
        package_name=name,
        source=PackageSource.WINGET,
        version="2.44.0",
        previous_version="2.43.0",
        timestamp="2026-03-30T10:00:00+00:00",
    )


class TestFindRollbackTargets:
    """Tests for find_rollback_targets()."""

    def test_empty_history(self, ledger: HistoryLedger) -> None:
        """No history means nothing to roll back."""
        assert find_rollback_targets(ledger) == []

    def test_latest_upgrade_per_package(self, ledger: HistoryLedger) -> None:
        """Only the newest upgrade of a package is a target, newest package first."""
        ledger.append(_entry("Git.Git", version="2.43.0", previous="2.42.0"))
        ledger.append(_entry("Mozilla.Firefox", version="129.0", previous="128.0"))
        ledger.append(_entry("Git.Git", version="2.44.0", previous="2.43.0"))

        targets = find_rollback_targets(ledger)

        assert [(t.package_name, t.previous_version) for t in targets] == [
            ("Git.Git", "2.43.0"),
            ("Mozilla.Firefox", "128.0"),
        ]

    def test_rolled_back_upgrade_excluded(self, ledger: HistoryLedger) -> None:
        """An upgrade followed by a successful rollback is not offered again."""
        ledger.append(_entry("Git.Git"))
        ledger.append(
            _entry(
                "Git.Git", version="2.43.0", previous="2.44.0", operation=OperationType.ROLLBACK
            )
        )
        assert find_rollback_targets(ledger) == []

    def test_failed_entries_ignored(self, ledger: HistoryLedger) -> None:
        """Failed upgrades and failed rollbacks do not count."""
        ledger.append(_entry("Git.Git"))
        ledger.append(_entry("Git.Git", operation=OperationType.ROLLBACK, success=False))
        ledger.append(_entry("vlc", success=False))

        assert [t.package_name for t in find_rollback_targets(ledger)] == ["Git.Git"]

    def test_unknown_previous_version_skipped(self, ledger: HistoryLedger) -> None:
        """Upgrades without a recorded previous version cannot be rolled back."""
        ledger.append(_entry("7zip.7zip", previous="Unknown"))
        ledger.append(_entry("Git.Git", operation=OperationType.SCAN))
        assert find_rollback_targets(ledger) == []

    def test_filter_applies(self, ledger: HistoryLedger) -> None:
        """Package pattern and source restrict the targets."""
        ledger.append(_entry("Mozilla.Firefox"))
        ledger.append(_entry("Git.Git"))
        ledger.append(_entry("googlechrome", source=PackageSource.CHOCOLATEY))

        targets = find_rollback_targets(
            ledger, HistoryFilter(package_name="mozilla.*", source=PackageSource.WINGET)
        )

        assert [t.package_name for t in targets] == ["Mozilla.Firefox"]


class TestRollbackRunner:
    """Tests for RollbackRunner."""

    def test_rollback_installs_previous_version(self, ledger: HistoryLedger) -> None:
        """The previous version is installed and a Rollback entry recorded."""
        backend = MockBackend()
        runner = RollbackRunner(ledger, {PackageSource.WINGET: backend})

        result = runner.rollback(_target())

        assert result.success is True
        assert backend.installed == [("Git.Git", "2.43.0")]
        [entry] = ledger.query()
        assert entry.operation == OperationType.ROLLBACK
        assert entry.success is True
        assert entry.version == "2.43.0"
        assert entry.previous_version == "2.44.0"

    def test_failed_rollback_recorded(self, ledger: HistoryLedger) -> None:
        """A failed install is recorded as a failed Rollback."""
        runner = RollbackRunner(ledger, {PackageSource.WINGET: MockBackend(fail={"Git.Git"})})

        result = runner.rollback(_target())

        assert result.success is False
        [entry] = ledger.query()
        assert entry.success is False
        assert entry.version == "2.44.0"
        assert "1603" in entry.error_message

    def test_unavailable_backend_is_a_failure(self, ledger: HistoryLedger) -> None:
        """A missing package manager fails the rollback without raising."""
        runner = RollbackRunner(ledger, {PackageSource.WINGET: MockBackend(available=False)})

        result = runner.rollback(_target())

        assert result.success is False
        assert result.operation == OperationType.ROLLBACK
        assert "not available" in (result.error or "")

    def test_missing_backend_is_a_failure(self, ledger: HistoryLedger) -> None:
        """A target whose source has no backend fails."""
        result = RollbackRunner(ledger, {}).rollback(_target())
        assert result.success is False
        assert ledger.query()[0].success is False

    def test_history_disabled(self, ledger: HistoryLedger) -> None:
        """record_history=False leaves the ledger untouched."""
        runner = RollbackRunner(ledger, {PackageSource.WINGET: MockBackend()}, record_history=False)
        runner.rollback(_target())
        assert ledger.query() == []

    def test_batch_continues_past_failures(self, ledger: HistoryLedger) -> None:
        """Every target is attempted even after a failure."""
        backend = MockBackend(fail={"Git.Git"})
        runner = RollbackRunner(ledger, {PackageSource.WINGET: backend})

        results = runner.rollback_all([_target("Git.Git"), _target("Mozilla.Firefox")])

        assert [r.success for r in results] == [False, True]
        assert [name for name, _ in backend.installed] == ["Git.Git", "Mozilla.Firefox"]

    def test_declined_targets_skipped(self, ledger: HistoryLedger) -> None:
        """Targets the confirmation rejects are not rolled back."""
        backend = MockBackend()
        runner = RollbackRunner(ledger, {PackageSource.WINGET: backend})

        results = runner.rollback_all(
            [_target("Git.Git"), _target("Mozilla.Firefox")],
            confirm=lambda target: target.package_name == "Mozilla.Firefox",
        )

        assert len(results) == 1
        assert backend.installed == [("Mozilla.Firefox", "2.43.0")]
