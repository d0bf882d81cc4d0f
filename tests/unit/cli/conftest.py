"""Fixtures shared by the CLI command tests."""

from pathlib import Path

import pytest
from winupctl.models.history import OperationType
from winupctl.models.operation import OperationResult
from winupctl.models.package import PackageSource, UpgradablePackage
from winupctl.sources.base import PackageBackend


class FakeWingetBackend(PackageBackend):
    """In-memory winget backend.

    Upgrades succeed and move the installed version to the available one,
    except for packages listed in `fail`. Installs of those packages fail too.
    """

    def __init__(
        self,
        packages: list[UpgradablePackage],
        fail: set[str] | None = None,
        available: bool = True,
    ) -> None:
        super().__init__()
        self.packages = packages
        self.fail = fail or set()
        self.available = available
        self.installed = {p.name: p.version for p in packages}
        self.upgraded: list[str] = []
        self.reinstalled: list[tuple[str, str | None]] = []

    @property
    def source(self) -> PackageSource:
        return PackageSource.WINGET

    def is_available(self) -> bool:
        return self.available

    def list_available_upgrades(self) -> list[UpgradablePackage]:
        return list(self.packages)

    def get_installed_version(self, package_name: str) -> str | None:
        return self.installed.get(package_name)

    def upgrade(self, package_name: str) -> OperationResult:
        self.upgraded.append(package_name)
        success = package_name not in self.fail
        if success:
            for pkg in self.packages:
                if pkg.name == package_name:
                    self.installed[package_name] = pkg.target_version
        return OperationResult(
            package=package_name,
            source=self.source,
            operation=OperationType.UPGRADE,
            success=success,
            error=None if success else "Installer failed with exit code: 1603",
            exit_code=0 if success else 1,
        )

    def install(self, package_name: str, version: str | None = None) -> OperationResult:
        self.reinstalled.append((package_name, version))
        success = package_name not in self.fail
        if success and version:
            self.installed[package_name] = version
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


@pytest.fixture
def upgradable() -> list[UpgradablePackage]:
    """Two upgradable winget packages."""
    return [
        UpgradablePackage(
            name="Mozilla.Firefox",
            version="128.0",
            source=PackageSource.WINGET,
            available_version="129.0.1",
        ),
        UpgradablePackage(
            name="Git.Git",
            version="2.43.0",
            source=PackageSource.WINGET,
            available_version="2.44.0",
        ),
    ]


@pytest.fixture
def fake_backend(upgradable: list[UpgradablePackage]) -> FakeWingetBackend:
    """Available fake winget backend listing the upgradable packages."""
    return FakeWingetBackend(upgradable)


@pytest.fixture
def unavailable_backend() -> FakeWingetBackend:
    """Fake winget backend whose package manager is not installed."""
    return FakeWingetBackend([], available=False)


@pytest.fixture
def failing_backend(upgradable: list[UpgradablePackage]) -> FakeWingetBackend:
    """Fake winget backend whose Git.Git upgrade fails."""
    return FakeWingetBackend(upgradable, fail={"Git.Git"})
