"""Differential comparison of package listings against the version cache.

This module provides the DifferentialComparator, which classifies each
package of a listing as New or Updated relative to the VersionCache and
omits unchanged packages. Version strings are compared through a
VersionComparator; the default compares raw strings for equality, which
reports cosmetic version differences as changes rather than missing real
ones.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from winupctl.models.cache import NOT_AVAILABLE, ChangeType, PackageChange

if TYPE_CHECKING:
    from winupctl.core.cache import VersionCache
    from winupctl.models.package import PackageSource, UpgradablePackage

logger = logging.getLogger(__name__)


class VersionComparator(ABC):
    """Decides whether a cached version differs from a current one."""

    @abstractmethod
    def is_changed(self, cached: str, current: str) -> bool:
        """Return True if current should be reported as a change from cached."""


class OrdinalVersionComparator(VersionComparator):
    """Exact, case-sensitive string comparison (no version parsing)."""

    def is_changed(self, cached: str, current: str) -> bool:
        return cached != current


def installed_version(package: UpgradablePackage) -> str:
    """Version key: the currently installed version."""
    return package.version


def target_version(package: UpgradablePackage) -> str:
    """Version key: the version the package will be upgraded to."""
    return package.target_version


class DifferentialComparator:
    """Classifies packages against the version cache.

    Example:
        >>> comparator = DifferentialComparator(VersionCache())
        >>> changes = comparator.compare(packages, PackageSource.WINGET)
        >>> for change in changes:
        ...     print(change.name, change.change_type.value, change.previous_version)
    """

    def __init__(
        self,
        cache: VersionCache,
        comparator: VersionComparator | None = None,
    ) -> None:
        """Initialize the comparator.

        Args:
            cache: Version cache to compare against.
            comparator: Version comparison policy. Defaults to ordinal.
        """
        self.cache = cache
        self.comparator = comparator or OrdinalVersionComparator()

    def compare(
        self,
        packages: Sequence[UpgradablePackage],
        source: PackageSource,
        version_key: Callable[[UpgradablePackage], str] = installed_version,
    ) -> list[PackageChange]:
        """Return the packages that are new or changed since the last sighting.

        Args:
            packages: Current listing for the source.
            source: Source the listing came from.
            version_key: Selects which version of a package is compared.

        Returns:
            PackageChange for each new or updated package, in input order.
            Unchanged packages are omitted.
        """
        cached = {entry.package_name: entry for entry in self.cache.load(source) or []}

        changes: list[PackageChange] = []
        for package in packages:
            version = version_key(package)
            entry = cached.get(package.name)

            if entry is None:
                changes.append(
                    PackageChange(
                        package=package,
                        change_type=ChangeType.NEW,
                        previous_version=NOT_AVAILABLE,
                        version=version,
                    )
                )
            elif self.comparator.is_changed(entry.version, version):
                changes.append(
                    PackageChange(
                        package=package,
                        change_type=ChangeType.UPDATED,
                        previous_version=entry.version,
                        version=version,
                    )
                )

        logger.info(
            "%s: %d of %d package(s) changed since last run",
            source.value,
            len(changes),
            len(packages),
        )
        return changes

    def update_cache(
        self,
        packages: Sequence[UpgradablePackage],
        source: PackageSource,
        version_key: Callable[[UpgradablePackage], str] = installed_version,
    ) -> int:
        """Record every package's version in the cache.

        Returns:
            Number of packages written successfully.
        """
        written = 0
        for package in packages:
            if self.cache.upsert(source, package.name, version_key(package)):
                written += 1
        return written
