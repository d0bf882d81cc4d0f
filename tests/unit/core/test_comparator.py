"""Unit tests for the differential comparator.

Tests for classifying listings against the version cache.
"""

from pathlib import Path

import pytest
from winupctl.core.cache import VersionCache
from winupctl.core.comparator import (
    DifferentialComparator,
    OrdinalVersionComparator,
    target_version,
)
from winupctl.models.cache import NOT_AVAILABLE, ChangeType
from winupctl.models.package import PackageSource, UpgradablePackage


def _pkg(name: str, version: str, available: str | None = None) -> UpgradablePackage:
    return UpgradablePackage(
        name=name,
        version=version,
        source=PackageSource.WINGET,
        available_version=available,
    )


@pytest.fixture
def cache(tmp_path: Path) -> VersionCache:
    """Create an empty VersionCache."""
    return VersionCache(tmp_path / "version-cache.json")


class TestOrdinalVersionComparator:
    """Tests for OrdinalVersionComparator."""

    def test_equal_strings_unchanged(self) -> None:
        """Identical strings are not a change."""
        assert OrdinalVersionComparator().is_changed("1.0", "1.0") is False

    def test_cosmetic_difference_is_change(self) -> None:
        """Strings are compared exactly, so 1.0 and 1.0.0 differ."""
        assert OrdinalVersionComparator().is_changed("1.0", "1.0.0") is True
        assert OrdinalVersionComparator().is_changed("v1", "V1") is True


class TestDifferentialComparator:
    """Tests for DifferentialComparator."""

    def test_everything_new_on_empty_cache(self, cache: VersionCache) -> None:
        """Uncached packages are New with previous version N/A."""
        changes = DifferentialComparator(cache).compare(
            [_pkg("Git.Git", "2.43.0"), _pkg("Mozilla.Firefox", "128.0")],
            PackageSource.WINGET,
        )
        assert [c.name for c in changes] == ["Git.Git", "Mozilla.Firefox"]
        assert all(c.change_type == ChangeType.NEW for c in changes)
        assert all(c.previous_version == NOT_AVAILABLE for c in changes)

    def test_unchanged_packages_omitted(self, cache: VersionCache) -> None:
        """Packages matching the cached version are dropped."""
        cache.upsert(PackageSource.WINGET, "Git.Git", "2.43.0")
        changes = DifferentialComparator(cache).compare(
            [_pkg("Git.Git", "2.43.0")], PackageSource.WINGET
        )
        assert changes == []

    def test_changed_version_is_updated(self, cache: VersionCache) -> None:
        """A different version string is Updated with the cached previous version."""
        cache.upsert(PackageSource.WINGET, "Git.Git", "2.43.0")
        changes = DifferentialComparator(cache).compare(
            [_pkg("Git.Git", "2.44.0")], PackageSource.WINGET
        )
        assert len(changes) == 1
        assert changes[0].change_type == ChangeType.UPDATED
        assert changes[0].previous_version == "2.43.0"
        assert changes[0].version == "2.44.0"

    def test_mixed_listing_keeps_input_order(self, cache: VersionCache) -> None:
        """New and Updated packages are reported in listing order."""
        cache.upsert(PackageSource.WINGET, "B.Pkg", "1.0")
        cache.upsert(PackageSource.WINGET, "C.Pkg", "1.0")
        changes = DifferentialComparator(cache).compare(
            [_pkg("C.Pkg", "2.0"), _pkg("A.Pkg", "1.0"), _pkg("B.Pkg", "1.0")],
            PackageSource.WINGET,
        )
        assert [(c.name, c.change_type) for c in changes] == [
            ("C.Pkg", ChangeType.UPDATED),
            ("A.Pkg", ChangeType.NEW),
        ]

    def test_other_source_not_consulted(self, cache: VersionCache) -> None:
        """A cache entry of another source does not match."""
        cache.upsert(PackageSource.CHOCOLATEY, "Git.Git", "2.43.0")
        changes = DifferentialComparator(cache).compare(
            [_pkg("Git.Git", "2.43.0")], PackageSource.WINGET
        )
        assert [c.change_type for c in changes] == [ChangeType.NEW]

    def test_target_version_key(self, cache: VersionCache) -> None:
        """With target_version, the available version is compared."""
        cache.upsert(PackageSource.WINGET, "Git.Git", "2.44.0")
        comparator = DifferentialComparator(cache)
        listing = [_pkg("Git.Git", "2.43.0", "2.44.0")]

        assert comparator.compare(listing, PackageSource.WINGET, target_version) == []
        assert len(comparator.compare(listing, PackageSource.WINGET)) == 1

    def test_unreadable_cache_reports_everything_new(
        self, cache: VersionCache, tmp_path: Path
    ) -> None:
        """A corrupt cache behaves like an empty one."""
        (tmp_path / "version-cache.json").write_text("{")
        changes = DifferentialComparator(cache).compare(
            [_pkg("Git.Git", "2.43.0")], PackageSource.WINGET
        )
        assert [c.change_type for c in changes] == [ChangeType.NEW]

    def test_update_cache(self, cache: VersionCache) -> None:
        """update_cache() records every package and makes it unchanged."""
        comparator = DifferentialComparator(cache)
        listing = [_pkg("Git.Git", "2.43.0"), _pkg("Mozilla.Firefox", "128.0")]

        assert comparator.update_cache(listing, PackageSource.WINGET) == 2
        assert comparator.compare(listing, PackageSource.WINGET) == []
