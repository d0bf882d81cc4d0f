"""Version cache models.

This module defines the cached (source, package, version) record, the
change classification produced by the differential comparator and the
cache statistics summary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from winupctl.models.package import PackageSource, UpgradablePackage

NOT_AVAILABLE = "N/A"


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """Last-seen version of a package for one source.

    Attributes:
        source: Update source the package belongs to.
        package_name: Package identifier, unique within the source.
        version: Last-seen version string (opaque, compared for equality only).
        last_updated: ISO 8601 timestamp of the last sighting.
    """

    source: PackageSource
    package_name: str
    version: str
    last_updated: str

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted package item shape."""
        return {
            "Name": self.package_name,
            "Version": self.version,
            "LastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, source: PackageSource, data: dict[str, Any]) -> CacheEntry:
        """Deserialize a persisted package item.

        Raises:
            KeyError: If Name is missing.
        """
        return cls(
            source=source,
            package_name=data["Name"],
            version=str(data.get("Version") or ""),
            last_updated=str(data.get("LastUpdated") or ""),
        )


class ChangeType(str, Enum):
    """Classification of a package relative to the version cache.

    Attributes:
        NEW: Package has never been seen for this source.
        UPDATED: Package was seen before with a different version string.
    """

    NEW = "New"
    UPDATED = "Updated"


@dataclass(frozen=True, slots=True)
class PackageChange:
    """A package that differs from the version cache.

    Attributes:
        package: The package as reported by the source.
        change_type: Whether the package is new or updated.
        previous_version: Cached version, or "N/A" for new packages.
        version: The version that was compared against the cache.
    """

    package: UpgradablePackage
    change_type: ChangeType
    previous_version: str
    version: str

    @property
    def name(self) -> str:
        """Package identifier."""
        return self.package.name

    @property
    def source(self) -> PackageSource:
        """Update source of the package."""
        return self.package.source

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "name": self.name,
            "source": self.source.value,
            "change": self.change_type.value,
            "installed_version": self.package.version,
            "available_version": self.package.available_version,
            "previous_version": self.previous_version,
            "version": self.version,
        }


@dataclass(frozen=True, slots=True)
class CacheStatistics:
    """Summary of the persisted version cache.

    Attributes:
        last_updated: Document-level LastUpdated timestamp.
        age_hours: Hours since last_updated (negative only on clock skew).
        age_days: Days since last_updated.
        per_source: Number of cached packages per source.
    """

    last_updated: str
    age_hours: float
    age_days: float
    per_source: dict[PackageSource, int] = field(default_factory=lambda: {})

    @property
    def total(self) -> int:
        """Total number of cached packages across all sources."""
        return sum(self.per_source.values())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "last_updated": self.last_updated,
            "age_hours": round(self.age_hours, 2),
            "age_days": round(self.age_days, 2),
            "per_source": {source.value: count for source, count in self.per_source.items()},
            "total": self.total,
        }
