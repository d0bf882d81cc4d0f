"""Package models for update sources.

This module defines the core data structures for representing packages
reported by the three update sources (Microsoft Store, Winget, Chocolatey).
"""

from dataclasses import dataclass, field
from enum import Enum


class PackageSource(str, Enum):
    """Enumeration of supported update sources.

    Values are persisted verbatim in every JSON document, so they must
    never change.
    """

    STORE = "Store"
    WINGET = "Winget"
    CHOCOLATEY = "Chocolatey"

    @classmethod
    def parse(cls, value: str) -> "PackageSource":
        """Convert a user-supplied string to a PackageSource.

        Matching is case-insensitive ("winget", "WINGET" and "Winget" are
        all accepted).

        Raises:
            ValueError: If the value names no known source.
        """
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        valid = ", ".join(m.value for m in cls)
        msg = f"Unknown package source '{value}' (expected one of: {valid})"
        raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class UpgradablePackage:
    """A package as reported by a source's listing.

    Attributes:
        name: Package identifier used by the backend (e.g., 'Git.Git',
            'googlechrome', '9WZDNCRFJ3TJ').
        version: Currently installed version string (opaque).
        source: Update source that reported this package.
        available_version: Version the backend would upgrade to, if known.
        display_name: Human-readable name, if the backend reports one.
    """

    name: str
    version: str
    source: PackageSource
    available_version: str | None = field(default=None)
    display_name: str | None = field(default=None)

    def __post_init__(self) -> None:
        """Validate package data after initialization."""
        if not self.name:
            msg = "Package name cannot be empty"
            raise ValueError(msg)
        if not self.version:
            msg = "Package version cannot be empty"
            raise ValueError(msg)

    @property
    def target_version(self) -> str:
        """Version the package will have after upgrading."""
        return self.available_version or self.version

    @property
    def label(self) -> str:
        """Name to show to users (display name when available)."""
        return self.display_name or self.name
