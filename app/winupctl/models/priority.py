"""Priority configuration models.

This module defines the priority tiers, the ordering strategies and the
Pydantic model for the persisted priority configuration document. Field
aliases match the document's PascalCase keys.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field

from winupctl.models.package import PackageSource, UpgradablePackage


class PriorityTier(str, Enum):
    """Priority classification controlling update order.

    Attributes:
        CRITICAL: Updated first (rank 1).
        HIGH: Rank 2.
        NORMAL: Default for unlisted packages (rank 3).
        LOW: Rank 4.
        DEFERRED: Updated last (rank 5).
    """

    CRITICAL = "Critical"
    HIGH = "High"
    NORMAL = "Normal"
    LOW = "Low"
    DEFERRED = "Deferred"

    @property
    def rank(self) -> int:
        """Numeric sort rank (lower updates first)."""
        return _TIER_RANKS[self]

    @classmethod
    def parse(cls, value: str) -> PriorityTier:
        """Convert a user-supplied string to a PriorityTier (case-insensitive).

        Raises:
            ValueError: If the value names no known tier.
        """
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        valid = ", ".join(m.value for m in cls)
        msg = f"Unknown priority tier '{value}' (expected one of: {valid})"
        raise ValueError(msg)


_TIER_RANKS: dict[PriorityTier, int] = {
    PriorityTier.CRITICAL: 1,
    PriorityTier.HIGH: 2,
    PriorityTier.NORMAL: 3,
    PriorityTier.LOW: 4,
    PriorityTier.DEFERRED: 5,
}

# Tiers backed by a package list, in classification precedence order.
LISTED_TIERS: tuple[PriorityTier, ...] = (
    PriorityTier.CRITICAL,
    PriorityTier.HIGH,
    PriorityTier.LOW,
    PriorityTier.DEFERRED,
)


class OrderingStrategy(str, Enum):
    """Secondary ordering applied within a priority tier."""

    PRIORITY_ONLY = "PriorityOnly"
    PRIORITY_THEN_ALPHABETICAL = "PriorityThenAlphabetical"
    PRIORITY_THEN_REVERSE_ALPHABETICAL = "PriorityThenReverseAlphabetical"


class SourcePackageLists(BaseModel):
    """Package identifiers of one tier, keyed by source.

    Attributes:
        winget: Winget package identifiers.
        chocolatey: Chocolatey package identifiers.
        store: Microsoft Store product identifiers.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    winget: Annotated[list[str], Field(default_factory=list, alias="Winget")]
    chocolatey: Annotated[list[str], Field(default_factory=list, alias="Chocolatey")]
    store: Annotated[list[str], Field(default_factory=list, alias="Store")]

    def for_source(self, source: PackageSource) -> list[str]:
        """Return the (mutable) list of identifiers for a source."""
        if source == PackageSource.WINGET:
            return self.winget
        if source == PackageSource.CHOCOLATEY:
            return self.chocolatey
        return self.store


class PriorityConfig(BaseModel):
    """Persisted priority configuration.

    A package absent from every list is classified Normal. Membership in
    several tiers is not rejected; classification takes the highest tier.

    Attributes:
        critical: Packages updated before everything else.
        high: High priority packages.
        low: Low priority packages.
        deferred: Packages updated last.
        enable_priority_ordering: When False every package is Normal.
        ordering_strategy: Secondary ordering within a tier.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    critical: Annotated[
        SourcePackageLists,
        Field(default_factory=SourcePackageLists, alias="CriticalPackages"),
    ]
    high: Annotated[
        SourcePackageLists,
        Field(default_factory=SourcePackageLists, alias="HighPriorityPackages"),
    ]
    low: Annotated[
        SourcePackageLists,
        Field(default_factory=SourcePackageLists, alias="LowPriorityPackages"),
    ]
    deferred: Annotated[
        SourcePackageLists,
        Field(default_factory=SourcePackageLists, alias="DeferredPackages"),
    ]
    enable_priority_ordering: Annotated[
        bool,
        Field(alias="EnablePriorityOrdering", description="Apply tier ordering"),
    ] = True
    ordering_strategy: Annotated[
        OrderingStrategy,
        Field(alias="OrderingStrategy", description="Ordering within a tier"),
    ] = OrderingStrategy.PRIORITY_THEN_ALPHABETICAL

    def tier_lists(self, tier: PriorityTier) -> SourcePackageLists:
        """Return the package lists backing a tier.

        Raises:
            ValueError: For the Normal tier, which has no list.
        """
        if tier == PriorityTier.CRITICAL:
            return self.critical
        if tier == PriorityTier.HIGH:
            return self.high
        if tier == PriorityTier.LOW:
            return self.low
        if tier == PriorityTier.DEFERRED:
            return self.deferred
        msg = "Normal tier has no package list"
        raise ValueError(msg)

    def packages_for(self, tier: PriorityTier, source: PackageSource) -> list[str]:
        """Return the identifiers listed for a tier and source."""
        return self.tier_lists(tier).for_source(source)

    def to_document(self) -> dict[str, object]:
        """Serialize to the persisted document shape (PascalCase keys)."""
        return self.model_dump(by_alias=True, mode="json")


@dataclass(frozen=True, slots=True)
class PrioritizedPackage:
    """A package paired with its priority tier.

    Attributes:
        package: The package being ordered.
        tier: Priority tier assigned by classification.
    """

    package: UpgradablePackage
    tier: PriorityTier

    @property
    def rank(self) -> int:
        """Numeric rank of the tier."""
        return self.tier.rank
