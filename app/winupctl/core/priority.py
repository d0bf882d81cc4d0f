"""Priority classification, ordering and configuration storage.

Packages are classified into tiers from the priority configuration and
updated in tier order. Classification checks Critical, High, Low and
Deferred lists in that fixed order and the first match wins, so a package
listed in two tiers gets the higher one.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from winupctl.core.paths import get_priority_config_path
from winupctl.core.storage import DocumentError, read_json_document, write_json_document
from winupctl.models.package import PackageSource, UpgradablePackage
from winupctl.models.priority import (
    LISTED_TIERS,
    OrderingStrategy,
    PrioritizedPackage,
    PriorityConfig,
    PriorityTier,
)

logger = logging.getLogger(__name__)


class PriorityConfigError(Exception):
    """Raised when the priority configuration is malformed or unwritable."""


def classify(package_name: str, source: PackageSource, config: PriorityConfig) -> PriorityTier:
    """Determine the priority tier of a package.

    Args:
        package_name: Package identifier (exact match against the lists).
        source: Update source of the package.
        config: Priority configuration.

    Returns:
        The first tier (Critical, High, Low, Deferred) listing the package,
        or Normal. Always Normal when priority ordering is disabled.
    """
    if not config.enable_priority_ordering:
        return PriorityTier.NORMAL

    for tier in LISTED_TIERS:
        if package_name in config.packages_for(tier, source):
            return tier
    return PriorityTier.NORMAL


def sort_packages(
    packages: Sequence[UpgradablePackage],
    source: PackageSource,
    config: PriorityConfig,
    strategy: OrderingStrategy | None = None,
) -> list[PrioritizedPackage]:
    """Order packages by priority tier and a secondary key.

    All sorts are stable: packages with equal keys keep their input order.

    Args:
        packages: Packages to order.
        source: Update source of the packages.
        config: Priority configuration.
        strategy: Secondary ordering. Defaults to config.ordering_strategy.

    Returns:
        PrioritizedPackage list in update order.
    """
    strategy = strategy or config.ordering_strategy
    prioritized = [
        PrioritizedPackage(package=p, tier=classify(p.name, source, config)) for p in packages
    ]

    if strategy == OrderingStrategy.PRIORITY_THEN_ALPHABETICAL:
        prioritized.sort(key=lambda p: (p.rank, p.package.name.casefold()))
    elif strategy == OrderingStrategy.PRIORITY_THEN_REVERSE_ALPHABETICAL:
        # Two stable passes keep input order for identical names
        prioritized.sort(key=lambda p: p.package.name.casefold(), reverse=True)
        prioritized.sort(key=lambda p: p.rank)
    else:
        prioritized.sort(key=lambda p: p.rank)

    logger.debug(
        "Ordered %d %s package(s) using %s",
        len(prioritized),
        source.value,
        strategy.value,
    )
    return prioritized


class PriorityStore:
    """Loads and rewrites the priority configuration document.

    Storage location: <config dir>/priority.json

    Every mutation loads the whole document, changes it in memory and
    writes the whole document back.
    """

    def __init__(self, path: Path | None = None) -> None:
        """Initialize PriorityStore.

        Args:
            path: Optional override for the document location.
        """
        self._path = path if path is not None else get_priority_config_path()

    @property
    def path(self) -> Path:
        """Path to the priority configuration document."""
        return self._path

    def load(self) -> PriorityConfig:
        """Load the priority configuration.

        A missing document is created with defaults.

        Returns:
            Validated PriorityConfig.

        Raises:
            PriorityConfigError: If the document is corrupt or doesn't match
                the schema (unknown keys included).
        """
        if not self._path.exists():
            config = PriorityConfig()
            self.save(config)
            return config

        data = read_json_document(self._path)
        if data is None:
            msg = f"Priority configuration {self._path} is empty or not valid JSON"
            raise PriorityConfigError(msg)

        try:
            return PriorityConfig.model_validate(data)
        except ValidationError as e:
            msg = f"Invalid priority configuration {self._path}: {e}"
            raise PriorityConfigError(msg) from e

    def save(self, config: PriorityConfig) -> Path:
        """Write the whole priority configuration document.

        Raises:
            PriorityConfigError: If the document cannot be written.
        """
        try:
            return write_json_document(self._path, config.to_document())
        except DocumentError as e:
            raise PriorityConfigError(str(e)) from e

    def add_to_tier(self, package_name: str, source: PackageSource, tier: PriorityTier) -> bool:
        """Add a package to a tier.

        Membership in other tiers is not checked.

        Args:
            package_name: Package identifier.
            source: Update source of the package.
            tier: Target tier (Normal is not a listed tier and is rejected).

        Returns:
            True if added and persisted; False if already present in that
            tier/source, if the tier is Normal, or on load/write failure.
        """
        if tier == PriorityTier.NORMAL:
            logger.warning(
                "Cannot add %s to Normal tier; remove it from all tiers instead",
                package_name,
            )
            return False

        try:
            config = self.load()
            packages = config.packages_for(tier, source)
            if package_name in packages:
                logger.info("%s is already %s for %s", package_name, tier.value, source.value)
                return False
            packages.append(package_name)
            self.save(config)
        except PriorityConfigError as e:
            logger.error("Failed to add %s to %s tier: %s", package_name, tier.value, e)
            return False

        logger.info("Added %s (%s) to %s tier", package_name, source.value, tier.value)
        return True

    def remove_from_all_tiers(self, package_name: str, source: PackageSource) -> bool:
        """Remove a package from every tier of a source.

        Returns:
            True if the package was removed from at least one tier (and the
            document was rewritten), False otherwise.
        """
        try:
            config = self.load()
            removed_from: list[str] = []
            for tier in LISTED_TIERS:
                packages = config.packages_for(tier, source)
                if package_name in packages:
                    packages[:] = [name for name in packages if name != package_name]
                    removed_from.append(tier.value)

            if not removed_from:
                logger.info("%s is not in any priority tier for %s", package_name, source.value)
                return False

            self.save(config)
        except PriorityConfigError as e:
            logger.error("Failed to remove %s from priority tiers: %s", package_name, e)
            return False

        logger.info(
            "Removed %s (%s) from tier(s): %s",
            package_name,
            source.value,
            ", ".join(removed_from),
        )
        return True
