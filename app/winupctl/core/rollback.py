"""Rollback of recorded upgrades.

A package can be rolled back when its most recent successful Upgrade or
Rollback entry in the history is an Upgrade that recorded the version it
replaced. Rolling back reinstalls that previous version and appends a
Rollback entry, so a package is never rolled back twice for one upgrade.
"""

import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from winupctl.core.history import HistoryFilter, HistoryLedger
from winupctl.models.history import UNKNOWN_VERSION, HistoryEntry, OperationType
from winupctl.models.operation import OperationResult
from winupctl.models.package import PackageSource
from winupctl.sources.base import PackageBackend

logger = logging.getLogger(__name__)

_REVERSIBLE = (OperationType.UPGRADE, OperationType.ROLLBACK)


@dataclass(frozen=True, slots=True)
class RollbackTarget:
    """A recorded upgrade that can be reverted.

    Attributes:
        package_name: Package identifier.
        source: Update source that performed the upgrade.
        version: Version the upgrade installed.
        previous_version: Version to reinstall.
        timestamp: When the upgrade was recorded.
    """

    package_name: str
    source: PackageSource
    version: str
    previous_version: str
    timestamp: str

    @classmethod
    def from_entry(cls, entry: HistoryEntry) -> "RollbackTarget":
        return cls(
            package_name=entry.package_name,
            source=entry.source,
            version=entry.version,
            previous_version=entry.previous_version,
            timestamp=entry.timestamp,
        )


def find_rollback_targets(
    ledger: HistoryLedger,
    history_filter: HistoryFilter | None = None,
) -> list[RollbackTarget]:
    """Find upgrades that can still be rolled back, most recent first.

    Args:
        ledger: History to search.
        history_filter: Restricts the entries considered (package pattern,
            source, days). Operation and success criteria are ignored.

    Returns:
        One target per (source, package), newest upgrade first.
    """
    history_filter = history_filter or HistoryFilter()
    history_filter = HistoryFilter(
        package_name=history_filter.package_name,
        source=history_filter.source,
        days=history_filter.days,
        success=True,
    )

    latest: dict[tuple[PackageSource, str], tuple[int, HistoryEntry]] = {}
    for index, entry in enumerate(ledger.query(history_filter)):
        if entry.operation in _REVERSIBLE:
            latest[(entry.source, entry.package_name.casefold())] = (index, entry)

    targets: list[RollbackTarget] = []
    for _, entry in sorted(latest.values(), key=lambda item: item[0], reverse=True):
        if entry.operation != OperationType.UPGRADE:
            continue
        if entry.previous_version in ("", UNKNOWN_VERSION):
            logger.debug("No previous version recorded for %s", entry.package_name)
            continue
        targets.append(RollbackTarget.from_entry(entry))
    return targets


class RollbackRunner:
    """Reinstalls previous versions and records the outcome.

    Attributes:
        ledger: History the Rollback entries are appended to.
        backends: Backend per source.
        record_history: Whether Rollback entries are written.
    """

    def __init__(
        self,
        ledger: HistoryLedger,
        backends: Mapping[PackageSource, PackageBackend],
        record_history: bool = True,
    ) -> None:
        self.ledger = ledger
        self.backends = dict(backends)
        self.record_history = record_history

    def rollback(self, target: RollbackTarget) -> OperationResult:
        """Reinstall the previous version of one package.

        Failures are returned in the result; nothing is raised.
        """
        backend = self.backends.get(target.source)
        if backend is None:
            result = OperationResult(
                package=target.package_name,
                source=target.source,
                operation=OperationType.ROLLBACK,
                success=False,
                error=f"No {target.source.value} backend selected",
            )
        else:
            logger.info(
                "Rolling back %s (%s) from %s to %s",
                target.package_name,
                target.source.value,
                target.version,
                target.previous_version,
            )
            try:
                result = backend.install(target.package_name, version=target.previous_version)
            except RuntimeError as e:
                result = OperationResult(
                    package=target.package_name,
                    source=target.source,
                    operation=OperationType.ROLLBACK,
                    success=False,
                    error=str(e),
                )

        if result.failed:
            logger.warning("Rollback of %s failed: %s", target.package_name, result.error)

        if self.record_history and not result.dry_run:
            self.ledger.record(
                package_name=target.package_name,
                version=target.previous_version if result.success else target.version,
                source=target.source,
                operation=OperationType.ROLLBACK,
                success=result.success,
                previous_version=target.version,
                error_message=result.error or "Rollback failed",
            )
        return result

    def rollback_all(
        self,
        targets: Sequence[RollbackTarget],
        confirm: Callable[[RollbackTarget], bool] | None = None,
    ) -> list[OperationResult]:
        """Roll back several packages, continuing past failures.

        Args:
            targets: Packages to roll back, in order.
            confirm: Asked before each rollback; a False answer skips the
                package. None rolls back every target.

        Returns:
            Results for the packages that were attempted.
        """
        results: list[OperationResult] = []
        for target in targets:
            if confirm is not None and not confirm(target):
                logger.info("Skipped rollback of %s", target.package_name)
                continue
            results.append(self.rollback(target))
        return results
