"""Update orchestration across backends.

The UpdateOrchestrator runs the full update pipeline for one backend:

    list upgrades -> differential filter -> priority sort -> upgrade
    -> validate -> security check -> record history -> update cache

Each package is processed independently: a failed upgrade or validation is
recorded and the run moves on to the next package.
"""

import logging

from winupctl.core.cache import VersionCache
from winupctl.core.comparator import DifferentialComparator, target_version
from winupctl.core.hashdb import HashDatabase
from winupctl.core.history import HistoryLedger
from winupctl.core.priority import sort_packages
from winupctl.core.security import SecurityValidator
from winupctl.core.validator import UpdateValidator
from winupctl.models.cache import PackageChange
from winupctl.models.config import AppConfig
from winupctl.models.history import UNKNOWN_VERSION, OperationType
from winupctl.models.operation import OperationResult, UpdateOutcome
from winupctl.models.package import UpgradablePackage
from winupctl.models.priority import OrderingStrategy, PrioritizedPackage, PriorityConfig
from winupctl.models.validation import UpdateValidationRequest
from winupctl.sources.base import PackageBackend

logger = logging.getLogger(__name__)


class UpdateOrchestrator:
    """Coordinates the update pipeline for a backend.

    All collaborators are passed in explicitly; the orchestrator holds no
    global state.
    """

    def __init__(
        self,
        config: AppConfig,
        cache: VersionCache,
        ledger: HistoryLedger,
        priority_config: PriorityConfig,
        hash_db: HashDatabase,
    ) -> None:
        self.config = config
        self.cache = cache
        self.ledger = ledger
        self.priority_config = priority_config
        self.hash_db = hash_db
        self.comparator = DifferentialComparator(cache)

    def scan(self, backend: PackageBackend) -> list[PackageChange]:
        """Report upgradable packages that changed since they were last cached.

        A Scan entry is recorded in the history for every change. The cache
        is not modified; it only advances when an upgrade succeeds.

        Returns:
            Changes in listing order. Empty if the backend could not be listed.
        """
        packages = self._list_upgrades(backend)
        if packages is None:
            return []

        changes = self.comparator.compare(packages, backend.source, version_key=target_version)
        if self.config.history.enabled:
            for change in changes:
                self.ledger.record(
                    package_name=change.name,
                    version=change.version,
                    source=change.source,
                    operation=OperationType.SCAN,
                    success=True,
                    previous_version=change.package.version,
                )
        return changes

    def plan(
        self,
        backend: PackageBackend,
        strategy: OrderingStrategy | None = None,
    ) -> tuple[list[PrioritizedPackage], dict[str, PackageChange]] | None:
        """List, filter and order the packages a run would upgrade.

        Returns:
            Tuple of (ordered packages, changes by package name), or None if
            the backend could not be listed. The change map is empty when
            differential updates are disabled.
        """
        packages = self._list_upgrades(backend)
        if packages is None:
            return None

        changes: dict[str, PackageChange] = {}
        if self.config.cache.differential_updates:
            detected = self.comparator.compare(
                packages, backend.source, version_key=target_version
            )
            changes = {change.name: change for change in detected}
            skipped = len(packages) - len(detected)
            if skipped:
                logger.info(
                    "%s: skipping %d package(s) unchanged since last run",
                    backend.source.value,
                    skipped,
                )
            packages = [change.package for change in detected]

        ordered = sort_packages(packages, backend.source, self.priority_config, strategy)
        return ordered, changes

    def run(
        self,
        backend: PackageBackend,
        dry_run: bool = False,
        strategy: OrderingStrategy | None = None,
    ) -> list[UpdateOutcome]:
        """Upgrade every changed package of a backend in priority order.

        Args:
            backend: Backend to update.
            dry_run: Only report what would be upgraded. Nothing is executed
                and no document is written.
            strategy: Secondary ordering, defaulting to the priority config's.

        Returns:
            One UpdateOutcome per processed package, in processing order.
        """
        planned = self.plan(backend, strategy)
        if planned is None:
            return []
        ordered, changes = planned

        if not ordered:
            logger.info("%s: nothing to update", backend.source.value)
            return []

        backends = {backend.source: backend}
        validator = UpdateValidator(self.config.validation, backends)
        security = SecurityValidator(self.config.security, backends, self.hash_db)

        outcomes: list[UpdateOutcome] = []
        for item in ordered:
            package = item.package
            change = changes.get(package.name)

            if dry_run:
                outcomes.append(
                    UpdateOutcome(
                        package=package,
                        tier=item.tier,
                        operation=OperationResult(
                            package=package.name,
                            source=package.source,
                            operation=OperationType.UPGRADE,
                            success=True,
                            message=f"Dry-run: would upgrade to {package.target_version}",
                            dry_run=True,
                        ),
                        success=True,
                        change=change,
                    )
                )
                continue

            outcome = self._upgrade_one(backend, item, change, validator, security)
            self._record(outcome)
            outcomes.append(outcome)

        succeeded = sum(1 for outcome in outcomes if outcome.success)
        logger.info(
            "%s: %d of %d package(s) updated successfully%s",
            backend.source.value,
            succeeded,
            len(outcomes),
            " (dry-run)" if dry_run else "",
        )
        return outcomes

    def _list_upgrades(self, backend: PackageBackend) -> list[UpgradablePackage] | None:
        try:
            return backend.list_available_upgrades()
        except RuntimeError as e:
            logger.error("Cannot list %s upgrades: %s", backend.source.value, e)
            return None

    def _upgrade_one(
        self,
        backend: PackageBackend,
        item: PrioritizedPackage,
        change: PackageChange | None,
        validator: UpdateValidator,
        security: SecurityValidator,
    ) -> UpdateOutcome:
        package = item.package
        logger.info(
            "Upgrading %s (%s, %s): %s -> %s",
            package.name,
            package.source.value,
            item.tier.value,
            package.version,
            package.target_version,
        )

        try:
            operation = backend.upgrade(package.name)
        except RuntimeError as e:
            operation = OperationResult(
                package=package.name,
                source=package.source,
                operation=OperationType.UPGRADE,
                success=False,
                error=str(e),
            )

        if operation.failed:
            logger.error(
                "Upgrade of %s (%s) failed: %s",
                package.name,
                package.source.value,
                operation.error,
            )
            return UpdateOutcome(
                package=package,
                tier=item.tier,
                operation=operation,
                success=False,
                change=change,
            )

        previous = package.version if package.version != UNKNOWN_VERSION else None
        validation = validator.validate(
            UpdateValidationRequest(
                package_name=package.name,
                source=package.source,
                previous_version=previous,
                expected_version=package.available_version,
            )
        )
        security_result = None
        if self.config.security.enabled:
            security_result = security.validate(
                package.name,
                package.source,
                version=validation.current_version or package.target_version,
            )

        checks_failed = any(
            result is not None and not result.success for result in (validation, security_result)
        )
        return UpdateOutcome(
            package=package,
            tier=item.tier,
            operation=operation,
            success=not (checks_failed and self.config.updates.fail_on_validation_error),
            change=change,
            validation=validation,
            security=security_result,
        )

    def _record(self, outcome: UpdateOutcome) -> None:
        """Write the history entry and, on success, the new cached version."""
        package = outcome.package

        if self.config.history.enabled:
            error = ""
            if outcome.operation.failed:
                error = outcome.operation.error or "Upgrade failed"
            elif not outcome.success:
                error = "; ".join(
                    result.message
                    for result in (outcome.validation, outcome.security)
                    if result is not None and not result.success
                )

            version = package.target_version
            if outcome.validation is not None and outcome.validation.current_version:
                version = outcome.validation.current_version

            self.ledger.record(
                package_name=package.name,
                version=version,
                source=package.source,
                operation=OperationType.UPGRADE,
                success=outcome.success,
                previous_version=package.version,
                error_message=error,
            )

        if outcome.success:
            self.cache.upsert(package.source, package.name, package.target_version)
