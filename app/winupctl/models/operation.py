"""Operation models for backend package actions.

This module defines the result of invoking a backend command
(install, upgrade, uninstall) for a single package, and the aggregate
outcome of one package in an update run.
"""

from dataclasses import dataclass

from winupctl.models.cache import PackageChange
from winupctl.models.history import OperationType
from winupctl.models.package import PackageSource, UpgradablePackage
from winupctl.models.priority import PriorityTier
from winupctl.models.validation import SecurityValidationResult, UpdateValidationResult


@dataclass(frozen=True, slots=True)
class OperationResult:
    """Result of executing a backend operation for one package.

    Attributes:
        package: Package identifier that was operated on.
        source: Update source that handled the package.
        operation: Type of operation performed.
        success: Whether the backend reported success.
        message: Optional success message or additional information.
        error: Error message if the operation failed.
        exit_code: Exit code of the backend command, if it ran.
        dry_run: Whether the command was only simulated.
    """

    package: str
    source: PackageSource
    operation: OperationType
    success: bool
    message: str | None = None
    error: str | None = None
    exit_code: int | None = None
    dry_run: bool = False

    @property
    def failed(self) -> bool:
        """Check if the operation failed."""
        return not self.success


@dataclass(frozen=True, slots=True)
class UpdateOutcome:
    """Everything that happened to one package during an update run.

    Attributes:
        package: The package as listed by the backend.
        tier: Priority tier it was processed in.
        operation: Backend upgrade result.
        change: Differential classification, None when differential
            updates are disabled.
        validation: Post-update validation, None if the upgrade failed or
            was simulated.
        security: Security validation, None if the upgrade failed, was
            simulated or security validation is disabled.
        success: Overall verdict. Validation failures only count when
            fail_on_validation_error is set.
    """

    package: UpgradablePackage
    tier: PriorityTier
    operation: OperationResult
    success: bool
    change: PackageChange | None = None
    validation: UpdateValidationResult | None = None
    security: SecurityValidationResult | None = None

    @property
    def validation_failed(self) -> bool:
        """Check if either validation ran and failed."""
        return any(
            result is not None and not result.success
            for result in (self.validation, self.security)
        )
