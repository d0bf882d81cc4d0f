"""Post-update validation.

The UpdateValidator confirms that an upgrade actually took effect. Each
validation walks the same sequence and stops at the first failure:

1. Validation disabled: success, method Skipped.
2. Installed version lookup: the package must still be installed.
3. Version change: the version must differ from the previous one
   (when verify_version_change is set and a previous version is known).
4. Expected version: the version must equal the expected one, if given.
5. Health check (when enabled): the configured command must exit 0.
   Packages without a command pass with method NoCheck.
6. Otherwise: success, method Complete.
"""

import logging
import subprocess
from collections.abc import Mapping, Sequence

from winupctl.models.config import ValidationSettings
from winupctl.models.package import PackageSource
from winupctl.models.validation import (
    UpdateValidationRequest,
    UpdateValidationResult,
    ValidationMethod,
)
from winupctl.sources.base import PackageBackend
from winupctl.utils.shell import run_command

logger = logging.getLogger(__name__)

# Captured health-check output kept on the result
_MAX_OUTPUT_CHARS = 4000


class UpdateValidator:
    """Validates packages after an update.

    Attributes:
        settings: Validation settings from the application config.
        backends: Backend per source, used to read installed versions.
    """

    def __init__(
        self,
        settings: ValidationSettings,
        backends: Mapping[PackageSource, PackageBackend],
    ) -> None:
        self.settings = settings
        self.backends = dict(backends)

    def validate(self, request: UpdateValidationRequest) -> UpdateValidationResult:
        """Validate one package.

        Never raises for backend or health-check failures; they are returned
        as failed results.
        """
        if not self.settings.enabled:
            return self._result(request, True, ValidationMethod.SKIPPED, "Validation disabled")

        backend = self.backends.get(request.source)
        if backend is None:
            return self._result(
                request,
                False,
                ValidationMethod.VERSION_CHECK,
                f"No backend available for {request.source.value}",
            )

        current = backend.get_installed_version(request.package_name)
        if not current:
            return self._result(
                request,
                False,
                ValidationMethod.VERSION_CHECK,
                "Package not found after update",
            )

        if (
            self.settings.verify_version_change
            and request.previous_version
            and current == request.previous_version
        ):
            return self._result(
                request,
                False,
                ValidationMethod.VERSION_CHECK,
                "Version unchanged after update",
                current_version=current,
            )

        if request.expected_version and current != request.expected_version:
            return self._result(
                request,
                False,
                ValidationMethod.VERSION_CHECK,
                f"Version mismatch: expected {request.expected_version}, found {current}",
                current_version=current,
            )

        if self.settings.health_check_enabled:
            return self._run_health_check(request, current)

        return self._result(
            request,
            True,
            ValidationMethod.COMPLETE,
            "All validation checks passed",
            current_version=current,
        )

    def _run_health_check(
        self,
        request: UpdateValidationRequest,
        current: str,
    ) -> UpdateValidationResult:
        command = self.settings.health_check_for(request.package_name)
        if not command:
            return self._result(
                request,
                True,
                ValidationMethod.NO_CHECK,
                "No health check configured",
                current_version=current,
            )

        logger.debug("Running health check for %s: %s", request.package_name, command)
        try:
            result = run_command(command, timeout=self.settings.health_check_timeout)
        except subprocess.TimeoutExpired:
            return self._result(
                request,
                False,
                ValidationMethod.HEALTH_CHECK,
                f"Health check timed out after {self.settings.health_check_timeout} seconds",
                current_version=current,
            )
        except OSError as e:
            return self._result(
                request,
                False,
                ValidationMethod.HEALTH_CHECK,
                f"Health check could not run: {e}",
                current_version=current,
            )

        output = result.output[-_MAX_OUTPUT_CHARS:]
        if result.success:
            return self._result(
                request,
                True,
                ValidationMethod.HEALTH_CHECK,
                "Health check passed",
                current_version=current,
                exit_code=result.returncode,
                output=output,
            )
        return self._result(
            request,
            False,
            ValidationMethod.HEALTH_CHECK,
            f"Health check failed with exit code {result.returncode}",
            current_version=current,
            exit_code=result.returncode,
            output=output,
        )

    def validate_batch(
        self,
        requests: Sequence[UpdateValidationRequest],
    ) -> list[UpdateValidationResult]:
        """Validate every request, continuing past failures.

        Returns:
            One result per request, in input order.
        """
        results: list[UpdateValidationResult] = []
        for request in requests:
            result = self.validate(request)
            if result.success:
                logger.info(
                    "Validation of %s (%s) passed: %s",
                    result.package_name,
                    result.source.value,
                    result.message,
                )
            else:
                logger.warning(
                    "Validation of %s (%s) failed [%s]: %s",
                    result.package_name,
                    result.source.value,
                    result.method.value,
                    result.message,
                )
            results.append(result)
        return results

    @staticmethod
    def _result(
        request: UpdateValidationRequest,
        success: bool,
        method: ValidationMethod,
        message: str,
        current_version: str | None = None,
        exit_code: int | None = None,
        output: str | None = None,
    ) -> UpdateValidationResult:
        return UpdateValidationResult(
            package_name=request.package_name,
            source=request.source,
            success=success,
            method=method,
            message=message,
            current_version=current_version,
            previous_version=request.previous_version,
            expected_version=request.expected_version,
            exit_code=exit_code,
            output=output,
        )
