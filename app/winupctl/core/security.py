"""Security validation of package executables.

The SecurityValidator runs two independent checks against a package's
primary executable:

- Hash check: the file digest must match an explicitly expected hash if
  one is given, and also the digest stored in the hash database from the
  previous validation. A first sighting (or a match) is stored as the
  new last-known-good digest.
- Signature check: the Authenticode signature must be valid and, when a
  trusted-publisher list is configured, the signer must match an entry.

A failed hash check always fails the verdict. A failed signature check
only fails it when require_valid_signature is set, or when the signature
is valid but the publisher is untrusted and block_untrusted_packages is
set; otherwise it is reported as a warning in the message.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from winupctl.core.hashdb import HashDatabase
from winupctl.models.config import SecuritySettings
from winupctl.models.history import UNKNOWN_VERSION
from winupctl.models.package import PackageSource
from winupctl.models.validation import (
    SecurityValidationResult,
    SignatureStatus,
    SignatureVerdict,
    ValidationMethod,
)
from winupctl.sources.base import PackageBackend

logger = logging.getLogger(__name__)

_SIGNATURE_REASONS: dict[SignatureStatus, str] = {
    SignatureStatus.NOT_SIGNED: "File is not signed",
    SignatureStatus.HASH_MISMATCH: "Signature does not match file contents",
    SignatureStatus.NOT_TRUSTED: "Signing certificate is not trusted",
    SignatureStatus.UNKNOWN_ERROR: "Signature status could not be determined",
}


def is_trusted_publisher(publisher: str | None, trusted_publishers: list[str]) -> bool:
    """Check a signer against the allow-list.

    An empty allow-list trusts every publisher. Otherwise the publisher must
    contain one of the entries (case-insensitive substring match).
    """
    if not trusted_publishers:
        return True
    if not publisher:
        return False
    folded = publisher.casefold()
    return any(entry.casefold() in folded for entry in trusted_publishers if entry)


@dataclass
class _Findings:
    """Accumulates sub-check outcomes while a validation runs."""

    failures: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    method: ValidationMethod = ValidationMethod.COMPLETE

    def fail(self, method: ValidationMethod, reason: str) -> None:
        if not self.failures:
            self.method = method
        self.failures.append(reason)


class SecurityValidator:
    """Verifies executable integrity and code signatures.

    Attributes:
        settings: Security settings from the application config.
        backends: Backend per source, used to locate and inspect files.
        hash_db: Store of last-known-good digests.
    """

    def __init__(
        self,
        settings: SecuritySettings,
        backends: Mapping[PackageSource, PackageBackend],
        hash_db: HashDatabase,
    ) -> None:
        self.settings = settings
        self.backends = dict(backends)
        self.hash_db = hash_db

    def validate(
        self,
        package_name: str,
        source: PackageSource,
        version: str | None = None,
        expected_hash: str | None = None,
    ) -> SecurityValidationResult:
        """Validate a package's executable.

        Args:
            package_name: Package identifier.
            source: Update source of the package.
            version: Installed version, recorded with a stored digest.
                Queried from the backend when omitted.
            expected_hash: Digest the file must have, if known.

        Returns:
            SecurityValidationResult with both sub-check outcomes attached.
        """
        if not self.settings.enabled:
            return SecurityValidationResult(
                package_name=package_name,
                source=source,
                success=True,
                method=ValidationMethod.SKIPPED,
                message="Security validation disabled",
            )

        backend = self.backends.get(source)
        path = backend.find_executable_path(package_name) if backend is not None else None
        if backend is None or path is None:
            logger.warning("No executable found for %s (%s)", package_name, source.value)
            return SecurityValidationResult(
                package_name=package_name,
                source=source,
                success=False,
                method=ValidationMethod.PATH_NOT_FOUND,
                message="Executable path not found",
            )

        findings = _Findings()
        digest: str | None = None
        hash_match: bool | None = None
        hash_saved = False

        if self.settings.hash_check:
            algorithm = self.settings.hash_algorithm
            try:
                digest = backend.compute_file_digest(path, algorithm)
            except OSError as e:
                hash_match = False
                findings.fail(ValidationMethod.HASH_CHECK, f"Cannot hash {path}: {e}")
            else:
                hash_match, reason = self._check_hash(package_name, source, digest, expected_hash)
                if not hash_match:
                    findings.fail(ValidationMethod.HASH_CHECK, reason)
                elif self.settings.save_hash_database:
                    record = self.hash_db.put(
                        source,
                        package_name,
                        version or backend.get_installed_version(package_name) or UNKNOWN_VERSION,
                        digest,
                        algorithm,
                        path,
                    )
                    hash_saved = record is not None

        verdict: SignatureVerdict | None = None
        trusted: bool | None = None
        if self.settings.signature_check:
            verdict = backend.get_signature_verdict(path)
            trusted = is_trusted_publisher(verdict.publisher, self.settings.trusted_publishers)
            self._check_signature(verdict, trusted, findings)

        success = not findings.failures
        if success:
            message = "All security checks passed"
        else:
            message = "; ".join(findings.failures)
        if findings.warnings:
            message = f"{message} (warning: {'; '.join(findings.warnings)})"

        result = SecurityValidationResult(
            package_name=package_name,
            source=source,
            success=success,
            method=findings.method if not success else ValidationMethod.COMPLETE,
            message=message,
            file_path=str(path),
            hash=digest,
            algorithm=self.settings.hash_algorithm if self.settings.hash_check else None,
            hash_match=hash_match,
            signature_valid=verdict.valid if verdict is not None else None,
            signature_status=verdict.status if verdict is not None else None,
            publisher=verdict.publisher if verdict is not None else None,
            trusted_publisher=trusted,
            hash_saved=hash_saved,
        )

        if success:
            logger.info("Security validation of %s (%s) passed", package_name, source.value)
        else:
            logger.warning(
                "Security validation of %s (%s) failed: %s",
                package_name,
                source.value,
                message,
            )
        return result

    def _check_hash(
        self,
        package_name: str,
        source: PackageSource,
        digest: str,
        expected_hash: str | None,
    ) -> tuple[bool, str]:
        """Compare a digest against the expected and stored values.

        Returns:
            Tuple of (matched, failure reason).
        """
        if expected_hash and expected_hash.strip().upper() != digest.upper():
            return False, "Hash mismatch with expected value"

        stored = self.hash_db.get(source, package_name)
        if stored is None:
            logger.info("First digest recorded for %s (%s)", package_name, source.value)
            return True, ""

        if stored.algorithm != self.settings.hash_algorithm:
            logger.info(
                "Stored digest for %s uses %s, replacing with %s",
                package_name,
                stored.algorithm.value,
                self.settings.hash_algorithm.value,
            )
            return True, ""

        if stored.hash.upper() != digest.upper():
            logger.warning(
                "Digest of %s (%s) changed from %s to %s",
                package_name,
                source.value,
                stored.hash,
                digest,
            )
            return False, "Hash mismatch with stored value"
        return True, ""

    def _check_signature(
        self,
        verdict: SignatureVerdict,
        trusted: bool,
        findings: _Findings,
    ) -> None:
        if verdict.valid and trusted:
            return

        if not verdict.valid:
            reason = _SIGNATURE_REASONS.get(verdict.status, "Signature is not valid")
            if self.settings.require_valid_signature:
                findings.fail(ValidationMethod.SIGNATURE_CHECK, reason)
            else:
                findings.warnings.append(reason)
            return

        reason = f"Publisher not trusted: {verdict.publisher or 'unknown'}"
        if self.settings.require_valid_signature or self.settings.block_untrusted_packages:
            findings.fail(ValidationMethod.SIGNATURE_CHECK, reason)
        else:
            findings.warnings.append(reason)
