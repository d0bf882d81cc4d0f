"""Validation models for post-update and security checks.

Validation results are created fresh for every check. They are reported
and logged, never persisted (the security check's computed hash is stored
separately in the hash database).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from winupctl.models.package import PackageSource


class ValidationMethod(str, Enum):
    """Which check produced a verdict, or why checking stopped.

    Attributes:
        SKIPPED: Validation disabled by configuration.
        VERSION_CHECK: Verdict decided by the installed-version check.
        NO_CHECK: Health check enabled but no command configured.
        HEALTH_CHECK: Verdict decided by the health-check command.
        PATH_NOT_FOUND: Security check could not locate the executable.
        HASH_CHECK: Verdict decided by the hash comparison.
        SIGNATURE_CHECK: Verdict decided by the signature check.
        COMPLETE: All enabled checks ran and passed.
    """

    SKIPPED = "Skipped"
    VERSION_CHECK = "VersionCheck"
    NO_CHECK = "NoCheck"
    HEALTH_CHECK = "HealthCheck"
    PATH_NOT_FOUND = "PathNotFound"
    HASH_CHECK = "HashCheck"
    SIGNATURE_CHECK = "SignatureCheck"
    COMPLETE = "Complete"


class HashAlgorithm(str, Enum):
    """Supported file digest algorithms."""

    SHA256 = "SHA256"
    SHA512 = "SHA512"
    SHA1 = "SHA1"
    MD5 = "MD5"

    @property
    def hashlib_name(self) -> str:
        """Name accepted by hashlib.new()."""
        return self.value.lower()


class SignatureStatus(str, Enum):
    """Platform code-signing status (mirrors Authenticode status names)."""

    VALID = "Valid"
    NOT_SIGNED = "NotSigned"
    HASH_MISMATCH = "HashMismatch"
    NOT_TRUSTED = "NotTrusted"
    UNKNOWN_ERROR = "UnknownError"

    @classmethod
    def parse(cls, value: str | None) -> "SignatureStatus":
        """Map a status string to a member, UNKNOWN_ERROR if unrecognized."""
        for member in cls:
            if value and member.value.lower() == value.strip().lower():
                return member
        return cls.UNKNOWN_ERROR


@dataclass(frozen=True, slots=True)
class SignatureVerdict:
    """Code-signing verdict for a file.

    Attributes:
        valid: Whether the platform considers the signature valid.
        status: Detailed signature status.
        publisher: Signer subject (certificate subject), if signed.
    """

    valid: bool
    status: SignatureStatus
    publisher: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateValidationRequest:
    """Input for one post-update validation.

    Attributes:
        package_name: Package identifier.
        source: Update source of the package.
        previous_version: Version before the update, if known.
        expected_version: Version the update should have produced, if known.
    """

    package_name: str
    source: PackageSource
    previous_version: str | None = None
    expected_version: str | None = None


@dataclass(frozen=True, slots=True)
class UpdateValidationResult:
    """Verdict of a post-update validation.

    Attributes:
        package_name: Package identifier.
        source: Update source of the package.
        success: Overall verdict.
        method: Check that decided the verdict.
        message: Human-readable explanation.
        current_version: Installed version found after the update.
        previous_version: Version before the update, if supplied.
        expected_version: Expected version, if supplied.
        exit_code: Health-check exit code, if a command ran.
        output: Captured health-check output, if a command ran.
    """

    package_name: str
    source: PackageSource
    success: bool
    method: ValidationMethod
    message: str
    current_version: str | None = None
    previous_version: str | None = None
    expected_version: str | None = None
    exit_code: int | None = None
    output: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "package_name": self.package_name,
            "source": self.source.value,
            "success": self.success,
            "method": self.method.value,
            "message": self.message,
            "current_version": self.current_version,
            "previous_version": self.previous_version,
            "expected_version": self.expected_version,
            "exit_code": self.exit_code,
            "output": self.output,
        }


@dataclass(frozen=True, slots=True)
class SecurityValidationResult:
    """Verdict of a security validation.

    The hash and signature sub-results are always populated when the
    corresponding check ran, even if they did not decide the verdict.

    Attributes:
        package_name: Package identifier.
        source: Update source of the package.
        success: Overall verdict (conjunction of the enabled sub-checks).
        method: Check that decided the verdict.
        message: Human-readable explanation (all failure reasons joined).
        file_path: Executable that was checked.
        hash: Computed digest (upper-case hex).
        algorithm: Digest algorithm used.
        hash_match: Hash check outcome, None if it did not run.
        signature_valid: Signature check outcome, None if it did not run.
        signature_status: Platform signature status.
        publisher: Signer subject.
        trusted_publisher: Whether the publisher matched the allow-list.
        hash_saved: Whether the hash database was updated.
    """

    package_name: str
    source: PackageSource
    success: bool
    method: ValidationMethod
    message: str
    file_path: str | None = None
    hash: str | None = None
    algorithm: HashAlgorithm | None = None
    hash_match: bool | None = None
    signature_valid: bool | None = None
    signature_status: SignatureStatus | None = None
    publisher: str | None = None
    trusted_publisher: bool | None = None
    hash_saved: bool = field(default=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "package_name": self.package_name,
            "source": self.source.value,
            "success": self.success,
            "method": self.method.value,
            "message": self.message,
            "file_path": self.file_path,
            "hash": self.hash,
            "algorithm": self.algorithm.value if self.algorithm else None,
            "hash_match": self.hash_match,
            "signature_valid": self.signature_valid,
            "signature_status": self.signature_status.value if self.signature_status else None,
            "publisher": self.publisher,
            "trusted_publisher": self.trusted_publisher,
            "hash_saved": self.hash_saved,
        }


@dataclass(frozen=True, slots=True)
class HashRecord:
    """Last-known-good digest of a package executable.

    There is one record per (source, package_name); a new record replaces
    the previous one.

    Attributes:
        package_name: Package identifier.
        source: Update source of the package.
        version: Installed version when the digest was taken.
        hash: Digest (upper-case hex).
        algorithm: Digest algorithm.
        file_path: Executable the digest was computed for.
        timestamp: ISO 8601 timestamp of when the record was written.
    """

    package_name: str
    source: PackageSource
    version: str
    hash: str
    algorithm: HashAlgorithm
    file_path: str
    timestamp: str

    @property
    def key(self) -> str:
        """Database key ("<Source>/<PackageName>")."""
        return hash_record_key(self.source, self.package_name)

    def to_dict(self) -> dict[str, str]:
        """Convert to the persisted dictionary form."""
        return {
            "PackageName": self.package_name,
            "Source": self.source.value,
            "Version": self.version,
            "Hash": self.hash,
            "Algorithm": self.algorithm.value,
            "FilePath": self.file_path,
            "Timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HashRecord":
        """Create a HashRecord from its persisted form.

        Raises:
            KeyError: If a required field is missing.
            ValueError: If Source or Algorithm is not a known value.
        """
        return cls(
            package_name=str(data["PackageName"]),
            source=PackageSource.parse(str(data["Source"])),
            version=str(data.get("Version") or ""),
            hash=str(data["Hash"]).upper(),
            algorithm=HashAlgorithm(str(data.get("Algorithm") or "SHA256").upper()),
            file_path=str(data.get("FilePath") or ""),
            timestamp=str(data.get("Timestamp") or ""),
        )


def hash_record_key(source: PackageSource, package_name: str) -> str:
    """Build the hash database key for a package."""
    return f"{source.value}/{package_name}"
