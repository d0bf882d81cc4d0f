"""Application configuration models.

This module defines the Pydantic models representing config.toml. The
configuration is loaded once per process and passed explicitly to every
component. Unknown keys are rejected at load time.
"""

from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from winupctl.models.package import PackageSource
from winupctl.models.validation import HashAlgorithm


class CacheSettings(BaseModel):
    """Differential update settings.

    Attributes:
        differential_updates: Skip packages whose cached version matches.
    """

    model_config = ConfigDict(extra="forbid")

    differential_updates: Annotated[
        bool,
        Field(description="Skip packages whose version matches the cache"),
    ] = True


class HistorySettings(BaseModel):
    """History ledger settings.

    Attributes:
        enabled: Record operations to the history ledger.
        retention_days: Entries older than this are pruned.
    """

    model_config = ConfigDict(extra="forbid")

    enabled: Annotated[bool, Field(description="Record operations")] = True
    retention_days: Annotated[
        int,
        Field(ge=1, le=3650, description="History retention in days (1-3650)"),
    ] = 90


class ValidationSettings(BaseModel):
    """Post-update validation settings.

    Attributes:
        enabled: Run post-update validation.
        verify_version_change: Fail when the version did not change.
        health_check_enabled: Run per-package health-check commands.
        health_check_timeout: Timeout for a health-check command in seconds.
        health_checks: Package identifier to argument vector (program + args).
    """

    model_config = ConfigDict(extra="forbid")

    enabled: Annotated[bool, Field(description="Run post-update validation")] = True
    verify_version_change: Annotated[
        bool,
        Field(description="Fail when the installed version did not change"),
    ] = True
    health_check_enabled: Annotated[
        bool,
        Field(description="Run configured health-check commands"),
    ] = False
    health_check_timeout: Annotated[
        int,
        Field(ge=1, le=3600, description="Health-check timeout in seconds"),
    ] = 120
    health_checks: Annotated[
        dict[str, list[str]],
        Field(default_factory=dict, description="Package to health-check argv"),
    ]

    def health_check_for(self, package_name: str) -> list[str]:
        """Return the health-check argv for a package (empty if unset).

        Lookup is exact first, then case-insensitive.
        """
        command = self.health_checks.get(package_name)
        if command is None:
            lowered = package_name.lower()
            for name, argv in self.health_checks.items():
                if name.lower() == lowered:
                    command = argv
                    break
        return [arg for arg in (command or []) if arg]


class SecuritySettings(BaseModel):
    """Security validation settings.

    Attributes:
        enabled: Run security validation after updates.
        hash_check: Compute and compare executable digests.
        signature_check: Check the executable's code signature.
        hash_algorithm: Digest algorithm.
        require_valid_signature: Fail unless the signature check passes.
        block_untrusted_packages: Fail on valid signatures from untrusted publishers.
        trusted_publishers: Publisher allow-list (substring match).
        save_hash_database: Persist computed digests.
    """

    model_config = ConfigDict(extra="forbid")

    enabled: Annotated[bool, Field(description="Run security validation")] = True
    hash_check: Annotated[bool, Field(description="Verify executable digests")] = True
    signature_check: Annotated[bool, Field(description="Verify code signatures")] = True
    hash_algorithm: Annotated[
        HashAlgorithm,
        Field(description="Digest algorithm"),
    ] = HashAlgorithm.SHA256
    require_valid_signature: Annotated[
        bool,
        Field(description="Fail unless the signature check passes"),
    ] = False
    block_untrusted_packages: Annotated[
        bool,
        Field(description="Fail on signatures from untrusted publishers"),
    ] = False
    trusted_publishers: Annotated[
        list[str],
        Field(default_factory=list, description="Trusted publisher substrings"),
    ]
    save_hash_database: Annotated[
        bool,
        Field(description="Persist computed digests to the hash database"),
    ] = True

    @field_validator("hash_algorithm", mode="before")
    @classmethod
    def normalize_algorithm(cls, v: object) -> object:
        """Accept algorithm names in any case ("sha256", "SHA-256")."""
        if isinstance(v, str):
            return v.strip().upper().replace("-", "")
        return v


class UpdateSettings(BaseModel):
    """Update run settings.

    Attributes:
        dry_run: Simulate backend operations.
        fail_on_validation_error: Count validation failures as failed updates.
        sources: Sources processed when no source is selected.
        command_timeout: Timeout for a backend upgrade command in seconds.
    """

    model_config = ConfigDict(extra="forbid")

    dry_run: Annotated[bool, Field(description="Simulate backend operations")] = False
    fail_on_validation_error: Annotated[
        bool,
        Field(description="Treat validation failures as update failures"),
    ] = False
    sources: Annotated[
        list[PackageSource],
        Field(
            default_factory=lambda: [
                PackageSource.WINGET,
                PackageSource.CHOCOLATEY,
                PackageSource.STORE,
            ],
            description="Sources processed by default",
        ),
    ]
    command_timeout: Annotated[
        int,
        Field(ge=30, le=14400, description="Backend command timeout in seconds"),
    ] = 1800

    @field_validator("sources", mode="before")
    @classmethod
    def normalize_sources(cls, v: object) -> object:
        """Accept source names in any case ("winget", "Winget")."""
        if isinstance(v, list):
            return [PackageSource.parse(item) if isinstance(item, str) else item for item in v]
        return v


class LoggingSettings(BaseModel):
    """Logging settings.

    Attributes:
        transcript: Also write a plain-text transcript to the log directory.
    """

    model_config = ConfigDict(extra="forbid")

    transcript: Annotated[bool, Field(description="Write a log transcript")] = False


class AppConfig(BaseModel):
    """Complete application configuration (config.toml)."""

    model_config = ConfigDict(extra="forbid")

    cache: Annotated[CacheSettings, Field(default_factory=CacheSettings)]
    history: Annotated[HistorySettings, Field(default_factory=HistorySettings)]
    validation: Annotated[ValidationSettings, Field(default_factory=ValidationSettings)]
    security: Annotated[SecuritySettings, Field(default_factory=SecuritySettings)]
    updates: Annotated[UpdateSettings, Field(default_factory=UpdateSettings)]
    logging: Annotated[LoggingSettings, Field(default_factory=LoggingSettings)]
