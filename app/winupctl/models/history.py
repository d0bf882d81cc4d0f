"""History entry model for the operation ledger.

This module defines data structures for recording package operations
(install, upgrade, uninstall, rollback, scan) in the history document.
The persisted field names are fixed so that older histories stay readable.
"""

from __future__ import annotations

import getpass
import socket
from dataclasses import dataclass
from enum import Enum
from typing import Any

from winupctl.models.package import PackageSource
from winupctl.utils.timestamps import utc_now_iso

UNKNOWN_VERSION = "Unknown"


class OperationType(str, Enum):
    """Type of operation recorded in history.

    Attributes:
        INSTALL: Package installation.
        UPGRADE: Package upgrade to a newer version.
        UNINSTALL: Package removal.
        ROLLBACK: Reinstallation of a previous version.
        SCAN: Detection of a new or changed package without acting on it.
    """

    INSTALL = "Install"
    UPGRADE = "Upgrade"
    UNINSTALL = "Uninstall"
    ROLLBACK = "Rollback"
    SCAN = "Scan"

    @classmethod
    def parse(cls, value: str) -> OperationType:
        """Convert a user-supplied string to an OperationType (case-insensitive).

        Raises:
            ValueError: If the value names no known operation.
        """
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        valid = ", ".join(m.value for m in cls)
        msg = f"Unknown operation '{value}' (expected one of: {valid})"
        raise ValueError(msg)


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """Record of a single operation in history.

    Entries are immutable and only ever appended to the ledger.

    Attributes:
        timestamp: When the operation occurred (ISO 8601).
        package_name: Package identifier.
        version: Version after the operation.
        previous_version: Version before the operation ("Unknown" if not known).
        source: Update source that handled the package.
        operation: Type of operation.
        success: Whether the operation succeeded.
        error_message: Failure description, empty on success.
        computer_name: Host the operation ran on.
        user_name: User that ran the operation.
    """

    timestamp: str
    package_name: str
    version: str
    source: PackageSource
    operation: OperationType
    success: bool
    previous_version: str = UNKNOWN_VERSION
    error_message: str = ""
    computer_name: str = ""
    user_name: str = ""

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.package_name:
            msg = "Package name cannot be empty"
            raise ValueError(msg)
        if not self.timestamp:
            msg = "Timestamp cannot be empty"
            raise ValueError(msg)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted history document shape.

        Returns:
            Dictionary with PascalCase keys.
        """
        return {
            "Timestamp": self.timestamp,
            "PackageName": self.package_name,
            "Version": self.version,
            "PreviousVersion": self.previous_version,
            "Source": self.source.value,
            "Operation": self.operation.value,
            "Success": self.success,
            "ErrorMessage": self.error_message,
            "ComputerName": self.computer_name,
            "UserName": self.user_name,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        """Deserialize from the persisted history document shape.

        Args:
            data: Dictionary containing entry data.

        Returns:
            HistoryEntry instance.

        Raises:
            KeyError: If required fields are missing.
            TypeError: If the timestamp or package name is not a string.
            ValueError: If source or operation is invalid.
        """
        timestamp = data["Timestamp"]
        package_name = data["PackageName"]
        if not isinstance(timestamp, str) or not isinstance(package_name, str):
            msg = "Timestamp and PackageName must be strings"
            raise TypeError(msg)
        return cls(
            timestamp=timestamp,
            package_name=package_name,
            version=str(data.get("Version") or ""),
            previous_version=str(data.get("PreviousVersion") or UNKNOWN_VERSION),
            source=PackageSource(data["Source"]),
            operation=OperationType(data["Operation"]),
            success=bool(data["Success"]),
            error_message=str(data.get("ErrorMessage") or ""),
            computer_name=str(data.get("ComputerName") or ""),
            user_name=str(data.get("UserName") or ""),
        )


def _current_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return ""


def create_history_entry(
    package_name: str,
    version: str,
    source: PackageSource,
    operation: OperationType,
    success: bool,
    previous_version: str | None = None,
    error_message: str = "",
) -> HistoryEntry:
    """Factory function to create a new HistoryEntry.

    Fills in the current timestamp, host name and user name.

    Args:
        package_name: Package identifier.
        version: Version after the operation.
        source: Update source.
        operation: Type of operation.
        success: Whether the operation succeeded.
        previous_version: Version before the operation. Defaults to "Unknown".
        error_message: Failure description (ignored when success is True).

    Returns:
        New HistoryEntry stamped with the current time.
    """
    return HistoryEntry(
        timestamp=utc_now_iso(),
        package_name=package_name,
        version=version,
        previous_version=previous_version or UNKNOWN_VERSION,
        source=source,
        operation=operation,
        success=success,
        error_message="" if success else error_message,
        computer_name=socket.gethostname(),
        user_name=_current_user(),
    )
