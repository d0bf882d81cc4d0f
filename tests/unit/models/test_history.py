"""Unit tests for history models.

Tests for HistoryEntry, OperationType and create_history_entry.
"""

import pytest
from winupctl.models.history import (
    UNKNOWN_VERSION,
    HistoryEntry,
    OperationType,
    create_history_entry,
)
from winupctl.models.package import PackageSource


class TestOperationType:
    """Tests for OperationType enum."""

    def test_values(self) -> None:
        """Operation values match the persisted names."""
        assert [op.value for op in OperationType] == [
            "Install",
            "Upgrade",
            "Uninstall",
            "Rollback",
            "Scan",
        ]

    def test_parse(self) -> None:
        """parse() is case-insensitive."""
        assert OperationType.parse("upgrade") == OperationType.UPGRADE

    def test_parse_unknown_raises(self) -> None:
        """parse() rejects unknown operations."""
        with pytest.raises(ValueError, match="Unknown operation"):
            OperationType.parse("purge")


class TestHistoryEntry:
    """Tests for HistoryEntry dataclass."""

    @pytest.fixture
    def entry(self) -> HistoryEntry:
        """Create a failed upgrade entry."""
        return HistoryEntry(
            timestamp="2026-03-01T10:00:00+00:00",
            package_name="Mozilla.Firefox",
            version="129.0",
            previous_version="128.0",
            source=PackageSource.WINGET,
            operation=OperationType.UPGRADE,
            success=False,
            error_message="Installer exited with code 1603",
            computer_name="WS-042",
            user_name="alice",
        )

    def test_to_dict_uses_persisted_keys(self, entry: HistoryEntry) -> None:
        """to_dict() produces PascalCase keys with enum values."""
        data = entry.to_dict()
        assert data["PackageName"] == "Mozilla.Firefox"
        assert data["PreviousVersion"] == "128.0"
        assert data["Source"] == "Winget"
        assert data["Operation"] == "Upgrade"
        assert data["Success"] is False
        assert data["ErrorMessage"] == "Installer exited with code 1603"

    def test_from_dict_restores_entry(self, entry: HistoryEntry) -> None:
        """from_dict() restores every field of to_dict()."""
        assert HistoryEntry.from_dict(entry.to_dict()) == entry

    def test_from_dict_defaults_optional_fields(self) -> None:
        """Missing optional fields fall back to their defaults."""
        entry = HistoryEntry.from_dict(
            {
                "Timestamp": "2026-03-01T10:00:00+00:00",
                "PackageName": "vlc",
                "Version": "3.0.21",
                "Source": "Chocolatey",
                "Operation": "Install",
                "Success": True,
            }
        )
        assert entry.previous_version == UNKNOWN_VERSION
        assert entry.error_message == ""

    def test_from_dict_missing_required_raises(self) -> None:
        """A missing required field raises KeyError."""
        with pytest.raises(KeyError):
            HistoryEntry.from_dict({"PackageName": "vlc"})

    def test_from_dict_non_string_name_raises(self, entry: HistoryEntry) -> None:
        """A numeric package name raises TypeError."""
        data = entry.to_dict()
        data["PackageName"] = 7
        with pytest.raises(TypeError):
            HistoryEntry.from_dict(data)

    def test_from_dict_invalid_source_raises(self, entry: HistoryEntry) -> None:
        """An unknown source raises ValueError."""
        data = entry.to_dict()
        data["Source"] = "Scoop"
        with pytest.raises(ValueError):
            HistoryEntry.from_dict(data)

    def test_empty_package_name_raises(self) -> None:
        """Empty package name raises ValueError."""
        with pytest.raises(ValueError, match="Package name cannot be empty"):
            HistoryEntry(
                timestamp="2026-03-01T10:00:00+00:00",
                package_name="",
                version="1",
                source=PackageSource.WINGET,
                operation=OperationType.INSTALL,
                success=True,
            )


class TestCreateHistoryEntry:
    """Tests for create_history_entry factory."""

    def test_fills_in_context(self) -> None:
        """Factory stamps timestamp and host."""
        entry = create_history_entry(
            package_name="Git.Git",
            version="2.44.0",
            source=PackageSource.WINGET,
            operation=OperationType.UPGRADE,
            success=True,
        )
        assert entry.timestamp
        assert entry.computer_name
        assert entry.previous_version == UNKNOWN_VERSION

    def test_success_discards_error_message(self) -> None:
        """Successful entries never carry an error message."""
        entry = create_history_entry(
            package_name="Git.Git",
            version="2.44.0",
            source=PackageSource.WINGET,
            operation=OperationType.UPGRADE,
            success=True,
            error_message="ignored",
        )
        assert entry.error_message == ""
