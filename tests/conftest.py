"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from pathlib import Path

import pytest


def _winget_row(name: str, package_id: str, version: str, available: str, source: str) -> str:
    return (
        name.ljust(28) + package_id.ljust(32) + version.ljust(14) + available.ljust(14) + source
    )


_UPGRADE_ROWS = [
    ("Mozilla Firefox (x64 en-US)", "Mozilla.Firefox", "128.0", "129.0.1", "winget"),
    ("Git", "Git.Git", "2.43.0", "2.44.0", "winget"),
    ("Visual Studio Code", "Microsoft.VisualStudioCode", "1.89.0", "1.90.2", "winget"),
    ("7-Zip 23.01 (x64)", "7zip.7zip", "Unknown", "24.07", "winget"),
]


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every winupctl document at a per-test directory."""
    home = tmp_path / "winupctl-home"
    monkeypatch.setenv("WINUPCTL_HOME", str(home))
    return home


@pytest.fixture
def mock_winget_upgrade_output() -> str:
    """Sample `winget upgrade --include-unknown` output for testing."""
    header = _winget_row("Name", "Id", "Version", "Available", "Source")
    return "\n".join(
        [
            "   - \r   \\ \r" + header,
            "-" * len(header),
            *(_winget_row(*row) for row in _UPGRADE_ROWS),
            "4 upgrades available.",
            "",
            "The following packages have an upgrade available, but require explicit targeting:",
            _winget_row("Name", "Id", "Version", "Available", "Source"),
            "-" * len(header),
            _winget_row("Discord", "Discord.Discord", "1.0.9035", "1.0.9040", "winget"),
        ]
    )


@pytest.fixture
def mock_winget_list_output() -> str:
    """Sample `winget list --id Git.Git --exact` output for testing."""
    header = _winget_row("Name", "Id", "Version", "Available", "Source")
    return "\n".join(
        [
            header,
            "-" * len(header),
            _winget_row("Git", "Git.Git", "2.44.0", "", "winget"),
        ]
    )


@pytest.fixture
def mock_winget_no_upgrades_output() -> str:
    """winget output when nothing is upgradable."""
    return "No installed package found matching input criteria."


@pytest.fixture
def mock_choco_outdated_output() -> str:
    """Sample `choco outdated -r` output for testing."""
    return """googlechrome|126.0.6478.127|127.0.6533.73|false
nodejs-lts|20.14.0|20.15.1|false
vlc|3.0.20|3.0.21|true
malformed-line
7zip.install|23.1.0|24.7.0|false"""


@pytest.fixture
def mock_choco_list_output() -> str:
    """Sample `choco list --exact googlechrome -r` output for testing."""
    return "googlechrome|127.0.6533.73"


@pytest.fixture
def mock_empty_output() -> str:
    """Empty output for testing edge cases."""
    return ""
