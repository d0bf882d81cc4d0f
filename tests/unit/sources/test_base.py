"""Unit tests for the shared backend helpers.

Tests for executable lookup, file digests and signature verdicts.
"""

import hashlib
import json
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest
from winupctl.models.validation import HashAlgorithm, SignatureStatus
from winupctl.sources.base import executable_prefixes, find_executable_in
from winupctl.sources.winget import WingetBackend
from winupctl.utils.shell import CommandResult

_ROOT_VARS = (
    "ProgramFiles",
    "ProgramFiles(x86)",
    "ProgramW6432",
    "LOCALAPPDATA",
    "ChocolateyInstall",
)


class TestExecutablePrefixes:
    """Tests for executable_prefixes()."""

    def test_dotted_identifier(self) -> None:
        """Last segment first, then first segment, then the full name."""
        assert executable_prefixes("Mozilla.Firefox") == [
            "firefox",
            "mozilla",
            "mozilla.firefox",
        ]

    def test_single_segment(self) -> None:
        """A plain name yields one prefix."""
        assert executable_prefixes("vlc") == ["vlc"]

    def test_mixed_separators(self) -> None:
        """Dashes and underscores also separate segments."""
        assert executable_prefixes("nodejs-lts")[:2] == ["lts", "nodejs"]


class TestFindExecutableIn:
    """Tests for find_executable_in()."""

    def test_missing_directory(self, tmp_path: Path) -> None:
        """A missing directory yields None."""
        assert find_executable_in(tmp_path / "missing", ["app"]) is None

    def test_prefers_shallow_paths(self, tmp_path: Path) -> None:
        """Shallower matches win over nested ones."""
        nested = tmp_path / "bin"
        nested.mkdir()
        (nested / "firefox.exe").write_bytes(b"MZ")
        (tmp_path / "firefox.exe").write_bytes(b"MZ")

        assert find_executable_in(tmp_path, ["firefox"]) == tmp_path / "firefox.exe"

    def test_prefix_order(self, tmp_path: Path) -> None:
        """Earlier prefixes win over later ones."""
        (tmp_path / "mozilla-updater.exe").write_bytes(b"MZ")
        (tmp_path / "Firefox.exe").write_bytes(b"MZ")

        found = find_executable_in(tmp_path, ["firefox", "mozilla"])
        assert found == tmp_path / "Firefox.exe"

    def test_no_match(self, tmp_path: Path) -> None:
        """Non-matching executables are ignored."""
        (tmp_path / "uninstall.exe").write_bytes(b"MZ")
        assert find_executable_in(tmp_path, ["firefox"]) is None


class TestPackageBackendFiles:
    """Tests for the file inspection helpers on PackageBackend."""

    @pytest.fixture
    def backend(self) -> WingetBackend:
        """Create a backend to exercise the shared helpers."""
        return WingetBackend()

    def test_compute_file_digest(self, backend: WingetBackend, tmp_path: Path) -> None:
        """Digests are upper-case hex of the file content."""
        path = tmp_path / "app.exe"
        path.write_bytes(b"binary content" * 1000)

        expected = hashlib.sha256(b"binary content" * 1000).hexdigest().upper()
        assert backend.compute_file_digest(path, HashAlgorithm.SHA256) == expected

    def test_compute_file_digest_sha512(self, backend: WingetBackend, tmp_path: Path) -> None:
        """Other algorithms are supported."""
        path = tmp_path / "app.exe"
        path.write_bytes(b"")

        expected = hashlib.sha512(b"").hexdigest().upper()
        assert backend.compute_file_digest(path, HashAlgorithm.SHA512) == expected

    def test_compute_file_digest_missing(self, backend: WingetBackend, tmp_path: Path) -> None:
        """Unreadable files raise OSError."""
        with pytest.raises(OSError):
            backend.compute_file_digest(tmp_path / "missing.exe", HashAlgorithm.SHA256)

    def test_find_executable_by_probing_roots(
        self, backend: WingetBackend, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Program directories are probed by package name prefix."""
        for var in _ROOT_VARS:
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("ProgramFiles", str(tmp_path))
        install_dir = tmp_path / "Mozilla Firefox"
        install_dir.mkdir()
        (install_dir / "firefox.exe").write_bytes(b"MZ")
        (tmp_path / "Other").mkdir()

        assert backend.find_executable_path("Mozilla.Firefox") == install_dir / "firefox.exe"

    def test_find_executable_not_found(
        self, backend: WingetBackend, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Packages without a matching directory yield None."""
        for var in _ROOT_VARS:
            monkeypatch.delenv(var, raising=False)
        monkeypatch.setenv("ProgramFiles", str(tmp_path))

        assert backend.find_executable_path("Git.Git") is None


class TestSignatureVerdict:
    """Tests for PackageBackend.get_signature_verdict()."""

    @pytest.fixture
    def backend(self) -> WingetBackend:
        """Create a backend to exercise the shared helpers."""
        return WingetBackend()

    def test_valid_signature(self, backend: WingetBackend, tmp_path: Path) -> None:
        """A Valid status with a subject is a valid verdict."""
        output = json.dumps({"Status": "Valid", "Subject": "CN=Mozilla Corporation"})
        with patch("winupctl.sources.base.run_powershell") as mock_ps:
            mock_ps.return_value = CommandResult(stdout=output, stderr="", returncode=0)
            verdict = backend.get_signature_verdict(tmp_path / "firefox.exe")

        assert verdict.valid is True
        assert verdict.status == SignatureStatus.VALID
        assert verdict.publisher == "CN=Mozilla Corporation"

    def test_not_signed(self, backend: WingetBackend, tmp_path: Path) -> None:
        """NotSigned files are not valid and have no publisher."""
        output = json.dumps({"Status": "NotSigned", "Subject": None})
        with patch("winupctl.sources.base.run_powershell") as mock_ps:
            mock_ps.return_value = CommandResult(stdout=output, stderr="", returncode=0)
            verdict = backend.get_signature_verdict(tmp_path / "tool.exe")

        assert verdict.valid is False
        assert verdict.status == SignatureStatus.NOT_SIGNED
        assert verdict.publisher is None

    def test_path_is_quoted(self, backend: WingetBackend) -> None:
        """Paths with quotes are escaped for PowerShell."""
        with patch("winupctl.sources.base.run_powershell") as mock_ps:
            mock_ps.return_value = CommandResult(stdout="", stderr="", returncode=0)
            backend.get_signature_verdict(Path("C:/Program Files/O'Brien/app.exe"))

        assert "O''Brien" in mock_ps.call_args[0][0]

    @pytest.mark.parametrize(
        "side_effect",
        [FileNotFoundError("powershell"), subprocess.TimeoutExpired(["powershell"], 120)],
    )
    def test_powershell_errors(
        self, backend: WingetBackend, tmp_path: Path, side_effect: Exception
    ) -> None:
        """Missing or hanging PowerShell yields UnknownError."""
        with patch("winupctl.sources.base.run_powershell", side_effect=side_effect):
            verdict = backend.get_signature_verdict(tmp_path / "app.exe")

        assert verdict.valid is False
        assert verdict.status == SignatureStatus.UNKNOWN_ERROR

    def test_unparseable_output(self, backend: WingetBackend, tmp_path: Path) -> None:
        """Non-JSON output yields UnknownError."""
        with patch("winupctl.sources.base.run_powershell") as mock_ps:
            mock_ps.return_value = CommandResult(stdout="garbage", stderr="", returncode=0)
            verdict = backend.get_signature_verdict(tmp_path / "app.exe")

        assert verdict.status == SignatureStatus.UNKNOWN_ERROR
